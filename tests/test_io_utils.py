"""Tests for CSV / properties parsing, unit conversion and JSON job files."""

import json

import pytest

from io_utils import (
    board_from_config, format_length, from_mm, job_from_state, job_to_state,
    load_job, parse_bool, parse_pieces, parse_properties, parse_stock,
    save_job, to_mm
)
from models import BoardConfig, CutPiece, Job, StockPiece, ROTATION_ALLOWED, ROTATION_FORBIDDEN, ROTATION_INHERIT


def write(tmp_path, name, text):
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return str(p)


# =============================================================================
# Basic parsers
# =============================================================================


@pytest.mark.parametrize("raw,expected", [
    ("true", True), ("Yes", True), ("1", True), ("false", False), ("", False), (None, False),
])
def test_parse_bool(raw, expected):
    assert parse_bool(raw) is expected


def test_parse_properties_skips_comments_and_junk(tmp_path):
    path = write(tmp_path, "config.properties",
                 "# board\nboard-width = 2400\n\nnot a property\nkerf=3.2\nurl=a=b\n")
    assert parse_properties(path) == {"board-width": "2400", "kerf": "3.2", "url": "a=b"}


# =============================================================================
# Units
# =============================================================================


def test_unit_conversion():
    assert to_mm(12.5, "cm") == 125
    assert to_mm(12.5, "mm") == 12.5
    assert from_mm(125, "cm") == 12.5
    assert to_mm(float("nan"), "cm") == 0


@pytest.mark.parametrize("mm,unit,expected", [
    (125, "cm", "12.5"),
    (120, "cm", "12"),
    (1200.4, "mm", "1200"),
    (1200.5, "mm", "1201"),
])
def test_format_length(mm, unit, expected):
    assert format_length(mm, unit) == expected


# =============================================================================
# CSV inputs
# =============================================================================


def test_parse_pieces_in_cm(tmp_path):
    path = write(tmp_path, "pieces.csv",
                 "label,width,height,quantity,rotation\n"
                 "Side,72,56,4,forbidden\n"
                 "Shelf,76.4,54,2,\n"
                 ",,,,\n"
                 "Door,71.5,39.6,1,yes\n")
    pieces = parse_pieces(path, unit="cm")

    assert [p.id for p in pieces] == ["P1", "P2", "P3"]
    assert [p.label for p in pieces] == ["Side", "Shelf", "Door"]
    assert pieces[0].width_mm == 720
    assert pieces[1].width_mm == pytest.approx(764)
    assert [p.rotation for p in pieces] == [ROTATION_FORBIDDEN, ROTATION_INHERIT, ROTATION_ALLOWED]


def test_parse_pieces_missing_columns(tmp_path):
    path = write(tmp_path, "pieces.csv", "label,width\nA,10\n")
    with pytest.raises(ValueError, match="missing required columns"):
        parse_pieces(path)


def test_parse_pieces_duplicate_ids(tmp_path):
    path = write(tmp_path, "pieces.csv",
                 "id,label,width,height,quantity\nx,A,10,10,1\nx,B,10,10,1\n")
    with pytest.raises(ValueError, match="unique"):
        parse_pieces(path)


def test_parse_pieces_bad_number(tmp_path):
    path = write(tmp_path, "pieces.csv", "label,width,height,quantity\nA,ten,10,1\n")
    with pytest.raises(ValueError, match="Row 2"):
        parse_pieces(path)


@pytest.mark.parametrize("quantity", ["inf", "-inf", "nan", "1e999"])
def test_parse_rejects_non_finite_numbers(tmp_path, quantity):
    pieces = write(tmp_path, "pieces.csv", f"label,width,height,quantity\nA,10,10,{quantity}\n")
    with pytest.raises(ValueError, match="finite"):
        parse_pieces(pieces)

    stock = write(tmp_path, "stock.csv", f"width,height,quantity\n800,600,{quantity}\n")
    with pytest.raises(ValueError, match="finite"):
        parse_stock(stock)


def test_parse_stock_keeps_order(tmp_path):
    path = write(tmp_path, "stock.csv",
                 "id,width,height,quantity\noffcut-a,800,600,2\n,1200,400,1\n")
    stock = parse_stock(path)
    assert stock == [
        StockPiece(id="offcut-a", width_mm=800, height_mm=600, quantity=2),
        StockPiece(id="S2", width_mm=1200, height_mm=400, quantity=1),
    ]


def test_board_from_config():
    board = board_from_config({"board-width": "244", "board-height": "122",
                               "kerf": "0.4", "board-margin": "1", "unit": "cm"})
    assert board.width_mm == 2440
    assert board.height_mm == 1220
    assert board.kerf_mm == pytest.approx(4)
    assert board.margin_mm == 10
    assert board.unit == "cm"


def test_board_from_config_errors():
    with pytest.raises(ValueError, match="board-width"):
        board_from_config({"board-height": "100"})
    with pytest.raises(ValueError, match="Unknown unit"):
        board_from_config({"board-width": "1", "board-height": "1", "unit": "in"})
    with pytest.raises(ValueError, match="kerf"):
        board_from_config({"board-width": "1", "board-height": "1", "kerf": "thin"})


# =============================================================================
# JSON jobs
# =============================================================================


def test_job_roundtrip(tmp_path):
    job = Job(
        board=BoardConfig(width_mm=2400, height_mm=1200, kerf_mm=3, margin_mm=10, unit="cm"),
        cuts=[CutPiece(id="a", label="Side", width_mm=720, height_mm=560, quantity=4,
                       rotation=ROTATION_FORBIDDEN)],
        stock=[StockPiece(id="s", width_mm=800, height_mm=600, quantity=1)],
        global_rotation_default=False,
    )
    path = str(tmp_path / "job.json")
    save_job(path, job)

    assert load_job(path) == job
    with open(path, encoding="utf-8") as f:
        assert json.load(f)["v"] == 1


def test_job_from_state_clamps_values():
    job = job_from_state({
        "board": {"widthMm": 0, "heightMm": 2e7, "kerfMm": 500, "marginMm": -4, "unit": "in"},
        "cuts": [
            {"id": "a", "label": 7, "widthMm": "12.6", "heightMm": None,
             "quantity": 3, "rotation": "upside-down"},
            "not a cut",
        ],
    })

    assert job.board == BoardConfig(width_mm=1, height_mm=1_000_000, kerf_mm=100,
                                    margin_mm=0, unit="mm")
    assert job.cuts == [CutPiece(id="a", label="", width_mm=13, height_mm=0, quantity=3,
                                 rotation=ROTATION_INHERIT)]
    assert job.stock == []
    assert job.global_rotation_default is False


def test_job_from_state_rounds_halves_up():
    job = job_from_state({
        "board": {"widthMm": 2440.5, "heightMm": 1220, "kerfMm": 2.5, "marginMm": 0.5},
        "cuts": [{"id": "a", "widthMm": 600.5, "heightMm": 2.5, "quantity": 4.5}],
        "stock": [{"id": "s", "widthMm": "799.5", "heightMm": 600, "quantity": 1.5}],
    })

    assert job.board.width_mm == 2441
    assert job.board.kerf_mm == 3
    assert job.board.margin_mm == 1
    cut = job.cuts[0]
    assert (cut.width_mm, cut.height_mm, cut.quantity) == (601, 3, 5)
    assert job.stock == [StockPiece(id="s", width_mm=800, height_mm=600, quantity=2)]


@pytest.mark.parametrize("raw, expected", [
    ("allowed", ROTATION_ALLOWED),
    ("forbidden", ROTATION_FORBIDDEN),
    ("inherit", ROTATION_INHERIT),
    ("yes", ROTATION_INHERIT),
    ("no", ROTATION_INHERIT),
    ("Allowed", ROTATION_INHERIT),
    (True, ROTATION_INHERIT),
    (False, ROTATION_INHERIT),
    (None, ROTATION_INHERIT),
])
def test_job_rotation_takes_exact_modes_only(raw, expected):
    job = job_from_state({
        "board": {"widthMm": 100, "heightMm": 100},
        "cuts": [{"id": "a", "widthMm": 10, "heightMm": 10, "quantity": 1, "rotation": raw}],
    })
    assert job.cuts[0].rotation == expected


def test_job_rotation_default_flag():
    board = {"widthMm": 100, "heightMm": 100}
    assert job_from_state({"board": board}).global_rotation_default is False
    assert job_from_state({"board": board, "globalRotationDefault": True}).global_rotation_default is True
    assert job_from_state({"board": board, "globalRotationDefault": 0}).global_rotation_default is False


def test_job_from_state_accepts_wrapped_state():
    state = job_to_state(Job(board=BoardConfig(width_mm=100, height_mm=50)))
    assert job_from_state(state).board.width_mm == 100
    assert job_from_state(state["state"]).board.height_mm == 50


def test_job_errors(tmp_path):
    with pytest.raises(ValueError):
        job_from_state({"state": {"cuts": []}})
    with pytest.raises(ValueError):
        job_from_state([1, 2])

    path = write(tmp_path, "broken.json", "{not json")
    with pytest.raises(ValueError, match="Cannot read job file"):
        load_job(path)
