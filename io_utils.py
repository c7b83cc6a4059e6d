# io_utils.py - boardcut ver1.0
# Reading CSV files, parsing config, unit conversion, JSON job files.

import csv
import json
import math
from typing import Any, Dict, List, Optional

from models import BoardConfig, CutPiece, Job, StockPiece, ROTATION_INHERIT, ROTATION_MODES
from rotation import normalize_rotation_mode


UNITS = ("mm", "cm")
JOB_FORMAT_VERSION = 1


# ------------------------------
# Boolean parser
# ------------------------------

def parse_bool(val: Optional[str]) -> bool:
    if val is None:
        return False
    v = val.strip().lower()
    return v in ("1", "true", "yes", "y", "on")


# ------------------------------
# Config parser (strict one key per line)
# ------------------------------

def parse_properties(path: str) -> Dict[str, str]:
    """
    Conservative parser:
    - One key=value per line
    - Lines without '=' are ignored
    - '#' at start of line = comment
    """
    props: Dict[str, str] = {}
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, val = line.split("=", 1)
            props[key.strip()] = val.strip()
    return props


# ------------------------------
# Units
# ------------------------------

def check_unit(unit: str) -> str:
    u = (unit or "mm").strip().lower()
    if u not in UNITS:
        raise ValueError(f"Unknown unit '{unit}' (expected one of: {', '.join(UNITS)}).")
    return u


def to_mm(value: float, unit: str) -> float:
    if not math.isfinite(value):
        return 0.0
    return value * 10 if unit == "cm" else value


def from_mm(mm: float, unit: str) -> float:
    if not math.isfinite(mm):
        return 0.0
    return mm / 10 if unit == "cm" else mm


def format_length(mm: float, unit: str) -> str:
    """Whole millimeters, or centimeters with one decimal."""
    v = from_mm(mm, unit)
    if unit == "cm":
        rounded = math.floor(v * 10 + 0.5) / 10
        return str(int(rounded)) if rounded == int(rounded) else str(rounded)
    return str(int(math.floor(v + 0.5)))


def _number(raw: Optional[str], column: str, row_no: int) -> float:
    try:
        v = float((raw or "").strip())
    except ValueError:
        raise ValueError(f"Row {row_no}: column '{column}' is not a number: {raw!r}")
    if not math.isfinite(v):
        raise ValueError(f"Row {row_no}: column '{column}' must be a finite number: {raw!r}")
    return v


# ------------------------------
# Pieces CSV
# ------------------------------

def parse_pieces(path: str, unit: str = "mm") -> List[CutPiece]:
    """
    Columns: label, width, height, quantity (+ optional id, rotation).
    Sizes are read in `unit` and stored in millimeters.
    """
    unit = check_unit(unit)
    pieces: List[CutPiece] = []

    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)

        required = {"label", "width", "height", "quantity"}
        if not required.issubset(set(reader.fieldnames or [])):
            raise ValueError("pieces.csv missing required columns (label, width, height, quantity)")

        for row_no, row in enumerate(reader, start=2):
            if not any((v or "").strip() for v in row.values() if isinstance(v, str)):
                continue

            piece_id = (row.get("id") or "").strip() or f"P{len(pieces) + 1}"
            quantity = int(_number(row.get("quantity") or "1", "quantity", row_no))

            pieces.append(
                CutPiece(
                    id=piece_id,
                    label=(row.get("label") or "").strip(),
                    width_mm=to_mm(_number(row["width"], "width", row_no), unit),
                    height_mm=to_mm(_number(row["height"], "height", row_no), unit),
                    quantity=quantity,
                    rotation=normalize_rotation_mode(row.get("rotation"))
                )
            )

    # Ensure uniqueness
    ids = [p.id for p in pieces]
    if len(ids) != len(set(ids)):
        raise ValueError("Piece ids must be unique.")

    return pieces


# ------------------------------
# Stock CSV
# ------------------------------

def parse_stock(path: str, unit: str = "mm") -> List[StockPiece]:
    """Columns: width, height, quantity (+ optional id). Order = priority."""
    unit = check_unit(unit)
    stock: List[StockPiece] = []

    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        fields = set(reader.fieldnames or [])
        for col in ("width", "height", "quantity"):
            if col not in fields:
                raise ValueError(f"stock.csv missing '{col}' column")

        for row_no, row in enumerate(reader, start=2):
            if not (row.get("width") or "").strip():
                continue

            stock.append(
                StockPiece(
                    id=(row.get("id") or "").strip() or f"S{len(stock) + 1}",
                    width_mm=to_mm(_number(row["width"], "width", row_no), unit),
                    height_mm=to_mm(_number(row["height"], "height", row_no), unit),
                    quantity=int(_number(row["quantity"], "quantity", row_no))
                )
            )

    return stock


# ------------------------------
# Board from config.properties
# ------------------------------

def board_from_config(cfg: Dict[str, str]) -> BoardConfig:
    unit = check_unit(cfg.get("unit", "mm"))

    if "board-width" not in cfg or "board-height" not in cfg:
        raise ValueError("config is missing 'board-width' / 'board-height'")

    def num(key: str, default: str) -> float:
        raw = cfg.get(key, default)
        try:
            return float(raw)
        except ValueError:
            raise ValueError(f"config value '{key}' is not a number: {raw!r}")

    return BoardConfig(
        width_mm=to_mm(num("board-width", "0"), unit),
        height_mm=to_mm(num("board-height", "0"), unit),
        kerf_mm=to_mm(num("kerf", "0"), unit),
        margin_mm=to_mm(num("board-margin", "0"), unit),
        unit=unit
    )


# ------------------------------
# JSON job files
# ------------------------------

def _clamp_int(value: Any, lo: int, hi: int) -> int:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return lo
    if not math.isfinite(v):
        return lo
    # halves round up (round() would give 2 for 2.5)
    return max(lo, min(hi, int(math.floor(v + 0.5))))


def _job_rotation(value: Any) -> str:
    """Job files carry the exact mode names; anything else inherits."""
    return value if value in ROTATION_MODES else ROTATION_INHERIT


def job_from_state(state: Dict[str, Any]) -> Job:
    """
    Builds a Job from a saved state dict, clamping every number into a sane
    range. Accepts both {"v": 1, "state": {...}} and a bare state.
    """
    if not isinstance(state, dict):
        raise ValueError("Job file does not contain an object.")
    state = state.get("state", state)
    if not isinstance(state, dict) or not isinstance(state.get("board"), dict):
        raise ValueError("Job file has no board definition.")

    b = state["board"]
    board = BoardConfig(
        width_mm=_clamp_int(b.get("widthMm"), 1, 1_000_000),
        height_mm=_clamp_int(b.get("heightMm"), 1, 1_000_000),
        kerf_mm=_clamp_int(b.get("kerfMm"), 0, 100),
        margin_mm=_clamp_int(b.get("marginMm"), 0, 5_000),
        unit="cm" if b.get("unit") == "cm" else "mm"
    )

    cuts: List[CutPiece] = []
    for i, c in enumerate(state.get("cuts") or [], start=1):
        if not isinstance(c, dict):
            continue
        label = c.get("label")
        cuts.append(
            CutPiece(
                id=str(c.get("id") or f"P{i}"),
                label=label if isinstance(label, str) else "",
                width_mm=_clamp_int(c.get("widthMm"), 0, 1_000_000),
                height_mm=_clamp_int(c.get("heightMm"), 0, 1_000_000),
                quantity=_clamp_int(c.get("quantity"), 0, 100_000),
                rotation=_job_rotation(c.get("rotation"))
            )
        )

    stock: List[StockPiece] = []
    for i, s in enumerate(state.get("stock") or [], start=1):
        if not isinstance(s, dict):
            continue
        stock.append(
            StockPiece(
                id=str(s.get("id") or f"S{i}"),
                width_mm=_clamp_int(s.get("widthMm"), 0, 1_000_000),
                height_mm=_clamp_int(s.get("heightMm"), 0, 1_000_000),
                quantity=_clamp_int(s.get("quantity"), 0, 100_000)
            )
        )

    return Job(
        board=board,
        cuts=cuts,
        stock=stock,
        global_rotation_default=bool(state.get("globalRotationDefault"))
    )


def job_to_state(job: Job) -> Dict[str, Any]:
    return {
        "v": JOB_FORMAT_VERSION,
        "state": {
            "board": {
                "widthMm": job.board.width_mm,
                "heightMm": job.board.height_mm,
                "unit": job.board.unit,
                "kerfMm": job.board.kerf_mm,
                "marginMm": job.board.margin_mm,
            },
            "globalRotationDefault": job.global_rotation_default,
            "cuts": [
                {
                    "id": c.id,
                    "label": c.label,
                    "widthMm": c.width_mm,
                    "heightMm": c.height_mm,
                    "quantity": c.quantity,
                    "rotation": c.rotation,
                }
                for c in job.cuts
            ],
            "stock": [
                {
                    "id": s.id,
                    "widthMm": s.width_mm,
                    "heightMm": s.height_mm,
                    "quantity": s.quantity,
                }
                for s in job.stock
            ],
        },
    }


def load_job(path: str) -> Job:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Cannot read job file {path}: {e}")
    return job_from_state(data)


def save_job(path: str, job: Job) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(job_to_state(job), f, indent=2, ensure_ascii=False)
