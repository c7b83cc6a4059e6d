"""End-to-end tests for the command-line entry point."""

import json

from main import main


def write(tmp_path, name, text):
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return str(p)


def test_main_writes_pdf_and_job(tmp_path, capsys):
    pieces = write(tmp_path, "pieces.csv",
                   "label,width,height,quantity,rotation\nP1,600,400,4,\nP2,3000,300,1,forbidden\n")
    stock = write(tmp_path, "stock.csv", "width,height,quantity\n700,500,1\n")
    cfg = write(tmp_path, "config.properties",
                "board-width=2400\nboard-height=1200\nkerf=3\nrotation-default=true\n")
    out = tmp_path / "out.pdf"
    job = tmp_path / "job.json"

    code = main([pieces, cfg, str(out), "--stock", stock, "--export-job", str(job)])

    assert code == 0
    assert out.read_bytes().startswith(b"%PDF")
    saved = json.loads(job.read_text(encoding="utf-8"))
    assert len(saved["state"]["cuts"]) == 2
    assert saved["state"]["stock"][0]["widthMm"] == 700

    printed = capsys.readouterr().out
    assert "1 from stock" in printed
    assert "  700 x 500 mm: 1" in printed
    assert "  2400 x 1200 mm: 1" in printed
    assert "1 piece(s) not placed (tooLarge: 1):" in printed
    assert "P2 x1 [tooLarge]" in printed


def test_main_from_job_file(tmp_path, capsys):
    job = write(tmp_path, "job.json", json.dumps({
        "v": 1,
        "state": {
            "board": {"widthMm": 1000, "heightMm": 1000, "kerfMm": 0, "marginMm": 0, "unit": "mm"},
            "globalRotationDefault": True,
            "cuts": [{"id": "a", "label": "A", "widthMm": 500, "heightMm": 500,
                      "quantity": 4, "rotation": "inherit"}],
        },
    }))
    cfg = write(tmp_path, "config.properties", "generate-summary=false\n")
    out = tmp_path / "out.pdf"

    assert main([cfg, str(out), "--job", job]) == 0
    printed = capsys.readouterr().out
    assert "1 board " in printed
    assert "All pieces placed." in printed


def test_main_reports_config_errors(tmp_path, capsys):
    pieces = write(tmp_path, "pieces.csv", "label,width,height,quantity\nA,10,10,1\n")
    cfg = write(tmp_path, "config.properties", "kerf=3\n")
    out = tmp_path / "out.pdf"

    assert main([pieces, cfg, str(out)]) == 1
    assert "[ERROR]" in capsys.readouterr().out
    assert not out.exists()


def test_main_reports_non_finite_quantities(tmp_path, capsys):
    pieces = write(tmp_path, "pieces.csv", "label,width,height,quantity\nA,10,10,inf\n")
    stock = write(tmp_path, "stock.csv", "width,height,quantity\n800,600,inf\n")
    cfg = write(tmp_path, "config.properties", "board-width=2400\nboard-height=1200\n")
    out = tmp_path / "out.pdf"

    assert main([pieces, cfg, str(out)]) == 1
    printed = capsys.readouterr().out
    assert "[ERROR] Row 2: column 'quantity' must be a finite number" in printed

    ok_pieces = write(tmp_path, "ok.csv", "label,width,height,quantity\nA,10,10,1\n")
    assert main([ok_pieces, cfg, str(out), "--stock", stock]) == 1
    assert "[ERROR]" in capsys.readouterr().out
    assert not out.exists()
