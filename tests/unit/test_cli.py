"""Tests for the fitcalc command line."""

import json

from fitcalc.cli import main
from fitcalc.core.knowledge.tolerance import BATCH_COLUMNS


def test_single_fit_text(capsys):
    assert main(["--D", "25", "--hole", "H7", "--shaft", "g6"]) == 0
    out = capsys.readouterr().out
    assert "D = 25.000 mm" in out
    assert "Smax =      0.041" in out
    assert "(clearance)" in out
    assert "(hole_basis)" in out


def test_single_fit_with_formulas(capsys):
    assert main(["--D", "25", "--hole", "H7", "--shaft", "g6", "--formulas"]) == 0
    assert "Dmax - dmin = ES - ei" in capsys.readouterr().out


def test_single_fit_json(capsys):
    assert main(["--D", "25", "--hole", "H7", "--shaft", "k6", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["classification"]["fit_type"] == "transition"
    assert data["deviations_mm"]["es"] == "0.015"


def test_missing_arguments(capsys):
    assert main(["--D", "25", "--hole", "H7"]) == 2
    assert "provide --D" in capsys.readouterr().err


def test_calculation_error_exit_code(capsys):
    assert main(["--D", "25", "--hole", "h7", "--shaft", "g6"]) == 1
    assert capsys.readouterr().err.startswith("ERROR:")


def test_batch_files(tmp_path, capsys):
    source = tmp_path / "in.csv"
    source.write_text("D;hole;shaft\n25;H7;g6\n25,H7,p6\n", encoding="utf-8")
    out = tmp_path / "out" / "fits.csv"
    out_json = tmp_path / "fits.json"

    code = main(["--batch", str(source), "--out", str(out), "--out-json", str(out_json)])

    assert code == 0
    assert capsys.readouterr().out.startswith("OK: 2 rows")
    lines = out.read_bytes().decode("utf-8").split("\r\n")
    assert lines[0] == ";".join(BATCH_COLUMNS)
    assert len(lines) == 3
    assert json.loads(out_json.read_text(encoding="utf-8"))["succeeded"] == 2


def test_batch_with_failures(tmp_path, capsys):
    source = tmp_path / "in.csv"
    source.write_text("25;H7;g6\n25;H7\n", encoding="utf-8")
    code = main(["--batch", str(source), "--out", str(tmp_path / "out.csv")])
    assert code == 1
    captured = capsys.readouterr()
    assert "OK: 1 rows" in captured.out
    assert "line 2: [INVALID_DESIGNATION]" in captured.err


def test_missing_batch_file(tmp_path, capsys):
    assert main(["--batch", str(tmp_path / "absent.csv")]) == 1
    assert "ERROR:" in capsys.readouterr().err


def test_prebuilt_index(shipped_index, tmp_path, capsys):
    path = tmp_path / "index.json"
    shipped_index.save(path)
    assert main(["--D", "40", "--hole", "H7", "--shaft", "h6", "--index", str(path), "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["bucket"] == 7
    assert data["classification"]["fit_type"] == "clearance_zero"
