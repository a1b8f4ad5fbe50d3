from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from transparencia_etl.cli import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL, main as cli_main

pytestmark = pytest.mark.integration

# metadata on the first sheet, report rows on the second
CONFIG = """converter:
  kind: pandas
  sheet: 1
workers: 2
worker_mode: {mode}
"""


def _write_config(workdir: Path, mode: str = "thread") -> None:
    (workdir / "config" / "etl.yml").write_text(CONFIG.format(mode=mode), encoding="utf-8")


def _read_csv(path: Path) -> list[list[str]]:
    with path.open(encoding="utf-8", newline="") as f:
        return list(csv.reader(f, delimiter=";"))


def _outputs(output_dir: Path) -> tuple[Path, Path]:
    csvs = list(output_dir.glob("merge-*.csv"))
    logs = list(output_dir.glob("merge-*.errors.log"))
    assert len(csvs) == 1 and len(logs) == 1
    return csvs[0], logs[0]


@pytest.mark.parametrize("mode", ["thread", "process"])
def test_merge_run_all_success(temp_workdir: Path, make_workbook, metadata_rows, data_rows, capsys, mode):
    _write_config(temp_workdir, mode)
    data = temp_workdir / "data"
    for i in range(3):
        make_workbook(
            data / f"adj_{i}.xls",
            {"Informacion": metadata_rows(b7=2023), "Reporte": data_rows(48, 4, tag=f"f{i}r")},
        )
    # other format in the same directory is not picked up
    make_workbook(data / "otro.xlsx", {"Informacion": metadata_rows(), "Reporte": data_rows(50, 2)})

    code = cli_main(["merge", "-d", "data", "-o", "output", "-f", "xls", "-t", "adjudicaciones"])
    err = capsys.readouterr().err

    assert code == EXIT_SUCCESS_ALL
    out_csv, err_log = _outputs(temp_workdir / "output")
    assert out_csv.name.startswith("merge-legacy-binary-adjudicaciones-")
    rows = _read_csv(out_csv)
    assert len(rows) == 12
    assert all(len(r) == 46 for r in rows)
    # columns 8 and 47 are gone
    flat = {cell for r in rows for cell in r}
    assert "f0r0c8" not in flat and "f0r0c47" not in flat
    assert "f0r0c7" in flat and "f2r3c46" in flat
    assert not any(cell.startswith("Encabezado") for cell in flat)
    assert err_log.read_text(encoding="utf-8") == ""
    assert "SUMMARY files=3 success=3 failed=0 rows=12" in err
    assert not list((temp_workdir / "output").glob("*.part"))


def test_merge_run_partial_failure(temp_workdir: Path, make_workbook, metadata_rows, data_rows, capsys):
    _write_config(temp_workdir)
    data = temp_workdir / "data"
    make_workbook(data / "lic_a.xlsx", {"Informacion": metadata_rows(), "Reporte": data_rows(64, 3, tag="ar")})
    make_workbook(data / "lic_b.xlsx", {"Informacion": metadata_rows(), "Reporte": data_rows(64, 2, tag="br")})
    (data / "lic_roto.xlsx").write_bytes(b"this is not a spreadsheet")

    code = cli_main(["merge", "-d", "data", "-o", "output", "-f", "xlsx", "-t", "licitaciones"])
    err = capsys.readouterr().err

    assert code == EXIT_PARTIAL_FAILURE
    out_csv, err_log = _outputs(temp_workdir / "output")
    rows = _read_csv(out_csv)
    assert len(rows) == 5
    assert all(len(r) == 61 for r in rows)
    # rows of one file stay contiguous
    tags = [r[0][:2] for r in rows]
    assert tags in (["ar"] * 3 + ["br"] * 2, ["br"] * 2 + ["ar"] * 3)

    entries = [json.loads(line) for line in err_log.read_text(encoding="utf-8").splitlines()]
    assert len(entries) == 1
    assert entries[0]["file"] == "lic_roto.xlsx"
    assert entries[0]["format"] == "legacy-xml-based"
    assert entries[0]["document_type"] == "licitaciones"
    assert entries[0]["error_type"] == "CONVERSION_FAILED"
    assert "WARN merge failed file=lic_roto.xlsx" in err
    assert "SUMMARY files=3 success=2 failed=1 rows=5" in err


def test_merge_run_layout_mismatch_aborts(temp_workdir: Path, make_workbook, metadata_rows, data_rows, capsys):
    _write_config(temp_workdir)
    data = temp_workdir / "data"
    # 47 columns where the binary adjudicaciones layout has 48
    make_workbook(data / "corto.xls", {"Informacion": metadata_rows(), "Reporte": data_rows(47, 2)})

    code = cli_main(["merge", "-d", "data", "-o", "output", "-f", "xls", "-t", "adjudicaciones"])
    err = capsys.readouterr().err

    assert code == EXIT_FATAL
    output_dir = temp_workdir / "output"
    assert not list(output_dir.glob("merge-*.csv"))
    assert not list(output_dir.glob("*.part"))
    entries = [json.loads(line) for line in next(output_dir.glob("*.errors.log")).read_text(encoding="utf-8").splitlines()]
    assert [e["error_type"] for e in entries] == ["COLUMN_LAYOUT_MISMATCH"]
    assert "expected 48 columns, got 47" in err
