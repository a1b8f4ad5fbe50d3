# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

import pandas as pd
import pytest

from transparencia_etl.logging.init import reset_logging


@pytest.fixture(autouse=True)
def _fresh_logging():
    # handler binds sys.stderr at setup time; capsys swaps it per test
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "output").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("ETL_SOURCE_DIRECTORY", raising=False)
        monkeypatch.delenv("ETL_OUTPUT_DIRECTORY", raising=False)
        monkeypatch.delenv("ETL_WORKERS", raising=False)
        yield p


@pytest.fixture()
def make_workbook() -> Callable[..., Path]:
    """Write an OOXML workbook from {sheet_name: rows}.

    The content is always OOXML; a ``.xls`` name yields a "legacy-binary"
    source file as far as suffix-based format detection is concerned, and
    pandas reads it back by sniffing the contents.
    """
    def _make(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as fh, pd.ExcelWriter(fh, engine="openpyxl") as writer:
            for sheet, rows in sheets.items():
                pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
        return path
    return _make


def info_rows(
    sujeto: str = "Secretaría de Finanzas",
    normativa: str = "Ley General",
    formato: str = "Procedimientos de adjudicación directa",
    periodos: str = "1er trimestre",
    b7: object = "",
    d7: object = "",
) -> list[list[object]]:
    """Rows of a metadata sheet: values in B1..B4, fiscal year in B7 / D7."""
    rows: list[list[object]] = [["", "", "", ""] for _ in range(7)]
    rows[0][:2] = ["Nombre del Sujeto Obligado:", sujeto]
    rows[1][:2] = ["Normativa:", normativa]
    rows[2][:2] = ["Formato:", formato]
    rows[3][:2] = ["Periodos:", periodos]
    rows[6][0] = "Ejercicio:"
    rows[6][1] = b7
    rows[6][3] = d7
    return rows


@pytest.fixture()
def metadata_rows() -> Callable[..., list[list[object]]]:
    return info_rows


def report_rows(width: int, data_rows: int, header_lines: int = 6, tag: str = "r") -> list[list[object]]:
    """Data sheet: ``header_lines`` title lines then ``data_rows`` rows of ``width`` cells."""
    header = [[f"Encabezado {i + 1}"] + [""] * (width - 1) for i in range(header_lines)]
    data = [[f"{tag}{r}c{c}" for c in range(width)] for r in range(data_rows)]
    return header + data


@pytest.fixture()
def data_rows() -> Callable[..., list[list[object]]]:
    return report_rows
