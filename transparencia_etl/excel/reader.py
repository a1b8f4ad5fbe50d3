from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.utils.cell import coordinate_to_tuple

"""Spreadsheet reader for the legacy exports.

Metadata always comes from the first sheet, by position: its display name
varies ("Informacion" / "Información" / ...) but it is always the first one.
Sheets are read header-less so that A1 addresses map directly onto DataFrame
positions (row 1 -> iloc 0, column A -> iloc 0).

pandas picks the engine from the file contents (xlrd for BIFF ``.xls``,
openpyxl for ``.xlsx``).
"""

__all__ = [
    "SheetReadError",
    "read_sheet",
    "cell_to_str",
    "cell_at",
    "cell_value",
    "is_temporal",
    "sheet_rows",
]


class SheetReadError(Exception):
    """Raised when a spreadsheet cannot be opened or parsed."""


def read_sheet(path: Path, sheet: int | str = 0, nrows: int | None = None) -> pd.DataFrame:
    """Read one sheet of ``path`` (default: the first) without a header row.

    Parameters
    ----------
    path: spreadsheet path (.xls / .xlsx)
    sheet: シート位置 (0 始まり) またはシート名
    nrows: 先頭から読む行数 (None なら全行)
    """
    try:
        # keep_default_na=False: セル文字列 "NA" 等を NaN に変換しない
        return pd.read_excel(
            path, sheet_name=sheet, header=None, nrows=nrows, keep_default_na=False, na_values=[""]
        )
    except Exception as e:
        raise SheetReadError(f"{path.name}: {e}") from e


def cell_to_str(value: Any) -> str:
    """Convert an arbitrary cell value to text (empty string for blanks)."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (datetime, date, pd.Timestamp)):
        if pd.isna(value):
            return ""
        if isinstance(value, datetime):
            # Excel stores plain dates as midnight datetimes
            if value.time() == time(0, 0):
                return value.date().isoformat()
            return value.isoformat(sep=" ", timespec="seconds")
        return value.isoformat()
    if isinstance(value, time):
        return value.isoformat(timespec="seconds")
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if pd.isna(value):
        return ""
    return str(value)


def cell_at(df: pd.DataFrame, address: str) -> Any:
    """Raw value of cell ``address`` (A1 notation), None when outside the sheet."""
    row, col = coordinate_to_tuple(address)
    r, c = row - 1, col - 1
    if r >= df.shape[0] or c >= df.shape[1]:
        return None
    return df.iat[r, c]


def is_temporal(value: Any) -> bool:
    """True for date/time cell values (not for text that looks like one)."""
    return isinstance(value, (datetime, date, time)) and not pd.isna(value)


def cell_value(df: pd.DataFrame, address: str) -> str:
    """Return the text of cell ``address`` (A1 notation), "" when absent."""
    return cell_to_str(cell_at(df, address))


def sheet_rows(df: pd.DataFrame, skip: int = 0) -> list[list[str]]:
    """All rows of a header-less sheet as text, dropping the first ``skip`` rows."""
    rows: list[list[str]] = []
    for raw in df.iloc[skip:].itertuples(index=False, name=None):
        rows.append([cell_to_str(v) for v in raw])
    return rows
