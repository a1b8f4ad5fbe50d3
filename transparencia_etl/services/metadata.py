from __future__ import annotations

import logging
from typing import Any

from ..excel.reader import SheetReadError, cell_at, cell_to_str, is_temporal, read_sheet
from ..models.source_file import SourceFile, SourceFormat

"""Header metadata extraction for one export file.

The five catalog fields live at fixed cells of the first sheet. The xlsx
files forwarded by the email pipeline carry two extra columns injected
before C, so the fiscal-year cell moves from B7 to D7 there.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "CATALOG_HEADERS",
    "CELL_MAP",
    "ExtractionError",
    "extract_metadata",
    "normalize_cell_value",
    "quote",
]

CATALOG_HEADERS: tuple[str, ...] = (
    "Nombre del Sujeto Obligado",
    "Normativa",
    "Formato",
    "Periodos",
    "Ejercicio",
    "Archivo",
)

# Format -> addresses of the five metadata fields, in CATALOG_HEADERS order.
CELL_MAP: dict[SourceFormat, tuple[str, ...]] = {
    SourceFormat.LEGACY_BINARY: ("B1", "B2", "B3", "B4", "B7"),
    SourceFormat.LEGACY_XML: ("B1", "B2", "B3", "B4", "D7"),
}

# Highest row any address in CELL_MAP touches.
_MAX_ROW = 7


class ExtractionError(Exception):
    """Raised when a file's first sheet cannot be read."""

    def __init__(self, file_name: str, message: str) -> None:
        super().__init__(f"{file_name}: {message}")
        self.file_name = file_name


def normalize_cell_value(value: str) -> str:
    """Trim and remove every colon ("Ejercicio: " -> "Ejercicio").

    Stripping again after the colon removal keeps the function idempotent.
    """
    return value.strip().replace(":", "").strip()


def quote(value: str) -> str:
    # "" inside a field doubles, as csv readers expect
    return '"' + value.replace('"', '""') + '"'


def _render_field(value: Any) -> str:
    # date/time cells are not labels: their ":" separators are kept
    if is_temporal(value):
        return quote(cell_to_str(value))
    return quote(normalize_cell_value(cell_to_str(value)))


def extract_metadata(source: SourceFile) -> list[str]:
    """Return the five quoted metadata fields of ``source``.

    A missing cell yields ``""``; an unreadable file raises ExtractionError.
    """
    try:
        df = read_sheet(source.path, 0, nrows=_MAX_ROW)
    except SheetReadError as e:
        raise ExtractionError(source.name, str(e.__cause__ or e)) from e

    fields = [_render_field(cell_at(df, addr)) for addr in CELL_MAP[source.format]]
    logger.debug("metadata file=%s format=%s fields=%s", source.name, source.format.value, fields)
    return fields
