from __future__ import annotations

from collections.abc import Callable, Iterable

from ..models.source_file import SourceFile
from .metadata import CATALOG_HEADERS, extract_metadata, quote

"""Catalog index: one delimited row of header metadata per export file.

The run is all-or-nothing. Files are processed one after another and the
first ExtractionError propagates to the caller; no partial catalog is
returned.
"""

__all__ = [
    "DELIMITER",
    "catalog_header",
    "build_catalog",
]

DELIMITER = ";"


def catalog_header(delimiter: str = DELIMITER) -> str:
    return delimiter.join(CATALOG_HEADERS)


def build_catalog(
    sources: Iterable[SourceFile],
    delimiter: str = DELIMITER,
    extract: Callable[[SourceFile], list[str]] = extract_metadata,
) -> list[str]:
    """Build the catalog rows, header first, then one row per source in input order."""
    rows = [catalog_header(delimiter)]
    for source in sources:
        fields = extract(source)
        fields.append(quote(source.name))
        rows.append(delimiter.join(fields))
    return rows
