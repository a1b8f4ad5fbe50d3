from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

"""SourceFile domain model with the format / document type vocabulary.

A SourceFile is discovered once per run from a directory listing and never
mutated. Its format is decided by the filename suffix only:

- ``.xls``  -> legacy-binary
- ``.xlsx`` -> legacy-xml-based (files forwarded by the email pipeline)

DocumentType is never inferred from file contents; the caller supplies it.
"""

__all__ = [
    "SourceFormat",
    "DocumentType",
    "SourceFile",
]


class SourceFormat(Enum):
    """Spreadsheet export layout, keyed by filename suffix."""
    LEGACY_BINARY = "legacy-binary"
    LEGACY_XML = "legacy-xml-based"

    @property
    def suffix(self) -> str:
        return _SUFFIXES[self]

    @classmethod
    def from_suffix(cls, suffix: str) -> SourceFormat | None:
        """Return the format for a suffix such as ``.XLS``; None if unknown."""
        wanted = suffix.lower()
        for fmt, sfx in _SUFFIXES.items():
            if sfx == wanted:
                return fmt
        return None

    @classmethod
    def parse(cls, text: str) -> SourceFormat:
        """Accept either the suffix (``xls``/``.xlsx``) or the enum value."""
        key = text.strip().lower()
        if not key.startswith(".") and key in ("xls", "xlsx"):
            key = "." + key
        fmt = cls.from_suffix(key)
        if fmt is not None:
            return fmt
        return cls(key)


_SUFFIXES = {
    SourceFormat.LEGACY_BINARY: ".xls",
    SourceFormat.LEGACY_XML: ".xlsx",
}


class DocumentType(Enum):
    """Business content of an export (contract awards vs. tenders)."""
    ADJUDICACIONES = "adjudicaciones"
    LICITACIONES = "licitaciones"


@dataclass(frozen=True)
class SourceFile:
    """One spreadsheet export found in the source directory."""
    path: Path                # Full path to the file
    name: str                 # Filename as listed in the directory
    format: SourceFormat      # Layout derived from the suffix

    @classmethod
    def from_path(cls, path: Path) -> SourceFile | None:
        """Build a SourceFile, or None when the suffix is not a known format."""
        fmt = SourceFormat.from_suffix(path.suffix)
        if fmt is None:
            return None
        return cls(path=path, name=path.name, format=fmt)
