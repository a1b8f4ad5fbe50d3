from __future__ import annotations

from pathlib import Path

from ..models.source_file import SourceFile, SourceFormat

"""Source file discovery shared by the index and merge operations.

Files are returned in directory listing order. That order is whatever the
filesystem yields and is NOT stable across runs or machines; neither
pipeline relies on it for correctness.
"""

__all__ = [
    "DiscoveryError",
    "scan_source_files",
]


class DiscoveryError(Exception):
    """Raised when the source directory cannot be listed."""


def scan_source_files(directory: Path, fmt: SourceFormat | None = None) -> list[SourceFile]:
    """Scan directory for .xls / .xlsx exports (non-recursive).

    Args:
        directory: Directory to scan
        fmt: Restrict the result to one format (None = both)

    Raises:
        DiscoveryError: If the directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise DiscoveryError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise DiscoveryError(f"Path is not a directory: {directory}")

    try:
        entries = [p for p in directory.iterdir() if p.is_file()]
    except OSError as e:
        raise DiscoveryError(f"Error reading directory {directory}: {e}") from e

    sources: list[SourceFile] = []
    for p in entries:
        source = SourceFile.from_path(p)
        if source is None:
            continue
        if fmt is not None and source.format is not fmt:
            continue
        sources.append(source)
    return sources
