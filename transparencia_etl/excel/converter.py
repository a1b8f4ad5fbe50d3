from __future__ import annotations

import csv
import io
import shutil
import subprocess
from pathlib import Path
from typing import Protocol

from ..models.config_models import ConverterConfig
from .reader import SheetReadError, read_sheet, sheet_rows

"""Row converters: one spreadsheet file -> delimited text rows.

The merge pipeline only depends on the narrow ``RowConverter`` protocol so
that column reconciliation can be tested without any external process.

- PandasRowConverter: in-process, reads one sheet (default: first) with pandas.
- CommandRowConverter: runs an external tool (argv template with ``{path}``
  and optional ``{skip}`` placeholders) and parses its stdout with csv.

Converters must be picklable: they are shipped to ProcessPoolExecutor workers.
"""

__all__ = [
    "ConversionError",
    "RowConverter",
    "PandasRowConverter",
    "CommandRowConverter",
    "build_converter",
]


class ConversionError(Exception):
    """Raised when a single file cannot be turned into rows."""


class RowConverter(Protocol):
    def convert_rows(self, path: Path, skip_header_lines: int) -> list[list[str]]:
        ...


class PandasRowConverter:
    """Read one sheet in-process and render every cell as text."""

    def __init__(self, sheet: int | str = 0) -> None:
        self.sheet = sheet

    def convert_rows(self, path: Path, skip_header_lines: int) -> list[list[str]]:
        try:
            df = read_sheet(path, self.sheet)
        except SheetReadError as e:
            raise ConversionError(str(e)) from e
        return sheet_rows(df, skip=skip_header_lines)

    def __repr__(self) -> str:  # pragma: no cover (trivial)
        return f"PandasRowConverter(sheet={self.sheet!r})"


class CommandRowConverter:
    """Delegate conversion to an external tool writing delimited text to stdout."""

    def __init__(self, command: tuple[str, ...] | list[str], delimiter: str = ",", encoding: str = "utf-8") -> None:
        if not command:
            raise ValueError("converter command must not be empty")
        self.command = tuple(command)
        self.delimiter = delimiter
        self.encoding = encoding

    @property
    def handles_skip(self) -> bool:
        """True when the tool itself skips the header lines (``{skip}`` in template)."""
        return any("{skip}" in part for part in self.command)

    def build_argv(self, path: Path, skip_header_lines: int) -> list[str]:
        """Fill the placeholders; any other brace in the template is passed through as is."""
        return [
            part.replace("{path}", str(path)).replace("{skip}", str(skip_header_lines))
            for part in self.command
        ]

    def convert_rows(self, path: Path, skip_header_lines: int) -> list[list[str]]:
        argv = self.build_argv(path, skip_header_lines)
        if shutil.which(argv[0]) is None:
            raise ConversionError(f"{path.name}: converter executable not found: {argv[0]}")
        try:
            proc = subprocess.run(argv, capture_output=True, check=True)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode(self.encoding, errors="replace").strip()
            raise ConversionError(f"{path.name}: converter exited with {e.returncode}: {stderr}") from e
        except OSError as e:
            raise ConversionError(f"{path.name}: converter failed to start: {e}") from e

        text = proc.stdout.decode(self.encoding, errors="replace")
        rows = list(csv.reader(io.StringIO(text), delimiter=self.delimiter))
        if not self.handles_skip:
            rows = rows[skip_header_lines:]
        return rows

    def __repr__(self) -> str:  # pragma: no cover (trivial)
        return f"CommandRowConverter(command={self.command!r})"


def build_converter(config: ConverterConfig) -> RowConverter:
    if config.kind == "command":
        return CommandRowConverter(config.command, delimiter=config.delimiter)
    if config.kind == "pandas":
        return PandasRowConverter(sheet=config.sheet)
    raise ValueError(f"unknown converter kind: {config.kind}")
