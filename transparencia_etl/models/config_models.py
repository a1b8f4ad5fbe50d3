from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the spreadsheet catalog / merge tool.

The loader in ``transparencia_etl.config.loader`` builds these from YAML,
environment variables and CLI overrides. Defaults here are the values used
when no config file is present.
"""

DEFAULT_TRAILING_NOTE_COLUMNS: dict[str, int] = {
    "adjudicaciones": 47,
    "licitaciones": 61,
}


@dataclass(frozen=True)
class ConverterConfig:
    """Row converter selection.

    kind=pandas reads ``sheet`` (default: first) in-process; kind=command runs an external
    tool whose stdout is delimited text. ``command`` is an argv template that may
    contain ``{path}`` and ``{skip}`` placeholders.
    """
    kind: str = "pandas"
    command: tuple[str, ...] = ()
    delimiter: str = ","  # 外部ツール出力の区切り文字
    sheet: int | str = 0  # kind=pandas: 変換対象シート (位置 or 名前)


@dataclass(frozen=True)
class EtlConfig:
    """Root configuration object for both the index and merge operations."""
    source_directory: str = "."
    output_directory: str = "./output"
    workers: int = 4
    worker_mode: str = "process"  # process | thread
    skip_header_lines: int = 6
    delimiter: str = ";"
    trailing_note_columns: dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_TRAILING_NOTE_COLUMNS)
    )
    converter: ConverterConfig = field(default_factory=ConverterConfig)
