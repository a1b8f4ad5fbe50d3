from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from ..models.config_models import DEFAULT_TRAILING_NOTE_COLUMNS
from ..models.source_file import DocumentType, SourceFormat

"""Column reconciliation between the two export layouts.

Raw rows coming out of the row converter have a format-dependent shape:

- legacy-binary adjudicaciones: column 8 is a redundant tracking field
- both types: the last column is a type-specific trailing note
  (index N = 47 for adjudicaciones, N' = 61 for licitaciones)
- legacy-xml-based carries two extra timestamp columns (creation /
  modification) at 2 and 3, so every later index shifts by +2

Dropping the columns below makes both formats converge on one schema. The
table is a contract with the converter's output shape: a row whose width
does not match is a configuration error for the whole run.
"""

__all__ = [
    "ColumnLayoutError",
    "DropRule",
    "build_rules",
    "DEFAULT_RULES",
    "drop_columns",
    "rule_for",
    "apply_drop_set",
]

# legacy-xml-based: creation / modification timestamps
_XML_TIMESTAMP_COLUMNS = (2, 3)
_XML_SHIFT = len(_XML_TIMESTAMP_COLUMNS)
# legacy-binary adjudicaciones: redundant tracking column
_TRACKING_COLUMN = 8


class ColumnLayoutError(Exception):
    """Raised when a raw row does not have the width the drop rule expects."""


@dataclass(frozen=True)
class DropRule:
    """Columns to drop for one (format, document type) pair."""
    format: SourceFormat
    document_type: DocumentType
    drop: tuple[int, ...]  # 昇順・重複なし (0 始まり)
    raw_width: int  # 変換ツール出力の想定列数 (= 末尾注記列 + 1)

    @property
    def output_width(self) -> int:
        return self.raw_width - len(self.drop)


def build_rules(
    trailing_note_columns: Mapping[str, int] | None = None,
) -> dict[tuple[SourceFormat, DocumentType], DropRule]:
    """Build the lookup table from the per-type trailing note columns."""
    notes = dict(DEFAULT_TRAILING_NOTE_COLUMNS)
    if trailing_note_columns:
        notes.update(trailing_note_columns)
    adj = notes[DocumentType.ADJUDICACIONES.value]
    lic = notes[DocumentType.LICITACIONES.value]

    table = {
        (SourceFormat.LEGACY_BINARY, DocumentType.ADJUDICACIONES): (_TRACKING_COLUMN, adj),
        (SourceFormat.LEGACY_BINARY, DocumentType.LICITACIONES): (lic,),
        (SourceFormat.LEGACY_XML, DocumentType.ADJUDICACIONES): (
            *_XML_TIMESTAMP_COLUMNS, _TRACKING_COLUMN + _XML_SHIFT, adj + _XML_SHIFT,
        ),
        (SourceFormat.LEGACY_XML, DocumentType.LICITACIONES): (
            *_XML_TIMESTAMP_COLUMNS, lic + _XML_SHIFT,
        ),
    }
    rules: dict[tuple[SourceFormat, DocumentType], DropRule] = {}
    for (fmt, doc_type), drop in table.items():
        ordered = tuple(sorted(set(drop)))
        if len(ordered) != len(drop):
            raise ValueError(
                f"overlapping drop columns for {fmt.value}/{doc_type.value}: {drop}"
            )
        rules[(fmt, doc_type)] = DropRule(
            format=fmt, document_type=doc_type, drop=ordered, raw_width=ordered[-1] + 1
        )
    return rules


DEFAULT_RULES = build_rules()


def rule_for(
    fmt: SourceFormat,
    doc_type: DocumentType,
    rules: Mapping[tuple[SourceFormat, DocumentType], DropRule] = DEFAULT_RULES,
) -> DropRule:
    return rules[(fmt, doc_type)]


def drop_columns(
    fmt: SourceFormat,
    doc_type: DocumentType,
    rules: Mapping[tuple[SourceFormat, DocumentType], DropRule] = DEFAULT_RULES,
) -> tuple[int, ...]:
    """Return the zero-based column indices to drop for (format, type)."""
    return rule_for(fmt, doc_type, rules).drop


def apply_drop_set(row: Sequence[str], rule: DropRule) -> list[str]:
    """Remove the rule's columns from one raw row.

    Raises:
        ColumnLayoutError: the row width differs from ``rule.raw_width``; wider
            rows would shift every column after the drop set.
    """
    width = len(row)
    if width != rule.raw_width:
        raise ColumnLayoutError(
            f"{rule.format.value}/{rule.document_type.value}: expected {rule.raw_width} columns, got {width}"
        )
    dropped = set(rule.drop)
    return [v for i, v in enumerate(row) if i not in dropped]
