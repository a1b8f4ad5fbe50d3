from __future__ import annotations

import pytest

from transparencia_etl.models.source_file import DocumentType, SourceFormat
from transparencia_etl.services.reconcile import (
    DEFAULT_RULES,
    ColumnLayoutError,
    apply_drop_set,
    build_rules,
    drop_columns,
    rule_for,
)

BIN = SourceFormat.LEGACY_BINARY
XML = SourceFormat.LEGACY_XML
ADJ = DocumentType.ADJUDICACIONES
LIC = DocumentType.LICITACIONES


def test_drop_set_literal_fixtures():
    assert drop_columns(XML, ADJ) == (2, 3, 10, 49)
    assert drop_columns(BIN, ADJ) == (8, 47)
    assert drop_columns(BIN, LIC) == (61,)
    assert drop_columns(XML, LIC) == (2, 3, 63)


def test_every_pair_has_a_rule():
    assert set(DEFAULT_RULES) == {(f, t) for f in SourceFormat for t in DocumentType}


def test_drop_columns_is_pure():
    assert drop_columns(XML, ADJ) == drop_columns(XML, ADJ)
    assert drop_columns(XML, ADJ) is rule_for(XML, ADJ).drop


@pytest.mark.parametrize(
    "fmt, doc_type, raw_width",
    [(BIN, ADJ, 48), (BIN, LIC, 62), (XML, ADJ, 50), (XML, LIC, 64)],
)
def test_raw_width_ends_at_trailing_note_column(fmt, doc_type, raw_width):
    assert rule_for(fmt, doc_type).raw_width == raw_width


@pytest.mark.parametrize("doc_type", [ADJ, LIC])
def test_both_formats_converge_on_same_output_width(doc_type):
    assert rule_for(BIN, doc_type).output_width == rule_for(XML, doc_type).output_width


def test_both_formats_converge_on_same_columns():
    # xml rows are binary rows with two timestamp columns inserted at 2 and 3
    binary_row = [f"c{i}" for i in range(48)]
    xml_row = binary_row[:2] + ["creado", "modificado"] + binary_row[2:]
    assert apply_drop_set(binary_row, rule_for(BIN, ADJ)) == apply_drop_set(xml_row, rule_for(XML, ADJ))


def test_apply_drop_set_removes_exact_positions():
    row = [str(i) for i in range(48)]
    out = apply_drop_set(row, rule_for(BIN, ADJ))
    assert len(out) == 46
    assert "8" not in out and "47" not in out
    assert out[:8] == [str(i) for i in range(8)]
    assert out[8] == "9"


@pytest.mark.parametrize("width", [47, 49, 50, 10])
def test_unexpected_width_is_fatal(width):
    with pytest.raises(ColumnLayoutError, match="expected 48 columns"):
        apply_drop_set(["x"] * width, rule_for(BIN, ADJ))


def test_wider_rows_never_pass_through():
    rule = rule_for(BIN, ADJ)
    with pytest.raises(ColumnLayoutError, match="expected 48 columns, got 50"):
        apply_drop_set([f"c{i}" for i in range(50)], rule)
    with pytest.raises(ColumnLayoutError, match="expected 62 columns, got 70"):
        apply_drop_set(["x"] * 70, rule_for(BIN, LIC))


def test_trailing_note_columns_are_configurable():
    rules = build_rules({"adjudicaciones": 40, "licitaciones": 55})
    assert drop_columns(BIN, ADJ, rules) == (8, 40)
    assert drop_columns(XML, ADJ, rules) == (2, 3, 10, 42)
    assert drop_columns(BIN, LIC, rules) == (55,)
    assert drop_columns(XML, LIC, rules) == (2, 3, 57)


def test_partial_override_keeps_other_default():
    rules = build_rules({"licitaciones": 70})
    assert drop_columns(BIN, ADJ, rules) == (8, 47)
    assert drop_columns(BIN, LIC, rules) == (70,)


def test_overlapping_columns_rejected():
    with pytest.raises(ValueError, match="overlapping"):
        build_rules({"adjudicaciones": 8})
