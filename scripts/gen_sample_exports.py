#!/usr/bin/env python3
"""Generate a directory of synthetic transparency exports for manual runs.

Each generated workbook has:
- Sheet 1 "Informacion": metadata in B1..B4 and the fiscal year in B7
  (.xls layout) or D7 (.xlsx email-pipeline layout)
- Sheet 2 "Reporte": 6 header lines followed by data rows whose width
  matches the column reconciliation table for the chosen document type

pandas can no longer write BIFF .xls files, so the "legacy-binary" samples
are OOXML workbooks saved under a .xls name; pandas detects the real
contents when reading them back. Use ``converter.sheet: 1`` to merge them.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

from transparencia_etl.models.source_file import DocumentType, SourceFormat
from transparencia_etl.services.reconcile import rule_for

SUJETOS = [
    "Secretaría de Finanzas",
    "Instituto de Vivienda",
    "Comisión Estatal del Agua",
    "Secretaría de Obras Públicas",
]


def info_sheet(fmt: SourceFormat, sujeto: str, doc_type: DocumentType, year: int) -> pd.DataFrame:
    """Build the metadata sheet for one export."""
    rows: list[list[object]] = [[""] * 4 for _ in range(7)]
    rows[0][:2] = ["Nombre del Sujeto Obligado:", f"  {sujeto}  "]
    rows[1][:2] = ["Normativa:", "Ley General de Transparencia:"]
    rows[2][:2] = ["Formato:", f"Procedimientos de {doc_type.value}"]
    rows[3][:2] = ["Periodos:", "1er trimestre, 2do trimestre"]
    year_col = 3 if fmt is SourceFormat.LEGACY_XML else 1
    rows[6][0] = "Ejercicio:"
    rows[6][year_col] = year
    return pd.DataFrame(rows)


def report_sheet(fmt: SourceFormat, doc_type: DocumentType, rows: int, seed: int) -> pd.DataFrame:
    """Build the data sheet: 6 header lines then ``rows`` data rows."""
    rng = np.random.default_rng(seed)
    width = rule_for(fmt, doc_type).raw_width
    header = [[f"Encabezado {i + 1}"] + [""] * (width - 1) for i in range(5)]
    header.append([f"Campo {c}" for c in range(width)])
    data = [
        [f"r{r}c{c}-{rng.integers(1000, 9999)}" for c in range(width)]
        for r in range(rows)
    ]
    return pd.DataFrame(header + data)


def create_export(
    output_path: Path, fmt: SourceFormat, doc_type: DocumentType, sujeto: str, year: int, rows: int, seed: int
) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    # file handle: ExcelWriter would reject the .xls suffix for openpyxl
    with output_path.open("wb") as fh, pd.ExcelWriter(fh, engine="openpyxl") as writer:
        info_sheet(fmt, sujeto, doc_type, year).to_excel(writer, sheet_name="Informacion", header=False, index=False)
        report_sheet(fmt, doc_type, rows, seed).to_excel(writer, sheet_name="Reporte", header=False, index=False)
    print(f"Created export: {output_path}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate synthetic .xls/.xlsx transparency exports")
    parser.add_argument("output_dir", type=Path, help="Directory to write the exports to")
    parser.add_argument("--files", type=int, default=4, help="Files per format (default: 4)")
    parser.add_argument("--rows", type=int, default=20, help="Data rows per file (default: 20)")
    parser.add_argument(
        "--type", dest="document_type", choices=[t.value for t in DocumentType], default="adjudicaciones"
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.files <= 0 or args.rows < 0:
        print("Error: --files must be positive and --rows non-negative", file=sys.stderr)
        return 1

    doc_type = DocumentType(args.document_type)
    for fmt in SourceFormat:
        for i in range(args.files):
            sujeto = SUJETOS[i % len(SUJETOS)]
            name = f"{doc_type.value}_{i + 1:03d}{fmt.suffix}"
            create_export(args.output_dir / name, fmt, doc_type, sujeto, 2017 + i % 3, args.rows, args.seed + i)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
