from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import ConfigError, apply_env_overrides, load_config
from ..excel.converter import build_converter
from ..logging.init import log_summary, setup_logging
from ..models.config_models import EtlConfig
from ..models.source_file import DocumentType, SourceFormat
from ..services.catalog import build_catalog
from ..services.discovery import DiscoveryError, scan_source_files
from ..services.merge import MergeAbortedError, run_merge
from ..services.metadata import ExtractionError
from ..services.summary import render_summary_line

"""CLI entrypoint.

Operations:
- index: print the catalog (header + one row per .xls/.xlsx file) to stdout
- merge: merge every file of one format into a timestamped consolidated file
  plus an adjacent error log

An unrecognized operation prints usage and exits 0.
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

OPERATIONS = ("index", "merge")
FORMAT_CHOICES = ("xls", "xlsx", SourceFormat.LEGACY_BINARY.value, SourceFormat.LEGACY_XML.value)
TYPE_CHOICES = tuple(t.value for t in DocumentType)


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env using python-dotenv (ETL_* overrides). Missing file is fine."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="transparencia-etl",
        description="Catalog and merge transparency-portal spreadsheet exports",
    )
    p.add_argument("operation", nargs="?", help="index | merge")
    p.add_argument("--directory", "-d", help="Directory holding the .xls/.xlsx exports")
    p.add_argument("--workers", "-w", type=int, help="Worker pool size for merge")
    p.add_argument("--format", "-f", dest="source_format", choices=FORMAT_CHOICES, help="Source format for merge")
    p.add_argument("--type", "-t", dest="document_type", choices=TYPE_CHOICES, help="Document type for merge")
    p.add_argument("--output-dir", "-o", help="Directory for merge outputs")
    p.add_argument("--config", "-c", type=Path, help="YAML config path (default: config/etl.yml if present)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p


def _resolve_config(args: argparse.Namespace) -> EtlConfig:
    cfg = apply_env_overrides(load_config(args.config))
    changes: dict[str, object] = {}
    if args.directory:
        changes["source_directory"] = args.directory
    if args.output_dir:
        changes["output_directory"] = args.output_dir
    if args.workers is not None:
        if args.workers < 1:
            raise ConfigError(f"--workers must be >= 1: {args.workers}")
        changes["workers"] = args.workers
    return replace(cfg, **changes) if changes else cfg


def _run_index(cfg: EtlConfig, directory: Path) -> int:
    logger = setup_logging()
    try:
        sources = scan_source_files(directory)
        rows = build_catalog(sources, delimiter=cfg.delimiter)
    except (DiscoveryError, ExtractionError) as e:
        logger.error(f"index: {e}")
        return EXIT_FATAL
    sys.stdout.write("\n".join(rows) + "\n")
    sys.stdout.flush()
    logger.info(f"indexed files={len(rows) - 1}")
    return EXIT_SUCCESS_ALL


def _run_merge(cfg: EtlConfig, args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    logger = setup_logging()
    if not args.source_format or not args.document_type:
        logger.error("merge requires --format and --type")
        parser.print_usage(sys.stderr)
        return EXIT_FATAL
    fmt = SourceFormat.parse(args.source_format)
    doc_type = DocumentType(args.document_type)
    try:
        converter = build_converter(cfg.converter)
        result = run_merge(cfg, fmt, doc_type, converter=converter)
    except DiscoveryError as e:
        logger.error(f"merge: {e}")
        return EXIT_FATAL
    except MergeAbortedError as e:
        logger.error(f"merge aborted (column layout mismatch): {e}")
        return EXIT_FATAL

    logger.info(f"output={result.output_path} errors={result.error_log_path}")
    summary_line = render_summary_line(result)
    # log_summary adds the "SUMMARY " prefix itself
    log_summary(summary_line[len("SUMMARY "):])

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # 空リスト [] が与えられた場合に sys.argv[1:] (pytest の引数) を読まないよう None のみ判定
    if argv is None:
        argv = sys.argv[1:]
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.operation not in OPERATIONS:
        parser.print_usage(sys.stdout)
        return EXIT_SUCCESS_ALL

    if args.debug:
        for h in logger.handlers:
            h.setLevel("DEBUG")
        logger.setLevel("DEBUG")
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"))
    try:
        cfg = _resolve_config(args)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    directory = Path(cfg.source_directory)
    if not directory.is_dir():
        logger.error(f"directory not found: {directory}")
        return EXIT_FATAL

    logger.info(f"{args.operation}: source directory {directory}")
    if args.operation == "index":
        return _run_index(cfg, directory)
    return _run_merge(cfg, args, parser)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
