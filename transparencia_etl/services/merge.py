from __future__ import annotations

import csv
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from datetime import UTC, datetime
from pathlib import Path

from ..excel.converter import ConversionError, RowConverter, build_converter
from ..logging.error_log import ErrorLogBuffer, run_stamp
from ..models.config_models import EtlConfig
from ..models.error_record import ErrorRecord
from ..models.processing_result import FileStat, MergeResult
from ..models.source_file import DocumentType, SourceFile, SourceFormat
from .discovery import scan_source_files
from .progress import ProgressTracker
from .reconcile import ColumnLayoutError, DropRule, apply_drop_set, build_rules, rule_for

"""Merge orchestration: many exports of one format -> one consolidated table.

Fan-out / fan-in:
1. The drop rule for (format, type) is resolved once per run
2. Each file is submitted to a bounded worker pool; the worker converts the
   file, drops the reconciled columns and returns the whole row buffer
3. The collector (this process) writes each buffer with a single
   ``writerows`` call as futures complete, so rows of different files never
   interleave; row order across files follows completion order
4. A failing file is recorded in the error log and the run continues
5. A row width that contradicts the drop rule aborts the run

No header row is written: the converter output starts after the skipped
header lines, and the consolidated file never repeats per-file headers.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "MergeAbortedError",
    "convert_file",
    "merge_files",
    "merge_output_paths",
    "run_merge",
]

ERROR_CONVERSION = "CONVERSION_FAILED"
ERROR_LAYOUT = "COLUMN_LAYOUT_MISMATCH"
ERROR_UNEXPECTED = "UNEXPECTED_ERROR"


class MergeAbortedError(Exception):
    """Raised when a merge run cannot continue (column layout mismatch)."""


def _is_blank(row: Sequence[str]) -> bool:
    return all(not cell.strip() for cell in row)


def convert_file(
    converter: RowConverter,
    path: Path,
    rule: DropRule,
    skip_header_lines: int,
) -> tuple[list[list[str]], float]:
    """Worker unit: convert one file and drop the reconciled columns.

    Returns the filtered row buffer and the elapsed seconds. Runs inside pool
    workers, so it must stay a module-level function.
    """
    start = time.perf_counter()
    raw_rows = converter.convert_rows(path, skip_header_lines)
    rows = [apply_drop_set(row, rule) for row in raw_rows if not _is_blank(row)]
    return rows, time.perf_counter() - start


def merge_output_paths(
    output_dir: Path, fmt: SourceFormat, doc_type: DocumentType, stamp: str | None = None
) -> tuple[Path, Path]:
    """Consolidated output and adjacent error log for one run."""
    stem = f"merge-{fmt.value}-{doc_type.value}-{stamp or run_stamp()}"
    return output_dir / f"{stem}.csv", output_dir / f"{stem}.errors.log"


def _default_executor(worker_mode: str, workers: int) -> Executor:
    if worker_mode == "thread":
        return ThreadPoolExecutor(max_workers=workers)
    if worker_mode == "process":
        return ProcessPoolExecutor(max_workers=workers)
    raise ValueError(f"unknown worker mode: {worker_mode}")


def merge_files(
    sources: Sequence[SourceFile],
    fmt: SourceFormat,
    doc_type: DocumentType,
    *,
    converter: RowConverter,
    output_dir: Path,
    workers: int = 4,
    worker_mode: str = "process",
    skip_header_lines: int = 6,
    delimiter: str = ";",
    rules: Mapping[tuple[SourceFormat, DocumentType], DropRule] | None = None,
    executor_factory: Callable[[int], Executor] | None = None,
    stamp: str | None = None,
) -> MergeResult:
    """Merge the rows of ``sources`` (all of format ``fmt``) into one file.

    Args:
        sources: Files to merge; every one must be of format ``fmt``
        fmt / doc_type: Selects the column drop rule
        converter: Row converter shipped to the workers
        output_dir: Where the consolidated file and error log are written
        workers: Pool size (>= 1)
        worker_mode: ``process`` or ``thread``; ignored with executor_factory
        executor_factory: Builds the executor from the worker count (tests)
        stamp: Fixed timestamp for the output names (tests)

    Returns:
        MergeResult with per-file stats and the two output paths

    Raises:
        MergeAbortedError: A converted row does not match the drop rule's layout
    """
    if workers < 1:
        raise ValueError(f"workers must be >= 1: {workers}")
    stray = [s.name for s in sources if s.format is not fmt]
    if stray:
        raise ValueError(f"files not in format {fmt.value}: {stray}")

    start_time = datetime.now(UTC)
    rule = rule_for(fmt, doc_type, rules if rules is not None else build_rules())
    logger.info(
        "merge format=%s type=%s files=%d workers=%d drop=%s",
        fmt.value, doc_type.value, len(sources), workers, list(rule.drop),
    )

    output_dir.mkdir(parents=True, exist_ok=True)
    output_path, error_path = merge_output_paths(output_dir, fmt, doc_type, stamp)
    part_path = output_path.with_name(output_path.name + ".part")
    error_log = ErrorLogBuffer(error_path)

    file_stats: list[FileStat] = []
    total_rows = 0
    success_files = 0
    failed_files = 0

    def _record_failure(source: SourceFile, error_type: str, message: str) -> None:
        error_log.append(
            ErrorRecord.create(
                file=source.name,
                format=fmt.value,
                document_type=doc_type.value,
                error_type=error_type,
                message=message,
            )
        )

    factory = executor_factory or (lambda n: _default_executor(worker_mode, n))
    pool = factory(workers)
    try:
        with part_path.open("w", encoding="utf-8", newline="") as out, ProgressTracker(len(sources)) as progress:
            writer = csv.writer(out, delimiter=delimiter, lineterminator="\n")
            futures: dict[Future[tuple[list[list[str]], float]], SourceFile] = {
                pool.submit(convert_file, converter, s.path, rule, skip_header_lines): s
                for s in sources
            }
            for future in as_completed(futures):
                source = futures[future]
                try:
                    rows, elapsed = future.result()
                except ColumnLayoutError as e:
                    _record_failure(source, ERROR_LAYOUT, str(e))
                    pool.shutdown(wait=False, cancel_futures=True)
                    raise MergeAbortedError(f"{source.name}: {e}") from e
                except ConversionError as e:
                    failed_files += 1
                    _record_failure(source, ERROR_CONVERSION, str(e))
                    file_stats.append(FileStat(source.name, "failed", 0, 0.0))
                    logger.warning("merge failed file=%s error=%s", source.name, e)
                    progress.finish_file(source.name, success=False)
                    continue
                except Exception as e:
                    # per-file isolation: anything else a worker raises is logged, not fatal
                    failed_files += 1
                    _record_failure(source, ERROR_UNEXPECTED, f"{type(e).__name__}: {e}")
                    file_stats.append(FileStat(source.name, "failed", 0, 0.0))
                    logger.warning("merge failed file=%s error=%s: %s", source.name, type(e).__name__, e)
                    progress.finish_file(source.name, success=False)
                    continue

                writer.writerows(rows)
                success_files += 1
                total_rows += len(rows)
                file_stats.append(FileStat(source.name, "success", len(rows), elapsed))
                logger.debug("merged file=%s rows=%d elapsed=%.3f", source.name, len(rows), elapsed)
                progress.finish_file(source.name, success=True)
    except BaseException:
        # aborted, I/O failure or interrupt: no partial output, keep the failures seen so far
        pool.shutdown(wait=False, cancel_futures=True)
        part_path.unlink(missing_ok=True)
        error_log.flush()
        raise
    finally:
        pool.shutdown(wait=True)

    part_path.replace(output_path)
    error_log.flush()

    end_time = datetime.now(UTC)
    elapsed_total = (end_time - start_time).total_seconds()
    throughput = total_rows / elapsed_total if elapsed_total > 0 else 0.0
    return MergeResult(
        success_files=success_files,
        failed_files=failed_files,
        total_rows=total_rows,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_total,
        throughput_rows_per_sec=throughput,
        output_path=output_path,
        error_log_path=error_path,
        file_stats=file_stats,
    )


def run_merge(
    config: EtlConfig,
    fmt: SourceFormat,
    doc_type: DocumentType,
    converter: RowConverter | None = None,
) -> MergeResult:
    """Scan ``config.source_directory`` for files of ``fmt`` and merge them."""
    sources = scan_source_files(Path(config.source_directory), fmt)
    return merge_files(
        sources,
        fmt,
        doc_type,
        converter=converter or build_converter(config.converter),
        output_dir=Path(config.output_directory),
        workers=config.workers,
        worker_mode=config.worker_mode,
        skip_header_lines=config.skip_header_lines,
        delimiter=config.delimiter,
        rules=build_rules(config.trailing_note_columns),
    )
