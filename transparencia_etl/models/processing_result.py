from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

"""Merge result models.

FileStat carries what happened to one file; MergeResult aggregates a whole
merge run and feeds the SUMMARY line.
"""


@dataclass(frozen=True)
class FileStat:
    """Per-file merge statistics."""
    file_name: str  # ファイル名
    status: str  # success/failed
    merged_rows: int  # 成功時行数
    elapsed_seconds: float  # 変換+列除去の所要時間 (worker 側計測)


@dataclass(frozen=True)
class MergeResult:
    """Aggregated results of one merge run."""
    success_files: int
    failed_files: int
    total_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float
    output_path: Path | None = None  # consolidated rows
    error_log_path: Path | None = None  # JSON Lines per-file failures
    file_stats: list[FileStat] | None = None

    @property
    def total_files(self) -> int:
        return self.success_files + self.failed_files
