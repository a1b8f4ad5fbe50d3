from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Error log buffering for merge runs.

- JSON Lines, fixed key set (see ErrorRecord)
- One file per merge run, placed next to the consolidated output and sharing
  its timestamped stem: ``merge-<format>-<type>-YYYYMMDD-HHMMSS.errors.log``
- Records are buffered in memory and appended on flush(); only the collector
  in the parent process touches the buffer, so no locking is needed.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "TIMESTAMP_FMT",
    "run_stamp",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


def run_stamp(now: datetime | None = None) -> str:
    """UTC timestamp used to name the output pair of one run."""
    return (now or datetime.now(UTC)).strftime(TIMESTAMP_FMT)


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush writes JSON Lines."""

    def __init__(self, file_path: Path) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path = file_path

    @property
    def file_path(self) -> Path:
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path:
        """Append buffered records to the log file (created even when empty)."""
        fp = self._file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
