from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display for merge runs with tqdm (TTY only).

A single bar counts completed files. Files finish in arbitrary order under
the worker pool, so the bar is advanced by the collector, never by workers.
In non-TTY environments (CI, redirected output) the bar is disabled to
avoid ANSI control sequence spam.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stderr is a TTY and progress should be displayed."""
    return sys.stderr.isatty()


class ProgressTracker:
    """Progress tracker over completed files."""

    def __init__(self, total_files: int, *, description: str = "Merging files") -> None:
        self.total_files = total_files
        self.description = description
        self.completed = 0
        self.failed = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_files,
                desc=description,
                unit="file",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def finish_file(self, name: str, success: bool = True) -> None:
        """Record one completed file."""
        self.completed += 1
        if not success:
            self.failed += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_postfix(failed=self.failed, last=name[:20])

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
