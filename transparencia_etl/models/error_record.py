from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the merge error log.

One record per file that could not be converted. The record is written as a
single JSON Lines entry with a fixed key set so that the error log can be
followed up by hand (which file, which format/type pair, what went wrong).
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured per-file failure record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Spreadsheet filename that failed
        format: Source format value (``legacy-binary`` / ``legacy-xml-based``)
        document_type: Document type value (``adjudicaciones`` / ``licitaciones``)
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Converter error message or description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    format: str
    document_type: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, format: str, document_type: str, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            format=format,
            document_type=document_type,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize to a JSON Lines entry (no extra keys)."""
        return json.dumps(asdict(self), ensure_ascii=False)
