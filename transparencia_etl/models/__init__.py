"""Domain models for the spreadsheet catalog / merge tool.

This package contains the value types shared by the index and merge pipelines.
"""

from .config_models import ConverterConfig, EtlConfig
from .error_record import ErrorRecord
from .processing_result import FileStat, MergeResult
from .source_file import DocumentType, SourceFile, SourceFormat

__all__ = [
    # Configuration models
    "ConverterConfig",
    "EtlConfig",
    # Vocabulary
    "DocumentType",
    "SourceFile",
    "SourceFormat",
    # Results
    "ErrorRecord",
    "FileStat",
    "MergeResult",
]
