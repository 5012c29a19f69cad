"""Utilities package for xls2txt.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from xls2txt.utils.exceptions import (
    CellError,
    CsvWriteError,
    EmptySpreadsheetError,
    ErrorCode,
    FormulaUnavailableError,
    InvalidSeparatorError,
    MissingSeparatorError,
    SeparatorError,
    SheetNotFoundError,
    SpreadsheetError,
    UnsupportedFormatError,
    WorkbookError,
    Xls2TxtError,
)
from xls2txt.utils.logging import (
    ContextFormatter,
    ConversionMetrics,
    LogContext,
    StructuredLogger,
    configure_logging,
    get_logger,
    timed_operation,
)

__all__ = [
    # Exceptions
    "CellError",
    "CsvWriteError",
    "EmptySpreadsheetError",
    "ErrorCode",
    "FormulaUnavailableError",
    "InvalidSeparatorError",
    "MissingSeparatorError",
    "SeparatorError",
    "SheetNotFoundError",
    "SpreadsheetError",
    "UnsupportedFormatError",
    "WorkbookError",
    "Xls2TxtError",
    # Logging
    "ContextFormatter",
    "ConversionMetrics",
    "LogContext",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
    "timed_operation",
]
