"""Centralized exception classes for xls2txt.

This module provides a hierarchy of custom exceptions with error codes,
process exit status mapping, and structured error details for consistent
error handling throughout the converter.

Exception Hierarchy:
    Xls2TxtError (base)
    ├── SeparatorError
    │   ├── InvalidSeparatorError
    │   └── MissingSeparatorError
    ├── WorkbookError
    │   ├── EmptySpreadsheetError
    │   ├── SheetNotFoundError
    │   └── SpreadsheetError
    │       ├── UnsupportedFormatError
    │       └── FormulaUnavailableError
    ├── CellError
    └── CsvWriteError

Error Codes:
    All errors have a unique error code (e.g., "E1001") that is printed
    alongside the message when a conversion aborts.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used by the converter.

    Error codes are grouped by category:
    - E1xxx: Configuration errors (separators)
    - E2xxx: Workbook and sheet errors
    - E3xxx: Cell content errors
    - E4xxx: Output errors
    - E9xxx: Internal/unexpected errors
    """

    # Configuration errors (E1xxx)
    INVALID_SEPARATOR = "E1001"
    MISSING_SEPARATOR = "E1002"

    # Workbook errors (E2xxx)
    EMPTY_SPREADSHEET = "E2001"
    SHEET_NOT_FOUND = "E2002"
    SPREADSHEET_ERROR = "E2003"
    UNSUPPORTED_FORMAT = "E2004"
    FORMULA_UNAVAILABLE = "E2005"

    # Cell errors (E3xxx)
    CELL_ERROR = "E3001"

    # Output errors (E4xxx)
    CSV_WRITE_FAILED = "E4001"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"


class ExitStatusMixin:
    """Mixin that provides a process exit status for exceptions.

    Subclasses set the `exit_status` class attribute; the CLI exits with it
    when the exception aborts a conversion.
    """

    exit_status: int = 1

    def get_exit_status(self) -> int:
        """Get the process exit status for this exception.

        Returns:
            Nonzero exit status appropriate for this error.
        """
        return self.exit_status


class Xls2TxtError(Exception, ExitStatusMixin):
    """Base exception for all xls2txt errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
        exit_status: Process exit status (default 1).
    """

    exit_status: int = 1

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for structured logging.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# Separator Errors (E1xxx)
# =============================================================================


class SeparatorError(Xls2TxtError):
    """Base class for separator configuration errors."""

    exit_status: int = 2

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_SEPARATOR,
        separator: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the offending separator.

        Args:
            message: Error message.
            error_code: Error code.
            separator: The separator value that was rejected.
            details: Additional details.
        """
        details = details or {}
        if separator is not None:
            details["separator"] = separator
        super().__init__(message, error_code, details)
        self.separator = separator


class InvalidSeparatorError(SeparatorError):
    """Raised when a separator is not a single ASCII character."""

    def __init__(
        self,
        separator: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=(
                "A provided separator is invalid, separators need to be a "
                "single ascii character"
            ),
            error_code=ErrorCode.INVALID_SEPARATOR,
            separator=separator,
            details=details,
        )


class MissingSeparatorError(SeparatorError):
    """Raised when a separator option is absent and has no default."""

    def __init__(
        self,
        option: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if option:
            details["option"] = option
        super().__init__(
            message="No separator found",
            error_code=ErrorCode.MISSING_SEPARATOR,
            details=details,
        )
        self.option = option


# =============================================================================
# Workbook Errors (E2xxx)
# =============================================================================


class WorkbookError(Xls2TxtError):
    """Base class for workbook and sheet errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.SPREADSHEET_ERROR,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file path information.

        Args:
            message: Error message.
            error_code: Error code.
            file_path: Path to the workbook being converted.
            details: Additional details.
        """
        details = details or {}
        if file_path:
            details["file_path"] = file_path
        super().__init__(message, error_code, details)
        self.file_path = file_path


class EmptySpreadsheetError(WorkbookError):
    """Raised when a workbook contains no sheets at all."""

    def __init__(
        self,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message="Empty spreadsheet",
            error_code=ErrorCode.EMPTY_SPREADSHEET,
            file_path=file_path,
            details=details,
        )


class SheetNotFoundError(WorkbookError):
    """Raised when the requested sheet does not exist in the workbook."""

    def __init__(
        self,
        sheet_name: str,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the sheet name that could not be found.

        Args:
            sheet_name: Resolved sheet name.
            file_path: Optional workbook path.
            details: Additional details.
        """
        details = details or {}
        details["sheet_name"] = sheet_name
        super().__init__(
            message=f"Could not find sheet {sheet_name!r} in spreadsheet",
            error_code=ErrorCode.SHEET_NOT_FOUND,
            file_path=file_path,
            details=details,
        )
        self.sheet_name = sheet_name


class SpreadsheetError(WorkbookError):
    """Raised when the underlying format reader fails to parse a workbook."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.SPREADSHEET_ERROR,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            file_path=file_path,
            details=details,
        )


class UnsupportedFormatError(SpreadsheetError):
    """Raised when a file is not a recognized spreadsheet format."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.UNSUPPORTED_FORMAT,
            file_path=file_path,
            details=details,
        )


class FormulaUnavailableError(SpreadsheetError):
    """Raised when formulas cannot be extracted for a sheet.

    This error is non-fatal to a conversion: the converter reports it as a
    diagnostic and falls back to cached values.
    """

    def __init__(
        self,
        message: str,
        sheet_name: str | None = None,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if sheet_name is not None:
            details["sheet_name"] = sheet_name
        super().__init__(
            message=message,
            error_code=ErrorCode.FORMULA_UNAVAILABLE,
            file_path=file_path,
            details=details,
        )
        self.sheet_name = sheet_name


# =============================================================================
# Cell Errors (E3xxx)
# =============================================================================


class CellError(Xls2TxtError):
    """Raised when a resolved cell holds a formula or computation error."""

    def __init__(
        self,
        kind: Any,
        row: int | None = None,
        column: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the cell error kind and location.

        Args:
            kind: The CellErrorType found in the cell.
            row: Absolute 0-based row of the cell, if known.
            column: Absolute 0-based column of the cell, if known.
            details: Additional details.
        """
        details = details or {}
        if row is not None:
            details["row"] = row
        if column is not None:
            details["column"] = column
        label = getattr(kind, "value", kind)
        super().__init__(
            message=f"Error found in cell ({label})",
            error_code=ErrorCode.CELL_ERROR,
            details=details,
        )
        self.kind = kind
        self.row = row
        self.column = column


# =============================================================================
# Output Errors (E4xxx)
# =============================================================================


class CsvWriteError(Xls2TxtError):
    """Raised when the delimited writer fails to emit a record."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.CSV_WRITE_FAILED,
            details=details,
        )
