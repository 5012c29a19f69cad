"""Spreadsheet format detection.

This module detects the workbook format of a file from its content with
libmagic, falling back to the file extension when the content is not
conclusive. ZIP packages are told apart by their members, since libmagic
reports XLSX and XLSB alike.
"""

import zipfile
from pathlib import Path

import magic

from xls2txt.models import SpreadsheetFormat
from xls2txt.utils.exceptions import SpreadsheetError, UnsupportedFormatError
from xls2txt.utils.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "EXTENSION_TO_FORMAT",
    "FormatDetector",
    "MIME_TO_FORMAT",
    "ZIP_MIME_TYPES",
]

# Mapping of file extensions to workbook formats
EXTENSION_TO_FORMAT: dict[str, SpreadsheetFormat] = {
    # Legacy BIFF workbooks and add-ins
    ".xls": SpreadsheetFormat.XLS,
    ".xla": SpreadsheetFormat.XLS,
    # Office Open XML workbooks, macro-enabled workbooks, templates, add-ins
    ".xlsx": SpreadsheetFormat.XLSX,
    ".xlsm": SpreadsheetFormat.XLSX,
    ".xltx": SpreadsheetFormat.XLSX,
    ".xltm": SpreadsheetFormat.XLSX,
    ".xlam": SpreadsheetFormat.XLSX,
    # Binary workbooks
    ".xlsb": SpreadsheetFormat.XLSB,
    # OpenDocument spreadsheets
    ".ods": SpreadsheetFormat.ODS,
}

# MIME types reported by libmagic that identify the format on their own
MIME_TO_FORMAT: dict[str, SpreadsheetFormat] = {
    # OLE2 compound documents
    "application/vnd.ms-excel": SpreadsheetFormat.XLS,
    "application/x-ole-storage": SpreadsheetFormat.XLS,
    "application/CDFV2": SpreadsheetFormat.XLS,
    # OpenDocument spreadsheets and templates
    "application/vnd.oasis.opendocument.spreadsheet": SpreadsheetFormat.ODS,
    "application/vnd.oasis.opendocument.spreadsheet-template": SpreadsheetFormat.ODS,
}

# MIME types of ZIP packages whose members decide the format
ZIP_MIME_TYPES: set[str] = {
    "application/zip",
    "application/x-zip-compressed",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel.sheet.macroenabled.12",
    "application/vnd.ms-excel.sheet.binary.macroenabled.12",
}

ODS_MIMETYPE = b"application/vnd.oasis.opendocument.spreadsheet"


class FormatDetector:
    """Detects the format of a workbook file.

    Content detection takes priority. The extension is used when the
    content does not identify a spreadsheet, and a mismatch between the
    two is logged.
    """

    def __init__(self) -> None:
        """Initialize the format detector with a magic instance."""
        self._magic = magic.Magic(mime=True)

    def detect_from_path(self, file_path: str | Path) -> SpreadsheetFormat:
        """Detect the workbook format of a file.

        Args:
            file_path: Path to the workbook.

        Returns:
            The detected SpreadsheetFormat.

        Raises:
            SpreadsheetError: If the file does not exist or cannot be read.
            UnsupportedFormatError: If the format is not a supported workbook.
        """
        path = Path(file_path)
        if not path.is_file():
            raise SpreadsheetError(
                f"No such file: {file_path}", file_path=str(file_path)
            )

        extension = path.suffix.lower() if path.suffix else None
        format_from_extension = (
            EXTENSION_TO_FORMAT.get(extension) if extension else None
        )

        try:
            format_from_content = self._detect_from_content(path)
        except OSError as e:
            raise SpreadsheetError(
                f"Cannot read {file_path}: {e}", file_path=str(file_path)
            ) from e

        if format_from_content is not None:
            if format_from_extension and format_from_extension != format_from_content:
                logger.warning(
                    "File extension does not match detected format",
                    extension=extension,
                    detected_format=format_from_content.value,
                )
            return format_from_content

        if format_from_extension is not None:
            return format_from_extension

        raise UnsupportedFormatError(
            f"Unsupported spreadsheet format: {path.name}. "
            "Expected XLS, XLSX, XLSB or ODS.",
            file_path=str(file_path),
        )

    def _detect_from_content(self, path: Path) -> SpreadsheetFormat | None:
        """Detect the format from the MIME type libmagic reports.

        Returns:
            The format, or None if the content is not recognized.
        """
        try:
            detected = self._magic.from_file(str(path))
        except magic.MagicException as e:
            logger.warning(
                "Magic detection failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        logger.debug("Content detected", mime_type=detected)
        if detected in ZIP_MIME_TYPES:
            return self._detect_zip_package(path)
        return MIME_TO_FORMAT.get(detected)

    @staticmethod
    def _detect_zip_package(path: Path) -> SpreadsheetFormat | None:
        try:
            with zipfile.ZipFile(path) as archive:
                names = set(archive.namelist())
                if "xl/workbook.bin" in names:
                    return SpreadsheetFormat.XLSB
                if "xl/workbook.xml" in names:
                    return SpreadsheetFormat.XLSX
                if "mimetype" in names:
                    if archive.read("mimetype").strip() == ODS_MIMETYPE:
                        return SpreadsheetFormat.ODS
                elif "content.xml" in names:
                    return SpreadsheetFormat.ODS
        except zipfile.BadZipFile:
            return None
        return None
