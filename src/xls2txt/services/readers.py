"""Workbook readers for XLSX, XLS, XLSB and ODS files.

Every reader wraps a third-party parser and exposes the same interface:
ordered sheet names, the used range of a sheet as a SheetRange, and the
formula table of a sheet when the format and parser provide one. Parser
failures surface as SpreadsheetError.
"""

from __future__ import annotations

import struct
import zipfile
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta
from io import BytesIO
from pathlib import Path
from typing import Any, ClassVar
from xml.sax import SAXException

import xlrd
from odf.namespaces import OFFICENS, TABLENS, TEXTNS
from odf.opendocument import load as load_ods
from odf.table import Table
from openpyxl import load_workbook
from openpyxl.cell import Cell
from openpyxl.utils.datetime import to_excel
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet
from pyxlsb import open_workbook as open_xlsb
from xlrd.compdoc import CompDocError

from xls2txt.models import (
    CellErrorType,
    CellValue,
    Coordinate,
    FormulaTable,
    SheetRange,
    SpreadsheetFormat,
)
from xls2txt.services.format_detector import FormatDetector
from xls2txt.utils.exceptions import FormulaUnavailableError, SpreadsheetError
from xls2txt.utils.logging import get_logger

logger = get_logger(__name__)

CALCEXTNS = "urn:org:documentfoundation:names:experimental:calc:xmlns:calcext:1.0"


class Workbook(ABC):
    """Read-only view of a workbook opened for one conversion."""

    format: ClassVar[SpreadsheetFormat]
    parse_errors: ClassVar[tuple[type[Exception], ...]] = (OSError, ValueError)

    def __init__(self, path: Path) -> None:
        self.path = path

    @property
    def path_str(self) -> str:
        return str(self.path)

    @property
    @abstractmethod
    def sheet_names(self) -> list[str]:
        """Sheet names in workbook order."""

    @abstractmethod
    def _read_cells(self, name: str) -> dict[Coordinate, CellValue]:
        """Read the non-empty cells of a sheet keyed by absolute position."""

    def _read_formulas(self, name: str) -> dict[Coordinate, str]:
        raise FormulaUnavailableError(
            f"Formula extraction is not supported for {self.format.value.upper()} "
            "workbooks",
            sheet_name=name,
            file_path=self.path_str,
        )

    def worksheet_range(self, name: str) -> SheetRange | None:
        """Read the used range of a sheet.

        Returns:
            The used range, or None when no sheet has this exact name.

        Raises:
            SpreadsheetError: If the parser fails on the sheet.
        """
        if name not in self.sheet_names:
            return None
        try:
            cells = self._read_cells(name)
        except self.parse_errors as e:
            raise SpreadsheetError(
                f"Cannot read sheet {name!r}: {e}", file_path=self.path_str
            ) from e
        return SheetRange.from_cells(cells)

    def worksheet_formula(self, name: str) -> FormulaTable | None:
        """Read the formula table of a sheet.

        Returns:
            The formula table, or None when no sheet has this exact name.

        Raises:
            FormulaUnavailableError: If formulas cannot be extracted.
        """
        if name not in self.sheet_names:
            return None
        try:
            formulas = self._read_formulas(name)
        except self.parse_errors as e:
            raise FormulaUnavailableError(
                f"Cannot read formulas of sheet {name!r}: {e}",
                sheet_name=name,
                file_path=self.path_str,
            ) from e
        return FormulaTable(formulas)

    def close(self) -> None:  # noqa: B027
        """Release parser resources."""

    def __enter__(self) -> Workbook:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


# =============================================================================
# XLSX (openpyxl)
# =============================================================================


class XlsxWorkbook(Workbook):
    """Office Open XML workbook read with openpyxl.

    The package is loaded twice: once for cached values and, only when
    formulas are requested, once more for formula text. Loading from bytes
    avoids openpyxl rejecting content-detected files by extension.
    """

    format = SpreadsheetFormat.XLSX
    parse_errors = (
        InvalidFileException,
        zipfile.BadZipFile,
        KeyError,
        OSError,
        ValueError,
        TypeError,
    )

    def __init__(self, path: Path) -> None:
        super().__init__(path)
        try:
            self._content = path.read_bytes()
            self._values = load_workbook(
                filename=BytesIO(self._content), data_only=True
            )
        except self.parse_errors as e:
            raise SpreadsheetError(
                f"Cannot open workbook: {e}", file_path=self.path_str
            ) from e
        self._formulas: Any = None

    @property
    def sheet_names(self) -> list[str]:
        return list(self._values.sheetnames)

    def _read_cells(self, name: str) -> dict[Coordinate, CellValue]:
        sheet = self._values[name]
        cells: dict[Coordinate, CellValue] = {}
        # Chartsheets have no cells
        if not isinstance(sheet, Worksheet):
            return cells
        for row in sheet.iter_rows():
            for cell in row:
                value = self._cell_value(cell)
                if not value.is_empty:
                    cells[(cell.row - 1, cell.column - 1)] = value
        return cells

    def _read_formulas(self, name: str) -> dict[Coordinate, str]:
        if self._formulas is None:
            self._formulas = load_workbook(
                filename=BytesIO(self._content), data_only=False
            )
        sheet = self._formulas[name]
        formulas: dict[Coordinate, str] = {}
        if not isinstance(sheet, Worksheet):
            return formulas
        for row in sheet.iter_rows():
            for cell in row:
                if cell.data_type != "f":
                    continue
                text = self._formula_text(cell.value)
                if text:
                    formulas[(cell.row - 1, cell.column - 1)] = text
        return formulas

    def _cell_value(self, cell: Cell) -> CellValue:
        value = cell.value
        if cell.data_type == "e" and value is not None:
            kind = CellErrorType.from_text(str(value))
            if kind is not None:
                return CellValue.error(kind)
            return CellValue.string(str(value))
        # openpyxl converts date-formatted numbers; turn them back into the
        # stored serial
        if isinstance(value, timedelta):
            return CellValue.duration(to_excel(value))
        if isinstance(value, (datetime, date, time)):
            return CellValue.datetime(to_excel(value, self._values.epoch))
        return CellValue.from_python(value)

    @staticmethod
    def _formula_text(value: Any) -> str | None:
        if isinstance(value, str):
            return value
        # ArrayFormula keeps its source in .text
        text = getattr(value, "text", None)
        return text if isinstance(text, str) else None

    def close(self) -> None:
        self._values.close()
        if self._formulas is not None:
            self._formulas.close()


# =============================================================================
# XLS (xlrd)
# =============================================================================

_XLS_GETTING_DATA_CODE = 0x2B


class XlsWorkbook(Workbook):
    """Legacy BIFF workbook read with xlrd.

    xlrd does not expose formula text, so formula modes fall back to cached
    values for this format.
    """

    format = SpreadsheetFormat.XLS
    parse_errors = (xlrd.XLRDError, CompDocError, OSError, ValueError, struct.error)

    def __init__(self, path: Path) -> None:
        super().__init__(path)
        try:
            self._book = xlrd.open_workbook(str(path), on_demand=True)
        except self.parse_errors as e:
            raise SpreadsheetError(
                f"Cannot open workbook: {e}", file_path=self.path_str
            ) from e

    @property
    def sheet_names(self) -> list[str]:
        return list(self._book.sheet_names())

    def _read_cells(self, name: str) -> dict[Coordinate, CellValue]:
        sheet = self._book.sheet_by_name(name)
        cells: dict[Coordinate, CellValue] = {}
        for row in range(sheet.nrows):
            for col in range(sheet.row_len(row)):
                value = self._cell_value(
                    sheet.cell_type(row, col), sheet.cell_value(row, col)
                )
                if not value.is_empty:
                    cells[(row, col)] = value
        return cells

    @staticmethod
    def _cell_value(cell_type: int, raw: Any) -> CellValue:
        if cell_type in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
            return CellValue.empty()
        if cell_type == xlrd.XL_CELL_TEXT:
            return CellValue.string(raw)
        if cell_type == xlrd.XL_CELL_NUMBER:
            return CellValue.from_python(float(raw))
        if cell_type == xlrd.XL_CELL_BOOLEAN:
            return CellValue.from_python(bool(raw))
        if cell_type == xlrd.XL_CELL_DATE:
            return CellValue.datetime(float(raw))
        if cell_type == xlrd.XL_CELL_ERROR:
            if raw == _XLS_GETTING_DATA_CODE:
                return CellValue.error(CellErrorType.GETTING_DATA)
            text = xlrd.error_text_from_code.get(raw, "")
            return CellValue.error(
                CellErrorType.from_text(text) or CellErrorType.VALUE
            )
        return CellValue.from_python(raw)

    def close(self) -> None:
        self._book.release_resources()


# =============================================================================
# XLSB (pyxlsb)
# =============================================================================


class XlsbWorkbook(Workbook):
    """Binary workbook read with pyxlsb.

    pyxlsb yields raw cell values without number formats or formula text;
    dates stay serial numbers.
    """

    format = SpreadsheetFormat.XLSB
    parse_errors = (
        zipfile.BadZipFile,
        KeyError,
        OSError,
        ValueError,
        TypeError,
        struct.error,
    )

    def __init__(self, path: Path) -> None:
        super().__init__(path)
        try:
            self._book = open_xlsb(str(path))
        except self.parse_errors as e:
            raise SpreadsheetError(
                f"Cannot open workbook: {e}", file_path=self.path_str
            ) from e

    @property
    def sheet_names(self) -> list[str]:
        return list(self._book.sheets)

    def _read_cells(self, name: str) -> dict[Coordinate, CellValue]:
        cells: dict[Coordinate, CellValue] = {}
        with self._book.get_sheet(name) as sheet:
            for row in sheet.rows(sparse=True):
                for cell in row:
                    value = CellValue.from_python(cell.v)
                    if not value.is_empty:
                        cells[(cell.r, cell.c)] = value
        return cells

    def close(self) -> None:
        self._book.close()


# =============================================================================
# ODS (odfpy)
# =============================================================================

_ROW_QNAME = (TABLENS, "table-row")
_ROW_GROUP_QNAMES = {
    (TABLENS, "table-header-rows"),
    (TABLENS, "table-row-group"),
    (TABLENS, "table-rows"),
}
_CELL_QNAMES = {(TABLENS, "table-cell"), (TABLENS, "covered-table-cell")}
_PARAGRAPH_QNAMES = {(TEXTNS, "p"), (TEXTNS, "h")}


def _int_attr(element: Any, namespace: str, name: str, default: int = 1) -> int:
    raw = element.getAttrNS(namespace, name)
    return int(raw) if raw else default


def _inline_text(node: Any) -> str:
    parts: list[str] = []
    for child in node.childNodes:
        if child.nodeType == child.TEXT_NODE:
            parts.append(child.data)
            continue
        qname = child.qname
        if qname == (TEXTNS, "s"):
            parts.append(" " * _int_attr(child, TEXTNS, "c"))
        elif qname == (TEXTNS, "tab"):
            parts.append("\t")
        elif qname == (TEXTNS, "line-break"):
            parts.append("\n")
        elif qname[0] == OFFICENS:
            # annotations and other office metadata are not cell text
            continue
        else:
            parts.append(_inline_text(child))
    return "".join(parts)


def _cell_text(cell: Any) -> str:
    paragraphs = [
        _inline_text(child)
        for child in cell.childNodes
        if child.nodeType == child.ELEMENT_NODE and child.qname in _PARAGRAPH_QNAMES
    ]
    return "\n".join(paragraphs)


def _required_attr(cell: Any, name: str) -> str:
    value = cell.getAttrNS(OFFICENS, name)
    if not value:
        raise ValueError(f"Cell has no office:{name}")
    return value


class OdsWorkbook(Workbook):
    """OpenDocument spreadsheet read with odfpy.

    Cells repeated with ``number-columns-repeated`` and
    ``number-rows-repeated`` are expanded only when they carry content, so
    trailing repeated blank rows do not inflate the used range. Date and
    time cells keep the ISO 8601 text of ``office:date-value`` and
    ``office:time-value``. Formula text is kept exactly as stored
    (``of:=...``).
    """

    format = SpreadsheetFormat.ODS
    parse_errors = (
        zipfile.BadZipFile,
        KeyError,
        OSError,
        ValueError,
        TypeError,
        SAXException,
    )

    def __init__(self, path: Path) -> None:
        super().__init__(path)
        try:
            document = load_ods(str(path))
        except self.parse_errors as e:
            raise SpreadsheetError(
                f"Cannot open workbook: {e}", file_path=self.path_str
            ) from e

        spreadsheet = getattr(document, "spreadsheet", None)
        if spreadsheet is None:
            raise SpreadsheetError(
                "Document does not contain a spreadsheet", file_path=self.path_str
            )
        self._tables: dict[str, Any] = {
            table.getAttrNS(TABLENS, "name"): table
            for table in spreadsheet.getElementsByType(Table)
        }

    @property
    def sheet_names(self) -> list[str]:
        return list(self._tables)

    def _read_cells(self, name: str) -> dict[Coordinate, CellValue]:
        cells: dict[Coordinate, CellValue] = {}
        for row, col, cell in self._iter_cells(self._tables[name]):
            value = self._cell_value(cell)
            if not value.is_empty:
                cells[(row, col)] = value
        return cells

    def _read_formulas(self, name: str) -> dict[Coordinate, str]:
        formulas: dict[Coordinate, str] = {}
        for row, col, cell in self._iter_cells(self._tables[name]):
            formula = cell.getAttrNS(TABLENS, "formula")
            if formula:
                formulas[(row, col)] = formula
        return formulas

    @classmethod
    def _iter_rows(cls, parent: Any) -> Any:
        for child in parent.childNodes:
            if child.nodeType != child.ELEMENT_NODE:
                continue
            if child.qname == _ROW_QNAME:
                yield child
            elif child.qname in _ROW_GROUP_QNAMES:
                yield from cls._iter_rows(child)

    @classmethod
    def _iter_cells(cls, table: Any) -> Any:
        """Yield ``(row, col, cell_element)`` for every cell with content."""
        row_index = 0
        for row in cls._iter_rows(table):
            rows_repeated = _int_attr(row, TABLENS, "number-rows-repeated")
            col_index = 0
            populated: list[tuple[int, int, Any]] = []
            for cell in row.childNodes:
                if cell.nodeType != cell.ELEMENT_NODE or cell.qname not in _CELL_QNAMES:
                    continue
                cols_repeated = _int_attr(cell, TABLENS, "number-columns-repeated")
                if (
                    cell.childNodes
                    or cell.getAttrNS(OFFICENS, "value-type")
                    or cell.getAttrNS(TABLENS, "formula")
                ):
                    populated.append((col_index, cols_repeated, cell))
                col_index += cols_repeated

            for row_offset in range(rows_repeated if populated else 0):
                for first_col, cols_repeated, cell in populated:
                    for col_offset in range(cols_repeated):
                        yield row_index + row_offset, first_col + col_offset, cell
            row_index += rows_repeated

    @staticmethod
    def _cell_value(cell: Any) -> CellValue:
        if cell.getAttrNS(CALCEXTNS, "value-type") == "error":
            kind = CellErrorType.from_text(_cell_text(cell))
            return CellValue.error(kind or CellErrorType.VALUE)

        value_type = cell.getAttrNS(OFFICENS, "value-type")
        if value_type in ("float", "percentage", "currency"):
            return CellValue.from_python(float(cell.getAttrNS(OFFICENS, "value")))
        if value_type == "boolean":
            return CellValue.from_python(
                cell.getAttrNS(OFFICENS, "boolean-value") == "true"
            )
        if value_type == "date":
            return CellValue.datetime(_required_attr(cell, "date-value"))
        if value_type == "time":
            return CellValue.duration(_required_attr(cell, "time-value"))

        string_value = cell.getAttrNS(OFFICENS, "string-value")
        if string_value is not None:
            return CellValue.string(string_value)
        text = _cell_text(cell)
        if value_type == "string" or text:
            return CellValue.string(text)
        return CellValue.empty()


READERS: dict[SpreadsheetFormat, type[Workbook]] = {
    SpreadsheetFormat.XLSX: XlsxWorkbook,
    SpreadsheetFormat.XLS: XlsWorkbook,
    SpreadsheetFormat.XLSB: XlsbWorkbook,
    SpreadsheetFormat.ODS: OdsWorkbook,
}


def open_workbook_auto(
    file_path: str | Path, detector: FormatDetector | None = None
) -> Workbook:
    """Open a workbook, choosing the reader from the detected format.

    Args:
        file_path: Path to an XLS, XLSX, XLSB or ODS file.
        detector: Format detector to use (a default one if None).

    Returns:
        An open Workbook; close it or use it as a context manager.

    Raises:
        SpreadsheetError: If the file is missing, unsupported or unreadable.
    """
    path = Path(file_path)
    spreadsheet_format = (detector or FormatDetector()).detect_from_path(path)
    logger.debug("Opening workbook", path=path, format=spreadsheet_format.value)
    return READERS[spreadsheet_format](path)
