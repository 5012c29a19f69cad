"""Rendering of a sheet range as delimited text records."""

from __future__ import annotations

import csv
import math
from decimal import Decimal
from typing import IO

from xls2txt.models import CellType, CellValue, SheetRange
from xls2txt.services.formula_resolver import CellResolver
from xls2txt.services.separators import MAX_SEPARATOR_CODE_POINT
from xls2txt.utils.exceptions import (
    CellError,
    CsvWriteError,
    ErrorCode,
    Xls2TxtError,
)
from xls2txt.utils.logging import get_logger

logger = get_logger(__name__)


def format_float(value: float) -> str:
    """Render a float as the shortest plain decimal that round-trips.

    Integral values drop the fractional part (``2001.0`` -> ``2001``) and
    exponent notation is never used (``1e-07`` -> ``0.0000001``).
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer():
        if value == 0 and math.copysign(1.0, value) < 0:
            return "-0"
        return str(int(value))

    text = repr(value)
    if "e" in text or "E" in text:
        return format(Decimal(text), "f")
    return text


def render_cell(cell: CellValue, row: int | None = None, col: int | None = None) -> str:
    """Render a resolved cell value as the text of one field.

    Args:
        cell: Value to render.
        row: Absolute row, reported when the cell holds an error.
        col: Absolute column, reported when the cell holds an error.

    Returns:
        Field text. Strings are returned verbatim. Dates and durations are
        written as the serial number of days, or as the ISO 8601 text of an
        ODS cell.

    Raises:
        CellError: If the cell holds an error value.
        Xls2TxtError: If the cell type is unknown (E9001).
    """
    if cell.type is CellType.EMPTY:
        return ""
    if cell.type is CellType.STRING:
        return cell.value
    if cell.type is CellType.ERROR:
        raise CellError(cell.value, row=row, column=col)
    if cell.type is CellType.BOOL:
        return "true" if cell.value else "false"
    if cell.type is CellType.INT:
        return str(cell.value)
    if cell.type is CellType.FLOAT:
        return format_float(cell.value)
    if cell.type in (CellType.DATETIME, CellType.DURATION):
        if isinstance(cell.value, str):
            return cell.value
        return format_float(float(cell.value))
    raise Xls2TxtError(
        f"Unknown cell type: {cell.type!r}",
        ErrorCode.INTERNAL_ERROR,
        details={"row": row, "column": col},
    )


def write_sheet(
    sheet_range: SheetRange,
    resolver: CellResolver,
    field_separator: int,
    record_separator: int,
    out: IO[str],
) -> int:
    """Write every row of a used range as one delimited record.

    Rows are walked top to bottom and cells left to right; each cell is
    passed through ``resolver`` with its absolute position before rendering.
    Fields containing the separators or a quote are quoted, with embedded
    quotes doubled. Records already written stay written when a later cell
    aborts the conversion.

    Args:
        sheet_range: Used range of the sheet.
        resolver: Per-cell formula resolver.
        field_separator: ASCII byte written between fields.
        record_separator: ASCII byte written after each record.
        out: Text stream receiving the records.

    Returns:
        Number of records written. An empty range writes nothing.

    Raises:
        CellError: If a resolved cell holds an error value.
        CsvWriteError: If a separator is not ASCII or the writer fails.
    """
    if sheet_range.is_empty or sheet_range.start is None:
        return 0

    separators = {
        "field_separator": field_separator,
        "record_separator": record_separator,
    }
    if any(not 0 <= sep <= MAX_SEPARATOR_CODE_POINT for sep in separators.values()):
        raise CsvWriteError(
            "Separators must be single ASCII characters", details=separators
        )

    try:
        writer = csv.writer(
            out,
            delimiter=chr(field_separator),
            lineterminator=chr(record_separator),
            quotechar='"',
            doublequote=True,
            quoting=csv.QUOTE_MINIMAL,
        )
    except (TypeError, ValueError, csv.Error) as e:
        raise CsvWriteError(
            f"Cannot write records with these separators: {e}",
            details=separators,
        ) from e

    first_row, first_col = sheet_range.start
    written = 0
    for row_offset, cells in enumerate(sheet_range.rows()):
        row = first_row + row_offset
        record = [
            render_cell(resolver(row, first_col + i, cell), row, first_col + i)
            for i, cell in enumerate(cells)
        ]
        try:
            writer.writerow(record)
        except (csv.Error, OSError, UnicodeEncodeError) as e:
            raise CsvWriteError(str(e), details={"row": row}) from e
        written += 1

    try:
        out.flush()
    except OSError as e:
        raise CsvWriteError(str(e)) from e

    logger.debug("Records written", records=written, width=sheet_range.width)
    return written
