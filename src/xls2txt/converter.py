"""Conversion of one worksheet to delimited text."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import IO

from xls2txt.models import FormulaMode, FormulaTable
from xls2txt.services.formula_resolver import build_formula_resolver
from xls2txt.services.materializer import write_sheet
from xls2txt.services.readers import Workbook, open_workbook_auto
from xls2txt.services.separators import separator_to_byte
from xls2txt.services.sheet_resolver import load_sheet_range
from xls2txt.utils.exceptions import FormulaUnavailableError
from xls2txt.utils.logging import LogContext, get_logger, timed_operation

logger = get_logger(__name__)


@dataclass
class ConversionOptions:
    """Options controlling a single conversion."""

    path: Path
    sheet: str = "1"
    record_separator: str | None = "\n"
    field_separator: str | None = ","
    formula_mode: FormulaMode = FormulaMode.CACHED_VALUE


def load_formulas(
    workbook: Workbook, sheet_name: str, mode: FormulaMode
) -> FormulaTable | None:
    """Load the formula table a formula mode needs.

    Formula extraction failures are reported as a warning and yield None,
    which makes the conversion fall back to cached values.
    """
    if mode is FormulaMode.CACHED_VALUE:
        return None
    try:
        return workbook.worksheet_formula(sheet_name)
    except FormulaUnavailableError as e:
        logger.warning("Formula parsing error", sheet=sheet_name, error=e.message)
        return None


def convert(options: ConversionOptions, out: IO[str]) -> int:
    """Convert the selected sheet of a workbook and write it to ``out``.

    Args:
        options: Conversion options.
        out: Text stream receiving the records.

    Returns:
        Number of records written.

    Raises:
        Xls2TxtError: Any error of the taxonomy; the conversion stops at
            the first one and records already written stay written.
    """
    record_separator = separator_to_byte(options.record_separator, "record_separator")
    field_separator = separator_to_byte(options.field_separator, "field_separator")

    with LogContext(file=options.path.name, sheet=options.sheet):
        with timed_operation(logger, "convert") as metrics:
            metrics.extra["formula_mode"] = options.formula_mode.value
            with open_workbook_auto(options.path) as workbook:
                sheet_name, sheet_range = load_sheet_range(workbook, options.sheet)
                formulas = load_formulas(workbook, sheet_name, options.formula_mode)
                if formulas:
                    sheet_range = sheet_range.include(formulas.formulas)
                if sheet_range.is_empty:
                    logger.info("Sheet is empty, nothing to write", sheet=sheet_name)
                    return 0

                resolver = build_formula_resolver(options.formula_mode, formulas)
                metrics.rows_written = write_sheet(
                    sheet_range, resolver, field_separator, record_separator, out
                )

    return metrics.rows_written
