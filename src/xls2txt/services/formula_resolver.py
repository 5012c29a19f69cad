"""Per-cell choice between cached values and formula text.

The resolver is selected once per conversion from a FormulaMode and then
called for every cell with its absolute ``(row, col)`` position. Positions
are used in the same order for the formula table lookup as for traversal.
"""

from __future__ import annotations

from collections.abc import Callable

from xls2txt.models import CellValue, FormulaMode, FormulaTable

CellResolver = Callable[[int, int, CellValue], CellValue]


def _cached_value(row: int, col: int, cell: CellValue) -> CellValue:  # noqa: ARG001
    return cell


def _if_empty(formulas: FormulaTable) -> CellResolver:
    def resolve(row: int, col: int, cell: CellValue) -> CellValue:
        if not cell.is_blank:
            return cell
        formula = formulas.get(row, col)
        return CellValue.string(formula) if formula else CellValue.empty()

    return resolve


def _always(formulas: FormulaTable) -> CellResolver:
    def resolve(row: int, col: int, cell: CellValue) -> CellValue:
        formula = formulas.get(row, col)
        return CellValue.string(formula) if formula else cell

    return resolve


def build_formula_resolver(
    mode: FormulaMode, formulas: FormulaTable | None
) -> CellResolver:
    """Build the cell resolver for a formula display mode.

    Args:
        mode: Formula display policy.
        formulas: Formula table of the sheet, or None when the reader could
            not produce one. Without a table every mode behaves like
            ``CACHED_VALUE``.

    Returns:
        Function mapping ``(row, col, cached_value)`` to the value to display.
    """
    if mode is FormulaMode.CACHED_VALUE or formulas is None:
        return _cached_value
    if mode is FormulaMode.IF_EMPTY:
        return _if_empty(formulas)
    if mode is FormulaMode.ALWAYS:
        return _always(formulas)
    raise ValueError(f"Unknown formula mode: {mode!r}")
