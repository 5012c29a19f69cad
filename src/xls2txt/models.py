"""Dataclasses and enums describing a worksheet read from a workbook."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

Coordinate = tuple[int, int]
"""Absolute 0-based ``(row, column)`` position of a cell."""


class SpreadsheetFormat(str, Enum):
    """Workbook formats the converter can read."""

    XLS = "xls"
    XLSX = "xlsx"
    XLSB = "xlsb"
    ODS = "ods"


class CellType(str, Enum):
    """Tag of a CellValue."""

    EMPTY = "empty"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    DATETIME = "datetime"
    DURATION = "duration"
    ERROR = "error"


class CellErrorType(str, Enum):
    """Formula/computation errors a cell can hold."""

    DIV0 = "#DIV/0!"
    NA = "#N/A"
    NAME = "#NAME?"
    NULL = "#NULL!"
    NUM = "#NUM!"
    REF = "#REF!"
    VALUE = "#VALUE!"
    GETTING_DATA = "#GETTING_DATA"

    @classmethod
    def from_text(cls, text: str) -> CellErrorType | None:
        """Map an error literal such as ``#N/A`` to its member, if known."""
        try:
            return cls(text.strip().upper())
        except ValueError:
            return None


class FormulaMode(str, Enum):
    """Whether and when formula text replaces a cell's cached value."""

    CACHED_VALUE = "cached-value"
    """Never show formulas, always display the cached value even if empty."""

    IF_EMPTY = "if-empty"
    """Show the formula when the cached value is empty or absent."""

    ALWAYS = "always"
    """Always show the formula for formula cells, ignoring cached values."""


@dataclass(frozen=True)
class CellValue:
    """Immutable tagged value of a single cell.

    ``value`` holds the native Python payload for the tag: ``None`` for
    EMPTY, ``bool``, ``int``, ``float``, ``str`` and a ``CellErrorType`` for
    ERROR. DATETIME and DURATION hold either the serial number of days the
    workbook stores (XLS, XLSX) or the ISO 8601 text of an ODS cell.
    """

    type: CellType
    value: Any = None

    @classmethod
    def empty(cls) -> CellValue:
        return EMPTY

    @classmethod
    def string(cls, text: str) -> CellValue:
        return cls(CellType.STRING, text)

    @classmethod
    def error(cls, kind: CellErrorType) -> CellValue:
        return cls(CellType.ERROR, kind)

    @classmethod
    def datetime(cls, value: float | str) -> CellValue:
        return cls(CellType.DATETIME, value)

    @classmethod
    def duration(cls, value: float | str) -> CellValue:
        return cls(CellType.DURATION, value)

    @classmethod
    def from_python(cls, value: Any) -> CellValue:
        """Build a CellValue from a value produced by a reader library.

        Raises:
            TypeError: If the value has no CellValue counterpart.
        """
        if value is None:
            return EMPTY
        # bool is a subclass of int
        if isinstance(value, bool):
            return cls(CellType.BOOL, value)
        if isinstance(value, int):
            return cls(CellType.INT, value)
        if isinstance(value, float):
            return cls(CellType.FLOAT, value)
        if isinstance(value, str):
            return cls(CellType.STRING, value)
        if isinstance(value, CellErrorType):
            return cls(CellType.ERROR, value)
        raise TypeError(f"Unsupported cell value type: {type(value).__name__}")

    @property
    def is_empty(self) -> bool:
        return self.type is CellType.EMPTY

    @property
    def is_blank(self) -> bool:
        """True for EMPTY cells and for empty strings."""
        return self.is_empty or (self.type is CellType.STRING and self.value == "")

    @property
    def is_error(self) -> bool:
        return self.type is CellType.ERROR


EMPTY = CellValue(CellType.EMPTY)


@dataclass(frozen=True)
class SheetRange:
    """Used range of a worksheet.

    Only non-empty cells are stored; ``start`` is the absolute top-left
    coordinate of their bounding box, or ``None`` when the sheet is empty.
    """

    start: Coordinate | None
    width: int
    height: int
    cells: Mapping[Coordinate, CellValue] = field(default_factory=dict)

    @classmethod
    def from_cells(cls, cells: Mapping[Coordinate, CellValue]) -> SheetRange:
        """Build the used range from a sparse mapping of cells."""
        used = {pos: cell for pos, cell in cells.items() if not cell.is_empty}
        if not used:
            return cls(start=None, width=0, height=0, cells={})

        rows = [row for row, _ in used]
        cols = [col for _, col in used]
        first_row, first_col = min(rows), min(cols)
        return cls(
            start=(first_row, first_col),
            width=max(cols) - first_col + 1,
            height=max(rows) - first_row + 1,
            cells=used,
        )

    @property
    def is_empty(self) -> bool:
        return self.start is None or self.width == 0 or self.height == 0

    @property
    def end(self) -> Coordinate | None:
        """Absolute bottom-right coordinate, inclusive."""
        if self.start is None:
            return None
        return (self.start[0] + self.height - 1, self.start[1] + self.width - 1)

    def include(self, positions: Iterable[Coordinate]) -> SheetRange:
        """Grow the range to cover extra positions, which read as EMPTY.

        Used for formula cells that have no cached value.
        """
        points = list(self.cells) + list(positions)
        if not points:
            return self
        rows = [row for row, _ in points]
        cols = [col for _, col in points]
        first_row, first_col = min(rows), min(cols)
        return SheetRange(
            start=(first_row, first_col),
            width=max(cols) - first_col + 1,
            height=max(rows) - first_row + 1,
            cells=self.cells,
        )

    def get(self, row: int, col: int) -> CellValue:
        """Get the cell at an absolute position (EMPTY when absent)."""
        return self.cells.get((row, col), EMPTY)

    def rows(self) -> Iterator[list[CellValue]]:
        """Yield dense rows top to bottom, each exactly ``width`` cells."""
        if self.start is None:
            return
        first_row, first_col = self.start
        for row in range(first_row, first_row + self.height):
            columns = range(first_col, first_col + self.width)
            yield [self.get(row, col) for col in columns]


@dataclass(frozen=True)
class FormulaTable:
    """Formula source text of a worksheet keyed by absolute ``(row, col)``."""

    formulas: Mapping[Coordinate, str] = field(default_factory=dict)

    def get(self, row: int, col: int) -> str | None:
        """Get the formula at a position, or None if absent or empty."""
        formula = self.formulas.get((row, col))
        return formula or None

    def __len__(self) -> int:
        return len(self.formulas)
