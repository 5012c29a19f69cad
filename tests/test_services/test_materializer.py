"""Tests for rendering sheet ranges as delimited records."""

import io
from unittest.mock import MagicMock

import pytest

from xls2txt.models import (
    EMPTY,
    CellErrorType,
    CellValue,
    FormulaMode,
    FormulaTable,
    SheetRange,
)
from xls2txt.services.formula_resolver import build_formula_resolver
from xls2txt.services.materializer import format_float, render_cell, write_sheet
from xls2txt.utils.exceptions import (
    CellError,
    CsvWriteError,
    ErrorCode,
    Xls2TxtError,
)

COMMA = ord(",")
TAB = ord("\t")
NEWLINE = ord("\n")

cached = build_formula_resolver(FormulaMode.CACHED_VALUE, None)


def _range(cells: dict) -> SheetRange:
    return SheetRange.from_cells(
        {pos: CellValue.from_python(value) for pos, value in cells.items()}
    )


class TestFormatFloat:
    """Tests for float rendering."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (2001.0, "2001"),
            (0.0, "0"),
            (-0.0, "-0"),
            (-3.0, "-3"),
            (45082.73888888889, "45082.73888888889"),
            (0.02585648148148148, "0.02585648148148148"),
            (0.1, "0.1"),
            (1e-07, "0.0000001"),
            (1.5e-10, "0.00000000015"),
            (1e20, "100000000000000000000"),
            (float("nan"), "NaN"),
            (float("inf"), "inf"),
            (float("-inf"), "-inf"),
        ],
    )
    def test_format_float(self, value: float, expected: str) -> None:
        """Floats render as their shortest round-tripping decimal."""
        assert format_float(value) == expected


class TestRenderCell:
    """Tests for single cell rendering."""

    def test_empty(self) -> None:
        assert render_cell(EMPTY) == ""

    def test_string_verbatim(self) -> None:
        """Strings are not trimmed or escaped."""
        assert render_cell(CellValue.string('  a "b", c ')) == '  a "b", c '

    def test_bool(self) -> None:
        assert render_cell(CellValue.from_python(True)) == "true"
        assert render_cell(CellValue.from_python(False)) == "false"

    def test_int(self) -> None:
        assert render_cell(CellValue.from_python(2003)) == "2003"

    def test_float(self) -> None:
        assert render_cell(CellValue.from_python(2003.0)) == "2003"

    def test_serial_dates_and_durations(self) -> None:
        """Serial dates and durations render like floats."""
        serial = CellValue.datetime(45082.73888888889)
        assert render_cell(serial) == "45082.73888888889"
        assert render_cell(CellValue.datetime(45306.0)) == "45306"
        assert (
            render_cell(CellValue.duration(0.02585648148148148))
            == "0.02585648148148148"
        )

    def test_iso_dates_and_durations(self) -> None:
        """ISO 8601 text of ODS cells is kept as stored."""
        assert render_cell(CellValue.datetime("2024-01-15")) == "2024-01-15"
        assert (
            render_cell(CellValue.datetime("2024-01-15T08:30:00"))
            == "2024-01-15T08:30:00"
        )
        assert render_cell(CellValue.duration("PT01H30M00S")) == "PT01H30M00S"

    def test_unknown_type(self) -> None:
        """A cell type without a rendering is an internal error."""
        with pytest.raises(Xls2TxtError, match="Unknown cell type") as exc_info:
            render_cell(CellValue("unknown", 1), 0, 5)  # type: ignore[arg-type]
        assert exc_info.value.error_code is ErrorCode.INTERNAL_ERROR
        assert exc_info.value.details == {"row": 0, "column": 5}

    def test_error_raises(self) -> None:
        """Error cells abort rendering with their position."""
        with pytest.raises(CellError) as exc_info:
            render_cell(CellValue.error(CellErrorType.NA), 4, 2)
        assert exc_info.value.kind is CellErrorType.NA
        assert (exc_info.value.row, exc_info.value.column) == (4, 2)


class TestWriteSheet:
    """Tests for write_sheet."""

    def test_writes_dense_records(self) -> None:
        """Holes inside the range become empty fields."""
        sheet_range = _range({(0, 0): "a", (0, 2): 1.0, (2, 1): True})
        out = io.StringIO()

        written = write_sheet(sheet_range, cached, COMMA, NEWLINE, out)

        assert written == 3
        assert out.getvalue() == "a,,1\n,,\n,true,\n"

    def test_range_offset_is_not_padded(self) -> None:
        """Rows and columns before the used range are not emitted."""
        sheet_range = _range({(3, 2): "x", (4, 3): "y"})
        out = io.StringIO()

        write_sheet(sheet_range, cached, COMMA, NEWLINE, out)

        assert out.getvalue() == "x,\n,y\n"

    def test_quoting(self) -> None:
        """Fields with separators or quotes are quoted with doubled quotes."""
        sheet_range = _range(
            {(0, 0): "a,b", (0, 1): 'say "hi"', (0, 2): "two\nlines", (0, 3): "ok"}
        )
        out = io.StringIO()

        write_sheet(sheet_range, cached, COMMA, NEWLINE, out)

        assert out.getvalue() == '"a,b","say ""hi""","two\nlines",ok\n'

    def test_custom_separators(self) -> None:
        """Any one-byte separators can be used."""
        sheet_range = _range({(0, 0): "a", (0, 1): "b", (1, 0): "c;d"})
        out = io.StringIO()

        write_sheet(sheet_range, cached, ord(";"), ord("|"), out)

        assert out.getvalue() == 'a;b|"c;d";|'

    def test_record_separator_in_field_is_quoted(self) -> None:
        """A field holding the record separator is quoted."""
        sheet_range = _range({(0, 0): "a;b", (0, 1): "c"})
        out = io.StringIO()

        write_sheet(sheet_range, cached, COMMA, ord(";"), out)

        assert out.getvalue() == '"a;b",c;'

    def test_date_serials(self) -> None:
        """Date and duration serials are written as plain decimals."""
        sheet_range = SheetRange.from_cells(
            {
                (0, 0): CellValue.datetime(45082.73888888889),
                (0, 1): CellValue.duration(1e-07),
                (0, 2): CellValue.datetime("2024-01-15"),
            }
        )
        out = io.StringIO()

        write_sheet(sheet_range, cached, COMMA, NEWLINE, out)

        assert out.getvalue() == "45082.73888888889,0.0000001,2024-01-15\n"

    def test_tab_separator_keeps_commas(self) -> None:
        """Commas are plain text with a tab field separator."""
        sheet_range = _range({(0, 0): "a, b", (0, 1): "c"})
        out = io.StringIO()

        write_sheet(sheet_range, cached, TAB, NEWLINE, out)

        assert out.getvalue() == "a, b\tc\n"

    def test_empty_range_writes_nothing(self) -> None:
        """An empty range produces no output."""
        out = io.StringIO()
        assert write_sheet(SheetRange.from_cells({}), cached, COMMA, NEWLINE, out) == 0
        assert out.getvalue() == ""

    def test_error_keeps_previous_records(self) -> None:
        """Records before an error cell stay written."""
        sheet_range = SheetRange.from_cells(
            {
                (0, 0): CellValue.string("before"),
                (1, 0): CellValue.error(CellErrorType.DIV0),
                (2, 0): CellValue.string("after"),
            }
        )
        out = io.StringIO()

        with pytest.raises(CellError) as exc_info:
            write_sheet(sheet_range, cached, COMMA, NEWLINE, out)

        assert out.getvalue() == "before\n"
        assert exc_info.value.row == 1

    def test_resolver_receives_absolute_positions(self) -> None:
        """The resolver sees absolute coordinates in (row, column) order."""
        sheet_range = _range({(2, 1): "a", (2, 3): "b"})
        formulas = FormulaTable({(2, 2): "=B3&D3"})
        resolve = build_formula_resolver(FormulaMode.IF_EMPTY, formulas)
        out = io.StringIO()

        write_sheet(sheet_range, resolve, COMMA, NEWLINE, out)

        assert out.getvalue() == "a,=B3&D3,b\n"

    @pytest.mark.parametrize("separator", [0xA7, 0xFF, 0x20AC])
    def test_non_ascii_separator_rejected(self, separator: int) -> None:
        """Separators above U+007F would not be written as one byte."""
        out = io.StringIO()

        with pytest.raises(CsvWriteError) as exc_info:
            write_sheet(_range({(0, 0): "a"}), cached, separator, NEWLINE, out)

        assert exc_info.value.details["field_separator"] == separator
        assert out.getvalue() == ""

    def test_write_failure(self) -> None:
        """Stream failures become CsvWriteError."""
        out = MagicMock()
        out.write.side_effect = OSError("broken pipe")

        with pytest.raises(CsvWriteError):
            write_sheet(_range({(0, 0): "a"}), cached, COMMA, NEWLINE, out)
