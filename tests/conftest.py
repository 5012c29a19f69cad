from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import date, datetime, time
from pathlib import Path

import pytest
from odf.opendocument import OpenDocumentSpreadsheet
from odf.table import Table, TableCell, TableRow
from odf.text import P
from openpyxl import Workbook

ALBUM_ROWS: list[tuple[str, int, float, str]] = [
    ("Static Anonimity", 2001, 45082.73888888889, "Restless Records"),
    (
        "Old World Underground, Where Are You Now",
        2003,
        0.02585648148148148,
        "Last Gang Records, Everloving Records",
    ),
    ("Live It Out", 2005, 0.02840277777777778, "Last Gang Records"),
    ("Grow Up And Blow Away", 2007, 0.02719907407407407, "Last Gang Records"),
    ("Fantasies", 2009, 0.02951388888888889, "Metric Music International"),
    ("Synthetica", 2012, 0.02998842592592593, "Metric Music International"),
    ("Pagans in Vegas", 2015, 0.03428240740740741, "Metric Music International"),
    ("Art of Doubt", 2018, 0.04046296296296296, "Metric Music International"),
    ("Formentera", 2022, 0.03309027777777778, "Metric Music International"),
]

ALBUMS_CSV = """\
Title,Year,Length,Label
Static Anonimity,2001,45082.73888888889,Restless Records
"Old World Underground, Where Are You Now",2003,0.02585648148148148,\
"Last Gang Records, Everloving Records"
Live It Out,2005,0.02840277777777778,Last Gang Records
Grow Up And Blow Away,2007,0.02719907407407407,Last Gang Records
Fantasies,2009,0.02951388888888889,Metric Music International
Synthetica,2012,0.02998842592592593,Metric Music International
Pagans in Vegas,2015,0.03428240740740741,Metric Music International
Art of Doubt,2018,0.04046296296296296,Metric Music International
Formentera,2022,0.03309027777777778,Metric Music International
"""

ALBUMS_TXT = """\
Title\tYear\tLength\tLabel
Static Anonimity\t2001\t45082.73888888889\tRestless Records
Old World Underground, Where Are You Now\t2003\t0.02585648148148148\t\
Last Gang Records, Everloving Records
Live It Out\t2005\t0.02840277777777778\tLast Gang Records
Grow Up And Blow Away\t2007\t0.02719907407407407\tLast Gang Records
Fantasies\t2009\t0.02951388888888889\tMetric Music International
Synthetica\t2012\t0.02998842592592593\tMetric Music International
Pagans in Vegas\t2015\t0.03428240740740741\tMetric Music International
Art of Doubt\t2018\t0.04046296296296296\tMetric Music International
Formentera\t2022\t0.03309027777777778\tMetric Music International
"""


@pytest.fixture
def albums_xlsx(tmp_path: Path) -> Path:
    """Workbook with an album list on the first sheet and notes on the second."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Albums"
    ws.append(["Title", "Year", "Length", "Label"])
    for row in ALBUM_ROWS:
        ws.append(list(row))
    # release date and running time stored as date-formatted serials
    ws["C2"].number_format = "yyyy-mm-dd h:mm"
    ws["C3"].number_format = "[h]:mm:ss"

    notes = wb.create_sheet("Notes")
    notes["B2"] = "offset"
    notes["C3"] = 'say "hi"'

    wb.create_sheet("Blank")

    path = tmp_path / "albums.xlsx"
    wb.save(path)
    return path


@pytest.fixture
def formulas_xlsx(tmp_path: Path) -> Path:
    """Workbook with formula cells; openpyxl stores no cached values."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Calc"
    ws["A1"] = 2
    ws["B1"] = 3
    ws["C1"] = "=A1+B1"
    ws["A2"] = "total"
    ws["D3"] = "=SUM(A1:B1)"

    path = tmp_path / "formulas.xlsx"
    wb.save(path)
    return path


@pytest.fixture
def dates_xlsx(tmp_path: Path) -> Path:
    """Workbook with date, time and duration cells on one row."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Dates"
    ws["A1"] = datetime(2023, 6, 5, 17, 44)
    ws["B1"] = 0.02585648148148148
    ws["B1"].number_format = "[h]:mm:ss"
    ws["C1"] = time(0, 37, 14)
    ws["D1"] = date(2024, 1, 15)

    path = tmp_path / "dates.xlsx"
    wb.save(path)
    return path


@pytest.fixture
def errors_xlsx(tmp_path: Path) -> Path:
    """Workbook whose second row holds a #DIV/0! error cell."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Errors"
    ws["A1"] = "before"
    ws["A2"] = "#DIV/0!"
    ws["A3"] = "after"

    path = tmp_path / "errors.xlsx"
    wb.save(path)
    return path


def _text_cell(text: str, **attributes: str) -> TableCell:
    cell = TableCell(valuetype="string", **attributes)
    cell.addElement(P(text=text))
    return cell


def _float_cell(value: float, **attributes: str) -> TableCell:
    cell = TableCell(valuetype="float", value=str(value), **attributes)
    cell.addElement(P(text=str(value)))
    return cell


@pytest.fixture
def sample_ods(tmp_path: Path) -> Path:
    """OpenDocument spreadsheet covering value types, repeats and formulas.

    Sheet "Data" (absolute rows):
        0: Name | 2001 | true | 2024-01-15 | PT01H30M00S
        1: <blank> | 4 (formula of:=[.B1]*2)
        2-4: repeated blank rows
        5: x | x (one cell repeated twice)
        then 1000 trailing blank rows
    Sheet "Empty" has no content.
    """
    doc = OpenDocumentSpreadsheet()

    data = Table(name="Data")

    row = TableRow()
    row.addElement(_text_cell("Name"))
    row.addElement(_float_cell(2001))
    boolean = TableCell(valuetype="boolean", booleanvalue="true")
    boolean.addElement(P(text="TRUE"))
    row.addElement(boolean)
    day = TableCell(valuetype="date", datevalue="2024-01-15")
    day.addElement(P(text="01/15/24"))
    row.addElement(day)
    duration = TableCell(valuetype="time", timevalue="PT01H30M00S")
    duration.addElement(P(text="01:30:00"))
    row.addElement(duration)
    data.addElement(row)

    row = TableRow()
    row.addElement(TableCell())
    row.addElement(_float_cell(4, formula="of:=[.B1]*2"))
    data.addElement(row)

    row = TableRow(numberrowsrepeated="3")
    row.addElement(TableCell(numbercolumnsrepeated="5"))
    data.addElement(row)

    row = TableRow()
    row.addElement(_text_cell("x", numbercolumnsrepeated="2"))
    data.addElement(row)

    row = TableRow(numberrowsrepeated="1000")
    row.addElement(TableCell(numbercolumnsrepeated="1024"))
    data.addElement(row)

    doc.spreadsheet.addElement(data)

    empty = Table(name="Empty")
    row = TableRow()
    row.addElement(TableCell())
    empty.addElement(row)
    doc.spreadsheet.addElement(empty)

    path = tmp_path / "sample.ods"
    doc.save(str(path))
    return path


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    """Undo configure_logging calls made by a test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
