"""Resolution of a user sheet selector to a worksheet of the workbook."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

from xls2txt.models import SheetRange
from xls2txt.utils.exceptions import EmptySpreadsheetError, SheetNotFoundError
from xls2txt.utils.logging import get_logger

if TYPE_CHECKING:
    from xls2txt.services.readers import Workbook

logger = get_logger(__name__)

_INDEX_PATTERN = re.compile(r"\+?[0-9]+")


def parse_sheet_index(token: str) -> int | None:
    """Parse a sheet selector as a 1-based index.

    Returns:
        The index, or None when the token is not an unsigned integer.
    """
    if not _INDEX_PATTERN.fullmatch(token):
        return None
    return int(token)


def resolve_sheet_name(token: str, sheet_names: Sequence[str]) -> str:
    """Turn a sheet selector into a sheet name.

    A numeric token selects the sheet at that 1-based position (``0`` is
    treated as ``1``). Any other token, and any index past the last sheet,
    is returned unchanged and used as an exact, case-sensitive name.

    Args:
        token: Sheet name or 1-based index as given by the user.
        sheet_names: Sheet names of the workbook in order.

    Returns:
        The sheet name to look up.
    """
    index = parse_sheet_index(token)
    if index is not None:
        position = max(index - 1, 0)
        if position < len(sheet_names):
            return sheet_names[position]
    return token


def load_sheet_range(workbook: Workbook, token: str) -> tuple[str, SheetRange]:
    """Resolve a sheet selector and read the sheet's used range.

    Args:
        workbook: Open workbook reader.
        token: Sheet name or 1-based index.

    Returns:
        Tuple of the resolved sheet name and its used range.

    Raises:
        EmptySpreadsheetError: If the workbook has no sheets at all.
        SheetNotFoundError: If no sheet has the resolved name.
        SpreadsheetError: If the reader fails to parse the sheet.
    """
    sheet_names = workbook.sheet_names
    if not sheet_names:
        raise EmptySpreadsheetError(file_path=workbook.path_str)

    name = resolve_sheet_name(token, sheet_names)
    sheet_range = workbook.worksheet_range(name)
    if sheet_range is None:
        raise SheetNotFoundError(name, file_path=workbook.path_str)

    logger.debug(
        "Sheet resolved",
        token=token,
        sheet=name,
        start=sheet_range.start,
        end=sheet_range.end,
    )
    return name, sheet_range
