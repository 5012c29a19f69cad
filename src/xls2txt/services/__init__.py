"""Services for converting worksheets to delimited text."""

from xls2txt.services.format_detector import FormatDetector
from xls2txt.services.readers import Workbook, open_workbook_auto

__all__ = ["FormatDetector", "Workbook", "open_workbook_auto"]
