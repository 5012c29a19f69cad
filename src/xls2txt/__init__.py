"""xls2txt - Convert a worksheet of an XLS, XLSX, XLSB or ODS file to text."""

from xls2txt.converter import ConversionOptions, convert
from xls2txt.models import FormulaMode

__all__ = ["ConversionOptions", "FormulaMode", "convert"]
__version__ = "0.1.0"


def main() -> None:
    """Run the tab-separated ``xls2txt`` command."""
    from xls2txt.cli import xls2txt

    xls2txt()
