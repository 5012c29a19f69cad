"""Command line entry points.

``xls2csv``, ``xls2txt`` and ``xls2dsv`` share one command and differ only
in their default separators. ``xls2dsv`` has none, so both separators must
be given.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from xls2txt import __version__
from xls2txt.config import settings
from xls2txt.converter import ConversionOptions, convert
from xls2txt.models import FormulaMode
from xls2txt.utils.exceptions import Xls2TxtError
from xls2txt.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _show_separator(value: str | None) -> str | bool:
    return repr(value) if value is not None else False


def make_command(
    output_name: str,
    default_record_separator: str | None,
    default_field_separator: str | None,
) -> click.Command:
    """Build a conversion command for one output flavour.

    Args:
        output_name: Name of the output format used in the help text.
        default_record_separator: Default for ``--record-separator``.
        default_field_separator: Default for ``--field-separator``.

    Returns:
        The click command.
    """

    @click.command(
        help=(
            "Converts the first sheet of the spreadsheet at PATH (or SHEET if "
            f"requested) to {output_name} sent to stdout.\n\n"
            "Should be able to convert from (and automatically guess between) "
            "XLS, XLSX, XLSB and ODS."
        ),
        short_help="Converts spreadsheets to text",
        context_settings={"help_option_names": ["-h", "--help"]},
    )
    @click.version_option(__version__, "-V", "--version")
    @click.argument("path", type=click.Path(path_type=Path, dir_okay=False))
    @click.option(
        "-s",
        "--sheet",
        default=None,
        show_default="1",
        help="Name or index (1 is first) of the sheet to convert",
    )
    @click.option(
        "-r",
        "--record-separator",
        default=default_record_separator,
        show_default=_show_separator(default_record_separator),
        help="Record separator (a single character)",
    )
    @click.option(
        "-f",
        "--field-separator",
        default=default_field_separator,
        show_default=_show_separator(default_field_separator),
        help="Field separator (a single character)",
    )
    @click.option(
        "--formula",
        type=click.Choice([mode.value for mode in FormulaMode]),
        default=FormulaMode.CACHED_VALUE.value,
        show_default=True,
        help="Whether and when to show formulas",
    )
    @click.option(
        "--log-level",
        type=click.Choice(LOG_LEVELS, case_sensitive=False),
        default=None,
        help="Level of diagnostics written to stderr",
    )
    @click.pass_context
    def command(
        ctx: click.Context,
        path: Path,
        sheet: str | None,
        record_separator: str | None,
        field_separator: str | None,
        formula: str,
        log_level: str | None,
    ) -> None:
        configure_logging(log_level or settings.log_level_int)
        logger.debug("Settings loaded", **settings.to_safe_dict())
        options = ConversionOptions(
            path=path,
            sheet=sheet if sheet is not None else settings.default_sheet,
            record_separator=record_separator,
            field_separator=field_separator,
            formula_mode=FormulaMode(formula),
        )
        try:
            convert(options, sys.stdout)
        except Xls2TxtError as e:
            if settings.debug:
                logger.exception("Conversion aborted", error=e.to_dict())
            click.echo(f"Error: {e}", err=True)
            ctx.exit(e.get_exit_status())

    return command


xls2csv = make_command("CSV", "\n", ",")
xls2txt = make_command("text", "\n", "\t")
xls2dsv = make_command("delimited text", None, None)
