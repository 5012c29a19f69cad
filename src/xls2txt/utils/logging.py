"""Structured logging for the converter.

Records are written as ``message | key=value, ...`` and prefixed with the
conversion context (file and sheet) set through ``LogContext``. Everything
goes to stderr: stdout carries the converted records only.

Usage:
    from xls2txt.utils.logging import get_logger, LogContext

    logger = get_logger(__name__)

    with LogContext(file="book.xlsx", sheet="1"):
        logger.debug("Sheet resolved", sheet="Albums")
"""

import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import IO, Any

DEFAULT_FORMAT = "%(name)s - %(levelname)s - %(message)s"

_context_var: ContextVar[dict[str, Any] | None] = ContextVar(
    "conversion_context", default=None
)


def get_context() -> dict[str, Any]:
    """Return the context of the running conversion (empty if none)."""
    return _context_var.get() or {}


def set_context(context: dict[str, Any] | None) -> None:
    _context_var.set(context)


@dataclass
class ConversionMetrics:
    """Timing and volume of one timed operation.

    Attributes:
        operation: Name of the timed operation.
        rows_written: Records written to the output.
        elapsed_seconds: Wall time, set by ``stop``.
        extra: Additional values reported with the metrics.
    """

    operation: str
    rows_written: int = 0
    elapsed_seconds: float = 0.0
    extra: dict[str, Any] = field(default_factory=dict)
    _started: float = field(default_factory=time.perf_counter, repr=False)

    def stop(self) -> None:
        self.elapsed_seconds = time.perf_counter() - self._started

    def as_fields(self) -> dict[str, Any]:
        """Key-value fields for a structured log message."""
        fields: dict[str, Any] = {
            "operation": self.operation,
            "elapsed": f"{self.elapsed_seconds:.3f}s",
            "rows_written": self.rows_written,
        }
        fields.update(self.extra)
        return fields


class ContextFormatter(logging.Formatter):
    """Formatter prefixing each message with the conversion context."""

    def format(self, record: logging.LogRecord) -> str:
        context = get_context()
        if not context:
            return super().format(record)

        prefix = " ".join(f"{key}={value}" for key, value in context.items())
        message = record.msg
        record.msg = f"[{prefix}] {message}"
        try:
            return super().format(record)
        finally:
            record.msg = message


class StructuredLogger:
    """Logger wrapper accepting key-value fields as keyword arguments."""

    def __init__(self, name: str) -> None:
        self._logger = logging.getLogger(name)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @staticmethod
    def render(message: str, **fields: Any) -> str:
        """Render a message and its fields as one line."""
        if not fields:
            return message
        rendered = ", ".join(f"{key}={value}" for key, value in fields.items())
        return f"{message} | {rendered}"

    def log(
        self, level: int, message: str, exc_info: bool = False, **fields: Any
    ) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, self.render(message, **fields), exc_info=exc_info)

    def debug(self, message: str, **fields: Any) -> None:
        self.log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self.log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self.log(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: bool = False, **fields: Any) -> None:
        self.log(logging.ERROR, message, exc_info=exc_info, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        """Log at error level with the active exception's traceback."""
        self.log(logging.ERROR, message, exc_info=True, **fields)

    def log_metrics(self, metrics: ConversionMetrics) -> None:
        self.debug(f"Finished {metrics.operation}", **metrics.as_fields())


class LogContext:
    """Add fields to the context of every record logged inside the block.

    Nested contexts merge with the enclosing one, which is restored on exit.
    """

    def __init__(self, **fields: Any) -> None:
        self._fields = fields
        self._saved: dict[str, Any] | None = None

    def __enter__(self) -> "LogContext":
        self._saved = _context_var.get()
        set_context({**get_context(), **self._fields})
        return self

    def __exit__(self, *args: Any) -> None:
        set_context(self._saved)


@contextmanager
def timed_operation(
    logger: StructuredLogger, operation: str
) -> Iterator[ConversionMetrics]:
    """Time a block and log its metrics at debug level when it ends.

    Metrics are logged whether the block completes or raises.

    Usage:
        with timed_operation(logger, "convert") as metrics:
            metrics.rows_written = write_sheet(...)
    """
    metrics = ConversionMetrics(operation=operation)
    try:
        yield metrics
    finally:
        metrics.stop()
        logger.log_metrics(metrics)


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: str = DEFAULT_FORMAT,
    stream: IO[str] | None = None,
) -> None:
    """Install a single stderr handler on the root logger.

    Handlers from earlier calls are replaced, so the command can be invoked
    repeatedly in one process.

    Args:
        level: Level name (case-insensitive) or number.
        format_string: Format of each record.
        stream: Destination; the current ``sys.stderr`` when None.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(ContextFormatter(format_string))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)
