"""
Structured logging for the engine and its hosts.

Events are written to stderr so that whatever a host prints on stdout
(progress, result tables) stays clean.
"""

import logging
import sys
from typing import Any, TextIO

import structlog

from ingestkit.config.settings import LoggingConfig


class _StderrLoggerFactory:
    """Print loggers bound to whatever ``sys.stderr`` is when a logger is built."""

    def __call__(self, *args: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


class _StderrHandler(logging.StreamHandler):
    """Standard library handler that always writes to the current ``sys.stderr``."""

    @property  # type: ignore[override]
    def stream(self) -> TextIO:
        return sys.stderr

    @stream.setter
    def stream(self, value: TextIO) -> None:
        pass


def _processors(json_output: bool, colors: bool) -> list[structlog.types.Processor]:
    """Processor chain ending in a JSON or console renderer."""
    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        return [*shared, structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [*shared, structlog.dev.ConsoleRenderer(colors=colors)]


def configure_logging(
    config: LoggingConfig | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structlog and the standard library root logger.

    openpyxl and pyarrow report through the standard library, so both
    share the level and stream.

    Args:
        config: Level and renderer; defaults to INFO on the console.
        stream: Destination of log lines. If omitted, lines go to
            ``sys.stderr`` as it is at the time of each log call, so hosts
            that swap stderr temporarily never leave a stale stream behind.
    """
    config = config or LoggingConfig()
    level = logging.getLevelNamesMapping()[config.level]
    handler = logging.StreamHandler(stream) if stream is not None else _StderrHandler()
    factory = (
        structlog.PrintLoggerFactory(file=stream) if stream is not None else _StderrLoggerFactory()
    )

    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        handlers=[handler],
        level=level,
        force=True,
    )

    structlog.configure(
        processors=_processors(config.json_output, colors=(stream or sys.stderr).isatty()),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=factory,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__ of the module).

    Returns:
        Configured structlog logger.
    """
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> structlog.contextvars.bound_contextvars:
    """
    Bind values to every event logged inside the block.

    Example:
        with log_context(source="sales.db", dataset="orders"):
            log.error("Import failed")  # carries source and dataset

    Args:
        **kwargs: Key-value pairs to add to log context.

    Returns:
        Context manager that binds the values.
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
