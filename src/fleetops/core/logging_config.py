"""Central logging configuration utilities.

A single composition-root driven `configure_logging` wires separate
stdout/stderr sinks and injects a correlation id into all log records.
Adapters or domain code never mutate global logging; they only emit via
`LoggingPort` or standard module loggers.

Orchestrators bind the correlation id to `<operation>:<subject>` for the
duration of one invocation, so interleaved log lines from a concurrent batch
can be told apart.
"""

from __future__ import annotations

import contextvars
import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional, TextIO

# Correlation id context variable (populated per orchestrator invocation)
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default="-"
)

DEFAULT_FORMAT = (
    "[%(asctime)s] %(levelname)s %(name)s %(correlation_id)s: %(message)s"
)


def coerce_level(level: int | str | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    key = str(level).upper().strip()
    mapping = logging.getLevelNamesMapping()
    return mapping.get(key, logging.INFO)


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[None]:
    """Bind a correlation id for the current task until the block exits."""
    token = correlation_id_var.set(correlation_id)
    try:
        yield
    finally:
        correlation_id_var.reset(token)


class _CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        return True


class _LevelBandFilter(logging.Filter):
    """Pass records whose level lies in [min_level, max_level]."""

    def __init__(self, min_level: int, max_level: int = logging.CRITICAL):
        super().__init__()
        self.min_level = min_level
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return self.min_level <= record.levelno <= self.max_level


def _band_handler(
    stream: TextIO,
    band: _LevelBandFilter,
    formatter: logging.Formatter,
) -> logging.Handler:
    handler = logging.StreamHandler(stream=stream)
    handler.setLevel(band.min_level)
    handler.addFilter(band)
    handler.addFilter(_CorrelationIdFilter())
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: int | str | None = None,
    fmt: Optional[str] = None,
    quiet_http_client: bool = True,
) -> None:
    """Install the stdout/stderr sinks on the root logger.

    DEBUG and INFO go to stdout, WARNING and above to stderr, so JSON results
    printed by the CLI can be piped while diagnostics stay visible. Repeated
    calls replace the previous handlers.
    """
    numeric_level = coerce_level(level)
    formatter = logging.Formatter(fmt or DEFAULT_FORMAT)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    root.addHandler(_band_handler(sys.stdout, _LevelBandFilter(logging.DEBUG, logging.INFO), formatter))
    root.addHandler(_band_handler(sys.stderr, _LevelBandFilter(logging.WARNING), formatter))

    # the HTTP adapter reports aiohttp failures itself
    if quiet_http_client:
        logging.getLogger("aiohttp").setLevel(logging.WARNING)

    logging.getLogger("fleetops").debug(
        "Logging configured level=%s quiet_http_client=%s", numeric_level, quiet_http_client
    )
