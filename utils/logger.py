"""Logging setup for the CLI and tests; every record can carry a request trace_id."""

from __future__ import annotations

import logging
import sys
from typing import Any

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(trace_id)s]: %(message)s"


class TraceIdFilter(logging.Filter):
    """Give every record a trace_id so the format string works for records logged without one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "trace_id", None):
            record.trace_id = "-"
        return True


def get_logger(name: str) -> logging.Logger:
    """Module logger; handlers are configured once by setup_logging."""
    return logging.getLogger(name)


def setup_logging(
    level: str = "INFO",
    format_string: str | None = None,
    stream: Any = None,
) -> None:
    """Replace root handlers with one stream handler that renders trace ids."""
    stream = stream or sys.stdout
    handler = logging.StreamHandler(stream)
    handler.addFilter(TraceIdFilter())
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )


def log_structured(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    """Emit a log record with extra keys (trace_id, counts, confidences) for structured aggregation."""
    logger.log(level, msg, extra=kwargs)
