"""Logging setup for clabot: structlog events rendered through stdlib handlers."""

from __future__ import annotations

import logging
import logging.config
import sys
from typing import IO

import structlog

LOG_FORMATS = ("console", "json")

# Chatty at INFO: one line per HTTP request
_QUIET_LOGGERS = ("httpx", "httpcore")


def is_valid_level(level: str) -> bool:
    return isinstance(logging.getLevelName(level.upper()), int)


def _pre_chain(fmt: str) -> list[structlog.types.Processor]:
    chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    # ConsoleRenderer pretty-prints exc_info itself
    if fmt == "json":
        chain.append(structlog.processors.format_exc_info)
    return chain


def _renderer(fmt: str, stream: IO[str]) -> structlog.types.Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=stream.isatty())


def setup_logging(
    level: str = "INFO",
    fmt: str = "console",
    *,
    stream: IO[str] | None = None,
) -> None:
    """Route structlog and stdlib logging to one handler on *stream* (stderr).

    *fmt* is ``console`` (colours only on a terminal) or ``json`` (one
    object per line).  Raises ValueError for an unknown level or format.
    """
    fmt = fmt.lower()
    level = level.upper()
    if fmt not in LOG_FORMATS:
        raise ValueError(f"unknown log format {fmt!r}, expected one of: {', '.join(LOG_FORMATS)}")
    if not is_valid_level(level):
        raise ValueError(f"unknown log level {level!r}")

    out = stream if stream is not None else sys.stderr
    pre_chain = _pre_chain(fmt)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "clabot": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": pre_chain,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(fmt, out),
                    ],
                },
            },
            "handlers": {
                "out": {"class": "logging.StreamHandler", "stream": out, "formatter": "clabot"},
            },
            "root": {"handlers": ["out"], "level": level},
            "loggers": {
                "clabot": {"level": level},
                **{name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
            },
        }
    )
