"""Logging for the contribcard CLI: structlog events rendered through stdlib logging."""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

# Libraries that log every request or statement at DEBUG.
_QUIET_LOGGERS = ("aiosqlite", "httpx", "httpcore")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(verbose: bool = False) -> None:
    """Send structlog and stdlib records to stderr, leaving stdout to command output.

    CONTRIBCARD_LOG_LEVEL overrides the level (INFO, or DEBUG with *verbose*);
    CONTRIBCARD_LOG_FORMAT selects ``console`` (default) or ``json``.
    """
    log_level = os.environ.get("CONTRIBCARD_LOG_LEVEL", "DEBUG" if verbose else "INFO").upper()
    log_format = os.environ.get("CONTRIBCARD_LOG_FORMAT", "console").lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(log_format),
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "structlog",
                },
            },
            "root": {"handlers": ["stderr"], "level": log_level},
            "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
        }
    )
