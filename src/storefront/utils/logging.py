"""Structured logging for the storefront.

Events are logged with structlog as snake_case names plus keyword fields
(``order_placed``, ``stock_reserved`` ...). structlog sits on top of the
standard library so Protean's loggers go through the same handlers.

Settings come from the environment:

- ``STOREFRONT_LOG_LEVEL`` overrides the per-environment default level.
- ``STOREFRONT_LOG_DIR`` turns on rotating log files in that directory;
  without it everything goes to stdout.
- ``PROTEAN_ENV`` of ``production`` switches the renderer to JSON lines.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

_LEVELS_BY_ENV = {
    "production": "INFO",
    "sqlite": "DEBUG",
    "test": "WARNING",
}

# One file per concern; checkout failures are what on-call reads first
_MAX_LOG_BYTES = 5 * 1024 * 1024
_LOG_BACKUPS = 3


def _environment() -> str:
    return (os.getenv("PROTEAN_ENV") or "development").lower()


def log_level() -> str:
    return os.getenv("STOREFRONT_LOG_LEVEL", _LEVELS_BY_ENV.get(_environment(), "DEBUG")).upper()


def _file_handler(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=_MAX_LOG_BYTES,
        backupCount=_LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def _configure_handlers(level: str, log_dir: str | None, prefix: str) -> None:
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [logging.StreamHandler(sys.stdout)]

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        root.addHandler(_file_handler(path / f"{prefix}.log", level))
        root.addHandler(_file_handler(path / f"{prefix}_errors.log", logging.ERROR))

    for noisy in ("protean", "sqlalchemy.engine", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def _configure_structlog() -> None:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if _environment() == "production":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(exception_formatter=structlog.dev.plain_traceback))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(level: str | None = None, log_dir: str | None = None, prefix: str = "storefront") -> None:
    """Route stdlib and structlog output for the whole process."""
    _configure_handlers(level or log_level(), log_dir or os.getenv("STOREFRONT_LOG_DIR"), prefix)
    _configure_structlog()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request(**fields: Any) -> None:
    """Attach fields (request id, path) to every log line of the current request."""
    structlog.contextvars.bind_contextvars(**fields)


def clear_request() -> None:
    structlog.contextvars.clear_contextvars()
