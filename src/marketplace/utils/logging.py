"""Structured logging for the marketplace.

Events are emitted through structlog and delivered by standard library
handlers: stdout always, plus a rotating event log and a rotating error log
unless ``LOG_TO_FILE`` is off. Every event carries ``service`` so marketplace
lines can be picked out of a shared aggregator.

Environment:
    LOG_LEVEL    overrides the per-environment default level.
    LOG_FORMAT   ``json`` or ``console``; defaults to json outside development.
    LOG_DIR      directory for the rotating files (``logs``).
    LOG_TO_FILE  ``0``/``false`` disables the rotating files.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

SERVICE = "marketplace"

_DEFAULT_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_ROTATE_BYTES = 10 * 1024 * 1024
_ROTATE_KEEP = 5

# Libraries whose INFO chatter drowns out order and stock events
_QUIET = ("urllib3", "asyncio", "protean", "sqlalchemy.engine")


def get_environment() -> str:
    return (os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", _DEFAULT_LEVELS.get(get_environment(), "INFO")).upper()


def wants_json() -> bool:
    """JSON lines unless explicitly asked for console output, or developing locally."""
    fmt = os.getenv("LOG_FORMAT", "").lower()
    if fmt:
        return fmt == "json"
    return get_environment() in ("production", "staging")


def _files_enabled() -> bool:
    return os.getenv("LOG_TO_FILE", "1").lower() not in ("0", "false", "no")


def _rotating(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=_ROTATE_BYTES,
        backupCount=_ROTATE_KEEP,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def _handlers(level: str, log_dir: str | None, prefix: str) -> list[logging.Handler]:
    stdout = logging.StreamHandler(sys.stdout)
    stdout.setLevel(level)
    handlers = [stdout]

    if _files_enabled():
        directory = Path(log_dir or os.getenv("LOG_DIR", "logs"))
        directory.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating(directory / f"{prefix}.log", level))
        handlers.append(_rotating(directory / f"{prefix}_error.log", logging.ERROR))

    return handlers


def add_service(_, __, event_dict: dict) -> dict:
    """structlog processor stamping the emitting service on each event."""
    event_dict.setdefault("service", SERVICE)
    return event_dict


def _processors() -> list:
    chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_service,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
    ]
    if wants_json():
        chain.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return chain


def configure_logging(log_dir: str | None = None, log_file_prefix: str = SERVICE) -> None:
    """Route structlog events through freshly installed root handlers.

    Safe to call more than once; earlier handlers are replaced.
    """
    level = get_log_level()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = _handlers(level, log_dir, log_file_prefix)
    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=_processors(),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def add_context(**kwargs: Any) -> None:
    """Bind request-scoped fields (actor, role) onto every later event."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
