"""
Structured Logging Configuration

structlog event logging: colored console output during development,
one JSON object per line everywhere else. Per-request fields bound with
``bind_request_context`` are merged into every event of that request.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import Processor

from ..config import get_settings

# Third-party loggers that log every outbound request URL at INFO.
# TMDB URLs carry the api_key as a query parameter.
NOISY_LOGGERS = ("httpx", "httpcore")


def _resolve_format(log_format: str, environment: str) -> str:
    if log_format in ("json", "console"):
        return log_format
    return "console" if environment == "development" else "json"


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> str:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level: Override level (DEBUG, INFO, WARNING, ERROR)
        log_format: "json", "console" or "auto"

    Returns:
        The output format actually selected
    """
    settings = get_settings()

    level_name = (log_level or settings.log_level or ("DEBUG" if settings.debug else "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    fmt = _resolve_format(log_format or settings.log_format, settings.environment)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if fmt == "console":
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    else:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return fmt


def bind_request_context(**fields) -> None:
    """Replace the per-request logging context with ``fields``."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**fields)


def get_logger(name: str = "vibewatch") -> structlog.BoundLogger:
    return structlog.get_logger(name)
