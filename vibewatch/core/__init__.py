"""Core infrastructure modules."""

from .exceptions import (
    VibeWatchException,
    MissingPromptError,
    ConfigurationError,
    MediaSourceError,
)
from .logging import setup_logging, bind_request_context, get_logger

__all__ = [
    "VibeWatchException",
    "MissingPromptError",
    "ConfigurationError",
    "MediaSourceError",
    "setup_logging",
    "bind_request_context",
    "get_logger",
]
