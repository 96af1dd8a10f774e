"""
Global Exception Handlers

Custom exceptions and FastAPI exception handlers.
"""

from typing import Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .logging import get_logger

logger = get_logger(__name__)


class VibeWatchException(Exception):
    """Base exception for recommendation backend errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class MissingPromptError(VibeWatchException):
    """Request arrived without a usable prompt."""

    def __init__(self):
        super().__init__(message="Missing prompt", status_code=400)


class ConfigurationError(VibeWatchException):
    """Required server configuration is absent."""

    def __init__(self, setting: str):
        super().__init__(
            message=f"{setting} missing on server",
            status_code=500
        )


class MediaSourceError(VibeWatchException):
    """
    Non-recoverable TMDB failure (4xx or transport error).

    5xx responses never raise this; they soft-fail to empty results.
    """

    def __init__(self, url: str, upstream_status: Optional[int] = None, detail: str = ""):
        self.url = url
        self.upstream_status = upstream_status
        super().__init__(
            message=f"TMDB error {upstream_status}: {url} {detail}".strip(),
            status_code=500
        )


async def vibewatch_exception_handler(
    request: Request,
    exc: VibeWatchException
) -> JSONResponse:
    """Handle VibeWatchException and return JSON response."""
    # Upstream details stay in the logs, callers get a generic message
    message = "Server error" if isinstance(exc, MediaSourceError) else exc.message
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies get the same {"error": ...} shape as other failures."""
    errors = exc.errors()
    logger.warning("request_validation_failed", path=request.url.path, errors=len(errors))

    fields = [".".join(str(p) for p in e.get("loc", ()) if p != "body") for e in errors]
    fields = list(dict.fromkeys(f for f in fields if f))
    message = f"Invalid request: {', '.join(fields)}" if fields else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log and hide internals."""
    logger.error("unhandled_exception", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": "Server error"})


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(VibeWatchException, vibewatch_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
