"""API Routers."""

from .recommend import router as recommend_router

__all__ = [
    "recommend_router",
]
