"""Pydantic models for the VibeWatch backend."""

from .intent import Intent, MediaType
from .candidate import Candidate, Genre, Pick
from .request import HistoryItem, RecommendRequest
from .response import ResultItem, RecommendResponse, ErrorResponse

__all__ = [
    "Intent",
    "MediaType",
    "Candidate",
    "Genre",
    "Pick",
    "HistoryItem",
    "RecommendRequest",
    "ResultItem",
    "RecommendResponse",
    "ErrorResponse",
]
