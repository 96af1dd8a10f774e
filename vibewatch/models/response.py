"""
API Response Models

Standardized response structures for the recommend endpoint.
"""

from typing import List, Optional, Union
from pydantic import BaseModel, Field, ConfigDict

from .intent import Intent


class ResultItem(BaseModel):
    """One recommendation as rendered by the client."""
    id: Union[int, str]
    title: str
    overview: Optional[str] = None
    media_type: str
    vote_average: Optional[float] = None
    release_date: Optional[str] = None
    poster_path: Optional[str] = Field(None, description="Absolute poster URL")
    providers: List[str] = Field(default_factory=list)
    reason: str


class RecommendResponse(BaseModel):
    """Complete recommend API response."""
    results: List[ResultItem] = Field(..., min_length=1)
    intent: Intent
    provider_include: List[str] = Field(default_factory=list, alias="providerInclude")
    provider_exclude: List[str] = Field(default_factory=list, alias="providerExclude")

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
