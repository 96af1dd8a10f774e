"""
Request Models

Inbound recommendation request and the client-side history it carries.
"""

from typing import List, Optional, Union
from pydantic import BaseModel, Field, ConfigDict, field_validator


class HistoryItem(BaseModel):
    """
    Normalized subset of a catalog item kept in client storage.

    Liked/disliked/watched lists are owned by the client; the backend
    only reads them.
    """
    id: Optional[Union[int, str]] = None
    media_type: Optional[str] = None
    title: Optional[str] = None
    name: Optional[str] = None
    release_date: Optional[str] = None
    first_air_date: Optional[str] = None
    poster_path: Optional[str] = None
    genre_ids: List[int] = Field(default_factory=list)
    rating: Optional[float] = Field(None, description="Watched rating 1-10")
    prompt: Optional[str] = Field(None, description="Prompt the item came from")

    model_config = ConfigDict(extra="allow")

    @field_validator("genre_ids", mode="before")
    @classmethod
    def _clean_genres(cls, v):
        if not isinstance(v, list):
            return []
        out = []
        for g in v:
            try:
                out.append(int(g))
            except (TypeError, ValueError, OverflowError):
                continue
        return out


class RecommendRequest(BaseModel):
    """Body of POST /api/recommend."""
    prompt: Optional[str] = None
    mood: int = Field(default=3, description="1 (calm) to 5 (intense)")
    local_hour: Optional[int] = Field(None, alias="localHour")
    liked: List[HistoryItem] = Field(default_factory=list)
    disliked: List[HistoryItem] = Field(default_factory=list)
    watched: List[HistoryItem] = Field(default_factory=list)
    exclude_ids: List[Union[int, str]] = Field(default_factory=list, alias="excludeIds")
    region: str = "GB"
    refresh_token: str = Field(default="", alias="refreshToken")
    provider_include: List[str] = Field(default_factory=list, alias="providerInclude")
    provider_exclude: List[str] = Field(default_factory=list, alias="providerExclude")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("prompt", mode="before")
    @classmethod
    def _text_prompt(cls, v):
        return None if v is None else str(v)

    @field_validator("mood", mode="before")
    @classmethod
    def _default_mood(cls, v):
        # Missing or non-numeric moods are neutral
        if v is None or isinstance(v, bool):
            return 3
        try:
            return round(float(v))
        except (TypeError, ValueError, OverflowError):
            return 3

    @field_validator("local_hour", mode="before")
    @classmethod
    def _hour_or_none(cls, v):
        if v is None or isinstance(v, bool):
            return None
        try:
            return int(float(v))
        except (TypeError, ValueError, OverflowError):
            return None

    @field_validator("refresh_token", mode="before")
    @classmethod
    def _none_token(cls, v):
        return "" if v is None else str(v)

    @field_validator("region", mode="before")
    @classmethod
    def _default_region(cls, v):
        return v or "GB"

    @field_validator("liked", "disliked", "watched", "exclude_ids",
                     "provider_include", "provider_exclude", mode="before")
    @classmethod
    def _none_list(cls, v):
        return v or []
