"""
Intent Models

Structured interpretation of a free-text vibe prompt.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


class MediaType(str, Enum):
    """Requested media type."""
    MOVIE = "movie"
    TV = "tv"
    ANY = "any"


class Intent(BaseModel):
    """
    What the user is asking for.

    Built once per request from language-model output merged with
    defaults and safety heuristics. Frozen afterwards.
    """
    media_type: MediaType = Field(default=MediaType.ANY, alias="mediaType")
    search_hint: str = Field(..., alias="searchHint")
    search_queries: List[str] = Field(..., min_length=1, alias="searchQueries")

    # Kids / niche flags
    kids_mode: bool = Field(default=False, alias="kidsMode")
    kids_max_age: Optional[int] = Field(None, alias="kidsMaxAge")
    niche_mode: bool = Field(default=False, alias="nicheMode")

    # Constraints
    year_min: Optional[int] = Field(None, alias="yearMin")
    year_max: Optional[int] = Field(None, alias="yearMax")
    year_exact: Optional[int] = Field(None, alias="yearExact")
    actor_name: Optional[str] = Field(None, alias="actorName")
    with_genres: List[int] = Field(default_factory=list, alias="withGenres")
    without_genres: List[int] = Field(default_factory=list, alias="withoutGenres")
    theme_keywords: List[str] = Field(default_factory=list, alias="themeKeywords")
    provider_include: List[str] = Field(default_factory=list, alias="providerInclude")
    provider_exclude: List[str] = Field(default_factory=list, alias="providerExclude")

    raw_prompt: str = Field(default="", alias="rawPrompt")

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, frozen=True)

    @property
    def is_movie_only(self) -> bool:
        return self.media_type == MediaType.MOVIE.value

    @property
    def is_tv_only(self) -> bool:
        return self.media_type == MediaType.TV.value

    @property
    def wants_movies(self) -> bool:
        return self.media_type != MediaType.TV.value

    @property
    def wants_tv(self) -> bool:
        return self.media_type != MediaType.MOVIE.value
