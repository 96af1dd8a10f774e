"""
Candidate Models

TMDB catalog items eligible for recommendation, and the picks
chosen from them.
"""

import math
from typing import List, Optional, Tuple, Union
from pydantic import BaseModel, Field, ConfigDict


# TMDB genre ids used by the pipeline
class Genre:
    ACTION = 28
    ADVENTURE = 12
    ANIMATION = 16
    COMEDY = 35
    CRIME = 80
    DOCUMENTARY = 99
    DRAMA = 18
    FAMILY = 10751
    FANTASY = 14
    HISTORY = 36
    HORROR = 27
    MUSIC = 10402
    MYSTERY = 9648
    ROMANCE = 10749
    SCIFI = 878
    THRILLER = 53
    WAR = 10752


class Candidate(BaseModel):
    """
    A movie or series from TMDB.

    Uniquely keyed by (media_type, id): a movie and a series may share
    a numeric id. Unknown TMDB fields are kept as extras.
    """
    id: int
    media_type: Optional[str] = None
    title: Optional[str] = None          # movies
    name: Optional[str] = None           # series
    overview: Optional[str] = None
    genre_ids: List[int] = Field(default_factory=list)
    vote_average: Optional[float] = None
    vote_count: Optional[int] = None
    popularity: Optional[float] = None
    release_date: Optional[str] = None   # movies
    first_air_date: Optional[str] = None  # series
    poster_path: Optional[str] = None
    adult: bool = False

    model_config = ConfigDict(extra="allow")

    @property
    def key(self) -> Tuple[str, int]:
        return (self.media_type or "", self.id)

    @property
    def display_title(self) -> str:
        return self.title or self.name or ""

    @property
    def date(self) -> Optional[str]:
        return self.release_date or self.first_air_date

    @property
    def year(self) -> Optional[int]:
        """Release/air year, or None when unknown or unparseable."""
        d = self.date or ""
        if len(d) >= 4 and d[:4].isdigit():
            return int(d[:4])
        return None

    def has_genre(self, genre_id: int) -> bool:
        return genre_id in self.genre_ids

    def score(self, rating_weight: float = 2.2, popularity_divisor: float = 140.0) -> float:
        """Weighted relevance heuristic: rating, dampened vote volume and popularity."""
        votes = self.vote_count or 0
        rating = self.vote_average or 0
        pop = self.popularity or 0
        return rating * rating_weight + math.log10(votes + 1) + pop / popularity_divisor


class Pick(BaseModel):
    """A ranked (candidate id, reason) selection."""
    id: Union[int, str]
    reason: Optional[str] = None
