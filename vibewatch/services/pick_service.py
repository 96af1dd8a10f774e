"""
Pick Service

Chooses the ranked (id, reason) picks from the candidate pool.

The ranking model sees a minimized view of the top of the pool plus
the user's history and mood guidance. If it is unavailable or returns
nothing usable, the top of the pool is used in score order.
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..config import Settings, get_settings
from ..core.logging import get_logger
from ..models.candidate import Candidate, Pick
from ..models.intent import Intent
from ..models.request import HistoryItem
from .llm_client import LLMClient

logger = get_logger(__name__)


FALLBACK_REASON = "Good match for your vibe."
DEFAULT_REASON = "Matches your vibe."

MAX_LIKED = 40
MAX_DISLIKED = 60
MAX_WATCHED = 60


def mood_to_hints(mood) -> Dict[str, List[str]]:
    """
    Map the five-point mood scale to ranking guidance.

    1-2 calm, 3 neutral, 4 energetic, 5 intense. Out-of-range values
    are clamped; non-numeric values count as neutral.
    """
    try:
        m = float(mood)
    except (TypeError, ValueError):
        m = 3
    m = max(1, min(5, m))

    if m <= 2:
        return {"prefer": ["warm", "comfort", "gentle pacing"], "avoid": ["relentless", "stressful"]}
    if m == 3:
        return {"prefer": ["balanced pacing"], "avoid": []}
    if m == 4:
        return {"prefer": ["energy", "plot momentum"], "avoid": ["slow burn"]}
    return {"prefer": ["intense", "high stakes", "fast pacing"], "avoid": ["sleepy"]}


def ranking_system_prompt(mood) -> str:
    hints = mood_to_hints(mood)
    lines = [
        "Return ONLY JSON: { picks: [ { id: <tmdb id>, reason: <short reason> } ... ] }",
        "Rules:",
        "- picks must be unique",
        "- 1st pick best match",
        f"- Prefer: {', '.join(hints['prefer'])}.",
    ]
    if hints["avoid"]:
        lines.append(f"- Avoid: {', '.join(hints['avoid'])}.")
    return "\n".join(lines) + "\n"


def summarize_candidate(c: Candidate) -> Dict[str, Any]:
    """Minimized candidate view sent to the ranking model."""
    return {
        "id": c.id,
        "media_type": c.media_type,
        "title": c.display_title,
        "overview": c.overview,
        "genre_ids": c.genre_ids,
        "vote_average": c.vote_average,
        "vote_count": c.vote_count,
        "release_date": c.date,
    }


def dedupe_picks(picks: List[Pick]) -> List[Pick]:
    """Unique by id (as string), earlier = higher rank."""
    seen = set()
    out = []
    for p in picks:
        k = str(p.id)
        if k in seen:
            continue
        seen.add(k)
        out.append(p)
    return out


def decode_picks(raw: Optional[dict]) -> List[Pick]:
    """Decode untrusted ranking output; anything malformed decodes to []."""
    if not isinstance(raw, dict) or not isinstance(raw.get("picks"), list):
        return []

    picks = []
    for entry in raw["picks"]:
        try:
            pick = Pick.model_validate(entry)
        except ValidationError:
            continue
        picks.append(pick)
    return picks


class PickService:
    """Ranks candidates via the language model with a deterministic fallback."""

    def __init__(self, llm: LLMClient, settings: Optional[Settings] = None):
        self.llm = llm
        self.settings = settings or get_settings()

    def fallback_picks(self, candidates: List[Candidate]) -> List[Pick]:
        return [
            Pick(id=c.id, reason=FALLBACK_REASON)
            for c in candidates[:self.settings.fallback_pick_count]
        ]

    async def select(
        self,
        prompt: str,
        intent: Intent,
        candidates: List[Candidate],
        mood=3,
        local_hour: Optional[int] = None,
        region: str = "GB",
        liked: Optional[List[HistoryItem]] = None,
        disliked: Optional[List[HistoryItem]] = None,
        watched: Optional[List[HistoryItem]] = None,
    ) -> List[Pick]:
        """
        Ordered unique picks; index 0 is the top pick.
        """
        payload = {
            "vibe": prompt,
            "mood": mood,
            "localHour": local_hour,
            "region": region,
            "intent": intent.model_dump(by_alias=True),
            "liked": [h.model_dump(exclude_none=True) for h in (liked or [])[:MAX_LIKED]],
            "disliked": [h.model_dump(exclude_none=True) for h in (disliked or [])[:MAX_DISLIKED]],
            "watched": [h.model_dump(exclude_none=True) for h in (watched or [])[:MAX_WATCHED]],
            "candidates": [
                summarize_candidate(c)
                for c in candidates[:self.settings.ranking_candidate_count]
            ],
        }

        picks = decode_picks(await self.llm.complete_json(ranking_system_prompt(mood), payload))

        if not picks:
            logger.info("picks_fallback", candidates=len(candidates))
            picks = self.fallback_picks(candidates)

        picks = [
            p if p.reason else Pick(id=p.id, reason=DEFAULT_REASON)
            for p in dedupe_picks(picks)
        ]
        logger.info("picks_selected", count=len(picks))
        return picks
