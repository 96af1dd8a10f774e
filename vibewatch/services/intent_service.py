"""
Intent Service

Turns a vibe prompt into a structured Intent.

The language-model output is treated as untrusted: whatever comes
back (or nothing at all) is coerced field by field into a valid
Intent, then safety nets are applied from the prompt text itself.
This service never raises.
"""

from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from ..core.logging import get_logger
from ..models.candidate import Genre
from ..models.intent import Intent, MediaType
from .llm_client import LLMClient

logger = get_logger(__name__)


INTENT_SYSTEM_PROMPT = (
    "Return ONLY JSON with keys:\n"
    "mediaType ('movie'|'tv'|'any'),\n"
    "searchHint (string),\n"
    "searchQueries (array of 3-6 short queries),\n"
    "kidsMode (boolean), kidsMaxAge (number|null),\n"
    "nicheMode (boolean),\n"
    "yearMin (number|null), yearMax (number|null), yearExact (number|null),\n"
    "actorName (string|null),\n"
    "withGenres (array of TMDB genre ids),\n"
    "withoutGenres (array of TMDB genre ids),\n"
    "themeKeywords (array of 1-3 keywords),\n"
    "providerInclude (array of provider names), providerExclude (array of provider names).\n\n"
    "Rules:\n"
    "- If user asks for cartoons or animated include genre 16 in withGenres.\n"
    "- searchQueries must be specific."
)

MAX_SEARCH_QUERIES = 6
MAX_THEME_KEYWORDS = 3
DEFAULT_KIDS_MAX_AGE = 11

KIDS_TRIGGERS = ("kid", "child", "children")
ANIMATION_TRIGGERS = ("cartoon", "animation", "animated")
MEDIA_TYPES = {m.value for m in MediaType}


# =============================================================================
# Coercion helpers
# =============================================================================

def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _unique(values: Iterable[Any]) -> list:
    seen = set()
    out = []
    for v in values:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


def _int_list(value: Any) -> List[int]:
    if not isinstance(value, list):
        return []
    return _unique(i for i in (_as_int(v) for v in value) if i is not None)


def _text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return _unique(t for t in (_as_text(v) for v in value) if t)


# =============================================================================
# Normalization
# =============================================================================

def default_intent(prompt: str) -> Intent:
    """Intent used when nothing usable came back from the model."""
    return normalize_intent(None, prompt)


def normalize_intent(raw: Optional[dict], prompt: str) -> Intent:
    """
    Coerce raw model output into a valid Intent.

    Args:
        raw: Decoded model JSON, or None if unavailable/unparsable
        prompt: The user's original prompt

    Returns:
        Intent with all invariants satisfied
    """
    if not isinstance(raw, dict):
        raw = {}

    media_type = raw.get("mediaType")
    if media_type not in MEDIA_TYPES:
        media_type = MediaType.ANY.value

    search_hint = _as_text(raw.get("searchHint")) or prompt
    search_queries = _text_list(raw.get("searchQueries"))[:MAX_SEARCH_QUERIES] or [search_hint]

    kids_mode = _as_bool(raw.get("kidsMode"))
    kids_max_age = _as_int(raw.get("kidsMaxAge"))
    with_genres = _int_list(raw.get("withGenres"))

    # Safety nets from the prompt text itself
    prompt_lower = prompt.lower()
    if not kids_mode and any(t in prompt_lower for t in KIDS_TRIGGERS):
        kids_mode = True
        if not kids_max_age:
            kids_max_age = DEFAULT_KIDS_MAX_AGE

    if any(t in prompt_lower for t in ANIMATION_TRIGGERS) and Genre.ANIMATION not in with_genres:
        with_genres.append(Genre.ANIMATION)

    try:
        return Intent(
            mediaType=media_type,
            searchHint=search_hint,
            searchQueries=search_queries,
            kidsMode=kids_mode,
            kidsMaxAge=kids_max_age,
            nicheMode=_as_bool(raw.get("nicheMode")),
            yearMin=_as_int(raw.get("yearMin")),
            yearMax=_as_int(raw.get("yearMax")),
            yearExact=_as_int(raw.get("yearExact")),
            actorName=_as_text(raw.get("actorName")),
            withGenres=with_genres,
            withoutGenres=_int_list(raw.get("withoutGenres")),
            themeKeywords=_text_list(raw.get("themeKeywords"))[:MAX_THEME_KEYWORDS],
            providerInclude=_text_list(raw.get("providerInclude")),
            providerExclude=_text_list(raw.get("providerExclude")),
            rawPrompt=prompt,
        )
    except ValidationError as e:
        logger.warning("intent_validation_failed", error=str(e))
        return Intent(
            searchHint=prompt,
            searchQueries=[prompt],
            kidsMode=kids_mode,
            kidsMaxAge=kids_max_age,
            withGenres=[Genre.ANIMATION] if Genre.ANIMATION in with_genres else [],
            rawPrompt=prompt,
        )


class IntentService:
    """Extracts an Intent for a prompt via the language model."""

    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def extract(self, prompt: str, mood: int = 3, local_hour: Optional[int] = None) -> Intent:
        raw = await self.llm.complete_json(
            INTENT_SYSTEM_PROMPT,
            {"prompt": prompt, "mood": mood, "localHour": local_hour},
        )
        if raw is None:
            logger.info("intent_fallback", reason="model_unavailable_or_unparsable")

        intent = normalize_intent(raw, prompt)
        logger.info(
            "intent_extracted",
            media_type=intent.media_type,
            queries=len(intent.search_queries),
            kids=intent.kids_mode,
            niche=intent.niche_mode,
        )
        return intent
