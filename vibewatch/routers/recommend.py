"""
Recommend API Router

Vibe prompt in, ranked recommendations out.
"""

import uuid

from fastapi import APIRouter, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import get_settings
from ..core.exceptions import MissingPromptError, VibeWatchException
from ..core.logging import bind_request_context, get_logger
from ..models.request import RecommendRequest
from ..models.response import ErrorResponse, RecommendResponse
from ..services.recommender import run_recommendation

logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api", tags=["recommend"])
limiter = Limiter(key_func=get_remote_address)


@router.get("/health")
async def api_health():
    """Liveness probe used by the client."""
    return {"ok": True}


@router.post(
    "/recommend",
    response_model=RecommendResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def recommend(request: Request, body: RecommendRequest):
    """
    Recommend up to six titles for a vibe prompt.

    Flow:
    1. Extract intent (model call, normalized with safety nets)
    2. Expand dislikes into an exclusion set
    3. Gather, filter and score TMDB candidates
    4. Pick and justify (model call, or score-order fallback)
    5. Enrich with certification/providers and assemble results

    Always returns at least one result on 200.
    """
    if not body.prompt or not body.prompt.strip():
        raise MissingPromptError()

    bind_request_context(request_id=uuid.uuid4().hex[:12], region=body.region)
    logger.info(
        "recommend_request",
        mood=body.mood,
        has_refresh=bool(body.refresh_token),
        liked=len(body.liked),
        disliked=len(body.disliked),
    )

    try:
        return await run_recommendation(body)
    except VibeWatchException as e:
        logger.error("recommend_error", error=e.message, status_code=e.status_code)
        raise
