"""
Result Assembler

Maps ranked picks onto enriched candidates and guarantees a non-empty
result list through an ordered ladder of strategies:

1. strict   - always runs; provider include/exclude enforced
2. relaxed  - runs when strict produced fewer than 3; providers ignored
3. backfill - runs when nothing survived; top of the pool verbatim

Every strategy keeps the year, animation and kid-safety constraints
except backfill, which copies pool candidates as they are.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..config import Settings, get_settings
from ..core.logging import get_logger
from ..models.candidate import Candidate, Genre, Pick
from ..models.intent import Intent
from ..models.response import ResultItem
from .candidate_gatherer import passes_hard_filters
from .enrichment import EnrichmentService, gb_max_cert_from_age

logger = get_logger(__name__)


RELAXED_MARKER = "Provider filter relaxed"
RELAXED_SUFFIX = f" ({RELAXED_MARKER})"
BACKFILL_REASON = "Closest match available."
DEFAULT_REASON = "Matches your vibe."


# =============================================================================
# Provider filters
# =============================================================================

def _lowered(names: Sequence[str]) -> set:
    return {str(n).lower() for n in names}


def provider_include_ok(providers: Sequence[str], include: Sequence[str]) -> bool:
    """Passes if no include list, or ANY provider matches ANY included name."""
    if not include:
        return True
    wanted = _lowered(include)
    return any(str(p).lower() in wanted for p in providers)


def provider_exclude_ok(providers: Sequence[str], exclude: Sequence[str]) -> bool:
    """Fails if ANY provider matches ANY excluded name."""
    if not exclude:
        return True
    banned = _lowered(exclude)
    return not any(str(p).lower() in banned for p in providers)


def mark_relaxed(reason: str) -> str:
    """Append the relaxation suffix once."""
    if RELAXED_MARKER in reason:
        return reason
    return f"{reason}{RELAXED_SUFFIX}"


def merge_results(*groups: List[ResultItem], limit: int) -> List[ResultItem]:
    """Concatenate groups, unique by (media_type, id), first wins."""
    seen = set()
    out = []
    for group in groups:
        for item in group:
            key = (item.media_type, str(item.id))
            if key in seen:
                continue
            seen.add(key)
            out.append(item)
    return out[:limit]


def poster_url(poster_path: Optional[str], image_base: str) -> Optional[str]:
    return f"{image_base}{poster_path}" if poster_path else None


def to_result_item(candidate: Candidate, providers: List[str], reason: str, image_base: str) -> ResultItem:
    return ResultItem(
        id=candidate.id,
        title=candidate.display_title,
        overview=candidate.overview,
        media_type=candidate.media_type,
        vote_average=candidate.vote_average,
        release_date=candidate.date,
        poster_path=poster_url(candidate.poster_path, image_base),
        providers=providers,
        reason=reason,
    )


# =============================================================================
# Assembly context and strategies
# =============================================================================

@dataclass
class AssemblyContext:
    """Everything a strategy needs for one request."""
    picks: List[Pick]
    pool: List[Candidate]
    intent: Intent
    region: str = "GB"
    provider_include: List[str] = field(default_factory=list)
    provider_exclude: List[str] = field(default_factory=list)

    def __post_init__(self):
        # First pool entry per id wins; the pool is score-sorted
        self.by_id: Dict[str, Candidate] = {}
        for c in self.pool:
            self.by_id.setdefault(str(c.id), c)

    @property
    def max_cert(self) -> Optional[str]:
        return gb_max_cert_from_age(self.intent.kids_max_age) if self.intent.kids_mode else None

    @property
    def needs_animation(self) -> bool:
        return Genre.ANIMATION in self.intent.with_genres


class Strategy:
    """One rung of the ladder: a precondition plus a producer."""

    name = "strategy"

    def applies(self, results: List[ResultItem], settings: Settings) -> bool:
        raise NotImplementedError

    async def run(self, ctx: AssemblyContext, results: List[ResultItem]) -> List[ResultItem]:
        raise NotImplementedError


class PickPass(Strategy):
    """Walk picks in rank order, keeping those that satisfy every constraint."""

    def __init__(self, enrichment: EnrichmentService, settings: Settings, enforce_providers: bool):
        self.enrichment = enrichment
        self.settings = settings
        self.enforce_providers = enforce_providers

    async def build(self, ctx: AssemblyContext) -> List[ResultItem]:
        s = self.settings
        out: List[ResultItem] = []

        for pick in ctx.picks[:s.max_pick_attempts]:
            if len(out) >= s.max_results:
                break

            cand = ctx.by_id.get(str(pick.id))
            if cand is None:
                continue
            if not passes_hard_filters(cand, ctx.intent.year_exact, ctx.needs_animation):
                continue
            if ctx.intent.kids_mode and not await self.enrichment.is_kid_safe(cand, ctx.max_cert, ctx.region):
                continue

            providers = await self.enrichment.get_watch_providers(cand.media_type, cand.id, ctx.region)

            if self.enforce_providers:
                if not provider_include_ok(providers, ctx.provider_include):
                    continue
                if not provider_exclude_ok(providers, ctx.provider_exclude):
                    continue

            out.append(to_result_item(cand, providers, pick.reason or DEFAULT_REASON, s.tmdb_image_base))

        return out


class StrictPass(PickPass):
    name = "strict"

    def __init__(self, enrichment: EnrichmentService, settings: Settings):
        super().__init__(enrichment, settings, enforce_providers=True)

    def applies(self, results, settings):
        return True

    async def run(self, ctx, results):
        return await self.build(ctx)


class RelaxedPass(PickPass):
    name = "relaxed"

    def __init__(self, enrichment: EnrichmentService, settings: Settings):
        super().__init__(enrichment, settings, enforce_providers=False)

    def applies(self, results, settings):
        return len(results) < settings.relax_below

    async def run(self, ctx, results):
        relaxed = await self.build(ctx)
        strict_keys = {(r.media_type, str(r.id)) for r in results}
        relaxed = [
            r if (r.media_type, str(r.id)) in strict_keys
            else r.model_copy(update={"reason": mark_relaxed(r.reason)})
            for r in relaxed
        ]
        return merge_results(results, relaxed, limit=self.settings.max_results)


class Backfill(Strategy):
    """Top of the pool verbatim. Cannot fail while the pool is non-empty."""

    name = "backfill"

    def __init__(self, settings: Settings):
        self.settings = settings

    def applies(self, results, settings):
        return not results

    async def run(self, ctx, results):
        return [
            to_result_item(c, [], BACKFILL_REASON, self.settings.tmdb_image_base)
            for c in ctx.pool[:self.settings.max_results]
        ]


class ResultAssembler:
    """Runs the strategy ladder in order."""

    def __init__(self, enrichment: EnrichmentService, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.strategies: List[Strategy] = [
            StrictPass(enrichment, self.settings),
            RelaxedPass(enrichment, self.settings),
            Backfill(self.settings),
        ]

    async def assemble(self, ctx: AssemblyContext) -> List[ResultItem]:
        results: List[ResultItem] = []

        for strategy in self.strategies:
            if not strategy.applies(results, self.settings):
                continue
            before = len(results)
            results = await strategy.run(ctx, results)
            logger.info(
                "assembly_step",
                strategy=strategy.name,
                before=before,
                after=len(results),
            )

        return results
