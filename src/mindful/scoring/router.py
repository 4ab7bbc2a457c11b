"""Score API endpoints — own score breakdown and the level table."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mindful.auth.dependencies import Identity, get_current_identity
from mindful.dependencies import get_score_aggregator
from mindful.scoring.aggregator import ScoreAggregator
from mindful.scoring.levels import LEVEL_TIERS, compute_level
from mindful.scoring.schemas import AllLevelsResponse, LevelEntry, LevelInfo, ScoreResponse

router = APIRouter(prefix="/api/v1", tags=["Scores"])


# ── Public endpoints ──


@router.get("/levels", response_model=AllLevelsResponse)
async def list_levels() -> AllLevelsResponse:
    return AllLevelsResponse(levels=[LevelEntry(**t) for t in LEVEL_TIERS])


# ── Authenticated endpoints ──


@router.get("/scores/me", response_model=ScoreResponse)
async def get_my_score(
    identity: Identity = Depends(get_current_identity),
    aggregator: ScoreAggregator = Depends(get_score_aggregator),
) -> ScoreResponse:
    """The caller's score, per-category points, and level progress."""
    breakdown = await aggregator.breakdown(identity.user_id)
    return ScoreResponse(
        score=breakdown.total,
        raw_score=breakdown.raw_total,
        categories={c.value: p for c, p in breakdown.categories.items()},
        unavailable_categories=[c.value for c in breakdown.failed],
        level=LevelInfo(**compute_level(breakdown.total)),
    )
