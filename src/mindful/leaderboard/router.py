"""Leaderboard API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mindful.auth.dependencies import Identity, get_current_identity
from mindful.dependencies import get_leaderboard_ranker
from mindful.leaderboard.ranker import LeaderboardRanker
from mindful.leaderboard.schemas import (
    LeaderboardEntry,
    LeaderboardPositionResponse,
    LeaderboardResponse,
)

router = APIRouter(prefix="/api/v1/leaderboard", tags=["Leaderboard"])


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(
    identity: Identity = Depends(get_current_identity),
    ranker: LeaderboardRanker = Depends(get_leaderboard_ranker),
) -> LeaderboardResponse:
    """Ranked students. Only the caller's own row carries a numeric score."""
    rows = await ranker.leaderboard(identity)
    return LeaderboardResponse(
        entries=[LeaderboardEntry(**row) for row in rows],
        total=len(rows),
    )


@router.get("/me", response_model=LeaderboardPositionResponse)
async def get_my_position(
    identity: Identity = Depends(get_current_identity),
    ranker: LeaderboardRanker = Depends(get_leaderboard_ranker),
) -> LeaderboardPositionResponse:
    return LeaderboardPositionResponse(**await ranker.position(identity))
