"""Pydantic response models for leaderboard endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    id: str
    first_name: str
    last_name: str
    grade: str
    avatar_url: str | None = None
    rank: int
    level: str
    score: int | Literal["***"]
    is_self: bool = False


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry]
    total: int


class LeaderboardPositionResponse(BaseModel):
    rank: int | None = None
    score: int
    level: str
    total: int
    eligible: bool
