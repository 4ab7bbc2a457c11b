"""Pydantic response models for score endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class LevelInfo(BaseModel):
    level: str
    tier: int
    min_score: int
    next_level: str | None = None
    points_to_next: int | None = None


class ScoreResponse(BaseModel):
    score: int
    raw_score: int
    categories: dict[str, int]
    unavailable_categories: list[str] = []
    level: LevelInfo


class LevelEntry(BaseModel):
    tier: int
    name: str
    min_score: int


class AllLevelsResponse(BaseModel):
    levels: list[LevelEntry]
