"""Shared FastAPI dependencies.

Services are built per request from the process-wide engine and Redis pool.
Tests replace them through `app.dependency_overrides`.
"""

from __future__ import annotations

from fastapi import Depends
from redis.asyncio import Redis

from mindful.activities.providers import ActivityProvider, build_providers
from mindful.activities.records import ActivityCategory
from mindful.config import Settings, get_settings
from mindful.database import get_session_factory
from mindful.leaderboard.profiles import ProfileDirectory, SqlProfileDirectory
from mindful.leaderboard.ranker import LeaderboardRanker
from mindful.redis_client import get_redis_optional
from mindful.scoring.aggregator import ScoreAggregator
from mindful.sessions.detector import SeekDetector
from mindful.sessions.manager import WatchSessionManager
from mindful.sessions.store import SessionStore, SqlSessionStore


def get_session_store() -> SessionStore:
    return SqlSessionStore(get_session_factory())


def get_session_manager(store: SessionStore = Depends(get_session_store)) -> WatchSessionManager:
    return WatchSessionManager(store)


def get_seek_detector(settings: Settings = Depends(get_settings)) -> SeekDetector:
    return SeekDetector(
        periodic_threshold=settings.periodic_skip_threshold_seconds,
        explicit_threshold=settings.seek_skip_threshold_seconds,
    )


def get_activity_providers(
    store: SessionStore = Depends(get_session_store),
) -> dict[ActivityCategory, ActivityProvider]:
    return build_providers(get_session_factory(), store)


def get_score_aggregator(
    providers: dict[ActivityCategory, ActivityProvider] = Depends(get_activity_providers),
) -> ScoreAggregator:
    return ScoreAggregator(providers)


def get_profile_directory() -> ProfileDirectory:
    return SqlProfileDirectory(get_session_factory())


def get_leaderboard_ranker(
    directory: ProfileDirectory = Depends(get_profile_directory),
    aggregator: ScoreAggregator = Depends(get_score_aggregator),
    redis: Redis | None = Depends(get_redis_optional),
    settings: Settings = Depends(get_settings),
) -> LeaderboardRanker:
    return LeaderboardRanker(
        directory,
        aggregator,
        redis=redis,
        cache_ttl=settings.leaderboard_cache_ttl_seconds,
        max_concurrency=settings.leaderboard_max_concurrency,
    )
