"""Leaderboard ranker — scores every eligible student, ranks, then redacts.

True scores are needed for every row to get the order right, but only the
requester's own row leaves the service with a number in it. The unredacted
ranking may be cached in Redis for a few seconds; redaction always runs
per request, after the cache.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from mindful.auth.dependencies import Identity
from mindful.db.models import Profile
from mindful.leaderboard.profiles import DirectoryUnavailable, ProfileDirectory, is_eligible
from mindful.scoring.aggregator import ScoreAggregator
from mindful.scoring.levels import level_for

logger = logging.getLogger(__name__)

REDACTED_SCORE = "***"
CACHE_KEY = "leaderboard:ranking"


@dataclass(frozen=True)
class RankedEntry:
    user_id: str
    first_name: str
    last_name: str
    grade: str
    avatar_url: str | None
    score: int
    rank: int

    @property
    def level(self) -> str:
        return level_for(self.score)


def rank_profiles(profiles: Sequence[Profile], scores: Sequence[int]) -> list[RankedEntry]:
    """Sort by score descending; ties keep roster order. Ranks are 1..N."""
    order = sorted(range(len(profiles)), key=lambda i: -scores[i])
    return [
        RankedEntry(
            user_id=profiles[i].id,
            first_name=profiles[i].first_name or "",
            last_name=profiles[i].last_name or "",
            grade=profiles[i].grade or "",
            avatar_url=profiles[i].avatar_url,
            score=scores[i],
            rank=position,
        )
        for position, i in enumerate(order, start=1)
    ]


def redact(entries: Sequence[RankedEntry], viewer_id: str) -> list[dict[str, Any]]:
    """Every score except the viewer's becomes the redaction marker."""
    rows = []
    for e in entries:
        is_self = e.user_id == viewer_id
        rows.append({
            "id": e.user_id,
            "first_name": e.first_name,
            "last_name": e.last_name,
            "grade": e.grade,
            "avatar_url": e.avatar_url,
            "rank": e.rank,
            "level": e.level,
            "score": e.score if is_self else REDACTED_SCORE,
            "is_self": is_self,
        })
    return rows


class LeaderboardRanker:
    def __init__(
        self,
        directory: ProfileDirectory,
        aggregator: ScoreAggregator,
        redis: Redis | None = None,
        cache_ttl: int = 0,
        max_concurrency: int = 10,
    ) -> None:
        self.directory = directory
        self.aggregator = aggregator
        self.redis = redis
        self.cache_ttl = cache_ttl
        self.max_concurrency = max(1, max_concurrency)

    async def ranking(self) -> list[RankedEntry]:
        """Unredacted ranking of all eligible profiles. Never leaves the service."""
        cached = await self._load_cached()
        if cached is not None:
            return cached

        try:
            profiles = await self.directory.list_profiles()
        except DirectoryUnavailable:
            logger.warning("Profile directory unavailable, returning empty leaderboard", exc_info=True)
            return []

        eligible = [p for p in profiles if is_eligible(p)]
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _score(profile: Profile) -> int:
            async with semaphore:
                try:
                    return await self.aggregator.score(profile.id)
                except Exception:
                    logger.warning("Scoring failed for user %s", profile.id, exc_info=True)
                    return 0

        scores = await asyncio.gather(*(_score(p) for p in eligible))
        entries = rank_profiles(eligible, scores)
        await self._store_cached(entries)
        return entries

    async def leaderboard(self, identity: Identity) -> list[dict[str, Any]]:
        return redact(await self.ranking(), identity.user_id)

    async def position(self, identity: Identity) -> dict[str, Any]:
        """The viewer's own rank. Ineligible viewers get their score but no rank."""
        entries = await self.ranking()
        own = next((e for e in entries if e.user_id == identity.user_id), None)
        if own is None:
            score = await self.aggregator.score(identity.user_id)
            return {"rank": None, "score": score, "level": level_for(score), "total": len(entries), "eligible": False}
        return {"rank": own.rank, "score": own.score, "level": own.level, "total": len(entries), "eligible": True}

    # --- Cache ---

    async def _load_cached(self) -> list[RankedEntry] | None:
        if self.redis is None or self.cache_ttl <= 0:
            return None
        try:
            raw = await self.redis.get(CACHE_KEY)
            if raw is None:
                return None
            return [RankedEntry(**item) for item in json.loads(raw)]
        except (RedisError, ValueError, TypeError):
            logger.warning("Leaderboard cache read failed", exc_info=True)
            return None

    async def _store_cached(self, entries: list[RankedEntry]) -> None:
        if self.redis is None or self.cache_ttl <= 0:
            return
        try:
            await self.redis.set(CACHE_KEY, json.dumps([asdict(e) for e in entries]), ex=self.cache_ttl)
        except RedisError:
            logger.warning("Leaderboard cache write failed", exc_info=True)
