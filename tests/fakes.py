"""In-memory stand-ins for the store, provider, directory and cache contracts."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

from redis.exceptions import ConnectionError as RedisConnectionError

from mindful.activities.records import ActivityRecord
from mindful.db.models import Profile, WatchSession
from mindful.leaderboard.profiles import DirectoryUnavailable
from mindful.sessions.store import COUNTER_FIELDS, ZEROED_SESSION, StoreUnavailable

_COLUMNS = [c.key for c in WatchSession.__table__.columns]


def _clone(row: WatchSession) -> WatchSession:
    values = {k: getattr(row, k) for k in _COLUMNS}
    values["techniques_applied"] = list(values["techniques_applied"] or [])
    return WatchSession(**values)


class InMemorySessionStore:
    """Dict-backed `SessionStore`. Rows are cloned in and out like a real DB."""

    def __init__(self) -> None:
        self.rows: dict[tuple[str, str], WatchSession] = {}
        self.fail_on: set[str] = set()
        self.calls: list[str] = []

    def _check(self, op: str) -> None:
        self.calls.append(op)
        if op in self.fail_on or "*" in self.fail_on:
            msg = f"{op} failed"
            raise StoreUnavailable(msg)

    def seed(self, user_id: str, content_id: str, **values: Any) -> WatchSession:
        now = datetime.now(timezone.utc)
        values = {**ZEROED_SESSION, **values}
        values["techniques_applied"] = list(values["techniques_applied"])
        row = WatchSession(
            id=str(uuid.uuid4()),
            user_id=user_id,
            content_id=content_id,
            content_title=values.pop("content_title", "Seeded"),
            program=values.pop("program", "meditation"),
            started_at=values.pop("started_at", None),
            completed_at=values.pop("completed_at", None),
            reflection_text=values.pop("reflection_text", None),
            created_at=now,
            updated_at=values.pop("updated_at", now),
            **values,
        )
        self.rows[(user_id, content_id)] = row
        return _clone(row)

    async def get(self, user_id: str, content_id: str) -> WatchSession | None:
        self._check("get")
        row = self.rows.get((user_id, content_id))
        return _clone(row) if row is not None else None

    async def insert_if_absent(self, user_id: str, content_id: str, defaults: dict[str, Any]) -> WatchSession:
        self._check("insert_if_absent")
        if (user_id, content_id) not in self.rows:
            self.seed(user_id, content_id, **dict(defaults))
        return _clone(self.rows[(user_id, content_id)])

    async def upsert(self, user_id: str, content_id: str, fields: dict[str, Any]) -> WatchSession:
        self._check("upsert")
        if (user_id, content_id) not in self.rows:
            self.seed(user_id, content_id, **dict(fields))
        else:
            row = self.rows[(user_id, content_id)]
            for key, value in fields.items():
                setattr(row, key, value)
        return _clone(self.rows[(user_id, content_id)])

    async def update_fields(
        self,
        user_id: str,
        content_id: str,
        values: dict[str, Any],
        increments: dict[str, int] | None = None,
    ) -> WatchSession | None:
        for column in increments or {}:
            if column not in COUNTER_FIELDS:
                msg = f"Not a counter column: {column}"
                raise ValueError(msg)
        self._check("update_fields")
        row = self.rows.get((user_id, content_id))
        if row is None:
            return None
        for key, value in values.items():
            setattr(row, key, value)
        for column, by in (increments or {}).items():
            setattr(row, column, getattr(row, column) + by)
        return _clone(row)

    async def list_for_user(self, user_id: str, program: str | None = None) -> list[WatchSession]:
        self._check("list_for_user")
        rows = [
            r for (uid, _), r in self.rows.items()
            if uid == user_id and (program is None or r.program == program)
        ]
        rows.sort(key=lambda r: r.updated_at, reverse=True)
        return [_clone(r) for r in rows]


class StaticProvider:
    """Activity provider returning fixed records per user."""

    def __init__(self, records: dict[str, Sequence[ActivityRecord]] | None = None, fail: bool = False) -> None:
        self.records = dict(records or {})
        self.fail = fail
        self.calls: list[str] = []

    async def list_for_user(self, user_id: str) -> list[ActivityRecord]:
        self.calls.append(user_id)
        if self.fail:
            msg = "provider down"
            raise StoreUnavailable(msg)
        return list(self.records.get(user_id, []))


class StaticDirectory:
    def __init__(self, profiles: list[Profile] | None = None, fail: bool = False) -> None:
        self.profiles = list(profiles or [])
        self.fail = fail

    async def list_profiles(self) -> list[Profile]:
        if self.fail:
            msg = "directory down"
            raise DirectoryUnavailable(msg)
        return list(self.profiles)


class FakeRedis:
    """Just enough of `redis.asyncio.Redis` for the leaderboard cache."""

    def __init__(self, fail: bool = False) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.fail = fail

    async def get(self, key: str) -> str | None:
        if self.fail:
            raise RedisConnectionError("redis down")
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        if self.fail:
            raise RedisConnectionError("redis down")
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def ping(self) -> bool:
        if self.fail:
            raise RedisConnectionError("redis down")
        return True

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)


class FakePipeline:
    """Queues `incr`/`expire` and applies them on `execute`, like a MULTI block."""

    def __init__(self, redis: FakeRedis) -> None:
        self.redis = redis
        self.ops: list[tuple[str, str, int]] = []

    def incr(self, key: str) -> None:
        self.ops.append(("incr", key, 1))

    def expire(self, key: str, seconds: int) -> None:
        self.ops.append(("expire", key, seconds))

    async def execute(self) -> list[Any]:
        if self.redis.fail:
            raise RedisConnectionError("redis down")
        results: list[Any] = []
        for op, key, arg in self.ops:
            if op == "incr":
                count = int(self.redis.data.get(key, "0")) + arg
                self.redis.data[key] = str(count)
                results.append(count)
            else:
                self.redis.ttls[key] = arg
                results.append(True)
        self.ops.clear()
        return results


_EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_profile(
    user_id: str,
    first_name: str | None = "Ana",
    last_name: str | None = "López",
    grade: str | None = "5A",
    school_name: str | None = "Colegio Central",
    order: int = 0,
    **extra: Any,
) -> Profile:
    return Profile(
        id=user_id,
        first_name=first_name,
        last_name=last_name,
        grade=grade,
        school_name=school_name,
        avatar_url=extra.pop("avatar_url", None),
        created_at=_EPOCH + timedelta(minutes=order),
        **extra,
    )
