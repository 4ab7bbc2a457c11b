"""Watch-session store — the keyed persistence contract and its SQLAlchemy adapter.

The manager only depends on `SessionStore`. Every method is one round trip;
counters are incremented in SQL (`SET n = n + 1`) so concurrent writers never
lose an increment.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mindful.db.models import WatchSession

CONFLICT_KEY = ("user_id", "content_id")

ZEROED_SESSION: dict[str, Any] = {
    "watch_duration": 0.0,
    "total_duration": 0.0,
    "last_position": 0.0,
    "completion_percentage": 0,
    "view_count": 0,
    "skip_count": 0,
    "techniques_applied": [],
}

COUNTER_FIELDS = frozenset({"view_count", "skip_count"})


class StoreUnavailable(Exception):
    """The backing store could not be reached or rejected the operation."""


class SessionStore(Protocol):
    async def get(self, user_id: str, content_id: str) -> WatchSession | None: ...

    async def insert_if_absent(
        self, user_id: str, content_id: str, defaults: dict[str, Any],
    ) -> WatchSession: ...

    async def upsert(self, user_id: str, content_id: str, fields: dict[str, Any]) -> WatchSession: ...

    async def update_fields(
        self,
        user_id: str,
        content_id: str,
        values: dict[str, Any],
        increments: dict[str, int] | None = None,
    ) -> WatchSession | None: ...

    async def list_for_user(self, user_id: str, program: str | None = None) -> list[WatchSession]: ...


def _insert_for(dialect_name: str) -> Callable[..., Any]:
    """Pick the dialect insert construct that supports ON CONFLICT."""
    if dialect_name == "postgresql":
        return pg_insert
    if dialect_name == "sqlite":
        return sqlite_insert
    msg = f"Upsert not supported for dialect: {dialect_name}"
    raise StoreUnavailable(msg)


class SqlSessionStore:
    """`SessionStore` backed by the `watch_sessions` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, user_id: str, content_id: str) -> WatchSession | None:
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    select(WatchSession).where(
                        WatchSession.user_id == user_id,
                        WatchSession.content_id == content_id,
                    )
                )
                return result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailable(str(exc)) from exc

    async def insert_if_absent(
        self, user_id: str, content_id: str, defaults: dict[str, Any],
    ) -> WatchSession:
        try:
            async with self._session_factory() as db:
                insert = _insert_for(db.get_bind().dialect.name)
                stmt = insert(WatchSession).values(
                    user_id=user_id, content_id=content_id, **defaults,
                ).on_conflict_do_nothing(index_elements=list(CONFLICT_KEY))
                await db.execute(stmt)
                await db.commit()

                result = await db.execute(
                    select(WatchSession).where(
                        WatchSession.user_id == user_id,
                        WatchSession.content_id == content_id,
                    )
                )
                return result.scalar_one()
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailable(str(exc)) from exc

    async def upsert(self, user_id: str, content_id: str, fields: dict[str, Any]) -> WatchSession:
        """Insert a zeroed row carrying `fields`, or merge `fields` into the existing row."""
        try:
            async with self._session_factory() as db:
                insert = _insert_for(db.get_bind().dialect.name)
                values = {**ZEROED_SESSION, **fields, "user_id": user_id, "content_id": content_id}
                stmt = (
                    insert(WatchSession)
                    .values(**values)
                    .on_conflict_do_update(index_elements=list(CONFLICT_KEY), set_=fields)
                    .returning(WatchSession)
                )
                result = await db.scalars(stmt, execution_options={"populate_existing": True})
                row = result.one()
                await db.commit()
                return row
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailable(str(exc)) from exc

    async def update_fields(
        self,
        user_id: str,
        content_id: str,
        values: dict[str, Any],
        increments: dict[str, int] | None = None,
    ) -> WatchSession | None:
        """Apply `values` and in-place counter `increments` in one UPDATE.

        Returns the updated row, or None if no session exists for the key.
        """
        assignments: dict[str, Any] = dict(values)
        for column, by in (increments or {}).items():
            if column not in COUNTER_FIELDS:
                msg = f"Not a counter column: {column}"
                raise ValueError(msg)
            assignments[column] = getattr(WatchSession, column) + by

        try:
            async with self._session_factory() as db:
                stmt = (
                    update(WatchSession)
                    .where(
                        WatchSession.user_id == user_id,
                        WatchSession.content_id == content_id,
                    )
                    .values(**assignments)
                    .returning(WatchSession)
                )
                result = await db.scalars(stmt, execution_options={"populate_existing": True})
                row = result.one_or_none()
                await db.commit()
                return row
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailable(str(exc)) from exc

    async def list_for_user(self, user_id: str, program: str | None = None) -> list[WatchSession]:
        query = select(WatchSession).where(WatchSession.user_id == user_id)
        if program is not None:
            query = query.where(WatchSession.program == program)
        query = query.order_by(WatchSession.updated_at.desc())
        try:
            async with self._session_factory() as db:
                result = await db.execute(query)
                return list(result.scalars().all())
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailable(str(exc)) from exc
