"""Activity providers — `list_for_user(user_id)` per scored category.

The SQL providers read tables written by the rest of the platform. Each call
opens its own session, so many users' categories can be read concurrently.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mindful.activities.records import (
    SELF_DESCRIPTION_ACTIVITY,
    ActivityCategory,
    ActivityRecord,
    EmotionLogEntry,
    EmotionMatchAttempt,
    Letter,
    SelfDescriptionAnswer,
    TimelineNote,
    VideoSessionRecord,
)
from mindful.db import models
from mindful.sessions.state import Program
from mindful.sessions.store import SessionStore, StoreUnavailable


class ActivityUnavailable(Exception):
    """A category's records could not be loaded."""


class ActivityProvider(Protocol):
    async def list_for_user(self, user_id: str) -> Sequence[ActivityRecord]: ...


class SqlActivityProvider:
    """Runs one SELECT per call and maps each row to its record variant."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        query: Callable[[str], Select[Any]],
        to_record: Callable[[Any], ActivityRecord],
    ) -> None:
        self._session_factory = session_factory
        self._query = query
        self._to_record = to_record

    async def list_for_user(self, user_id: str) -> list[ActivityRecord]:
        try:
            async with self._session_factory() as db:
                result = await db.execute(self._query(user_id))
                rows = list(result.scalars().all())
        except (SQLAlchemyError, OSError) as exc:
            raise ActivityUnavailable(str(exc)) from exc
        return [self._to_record(row) for row in rows]


class VideoSessionProvider:
    """Watch sessions of one program, read through the session store."""

    def __init__(self, store: SessionStore, program: Program) -> None:
        self._store = store
        self._program = program

    async def list_for_user(self, user_id: str) -> list[ActivityRecord]:
        try:
            sessions = await self._store.list_for_user(user_id, self._program.value)
        except StoreUnavailable as exc:
            raise ActivityUnavailable(str(exc)) from exc
        return [
            VideoSessionRecord(
                program=s.program,
                watch_duration=s.watch_duration or 0.0,
                completed=s.completed_at is not None,
                reflection_text=s.reflection_text,
                techniques_applied=tuple(s.techniques_applied or ()),
                view_count=s.view_count or 0,
                skip_count=s.skip_count or 0,
            )
            for s in sessions
        ]


# --- Row mappings ---


def _answers_query(user_id: str) -> Select[Any]:
    return (
        select(models.UserResponse)
        .where(
            models.UserResponse.user_id == user_id,
            models.UserResponse.activity_type == SELF_DESCRIPTION_ACTIVITY,
        )
        .order_by(models.UserResponse.created_at)
    )


def _notes_query(user_id: str) -> Select[Any]:
    return (
        select(models.TimelineNote)
        .where(models.TimelineNote.user_id == user_id)
        .order_by(models.TimelineNote.created_at.desc())
    )


def _letters_query(user_id: str) -> Select[Any]:
    return (
        select(models.Letter)
        .where(models.Letter.user_id == user_id)
        .order_by(models.Letter.created_at.desc())
    )


def _matches_query(user_id: str) -> Select[Any]:
    return (
        select(models.EmotionMatch)
        .where(models.EmotionMatch.user_id == user_id)
        .order_by(models.EmotionMatch.created_at)
    )


def _emotion_log_query(user_id: str) -> Select[Any]:
    return (
        select(models.EmotionLog)
        .where(models.EmotionLog.user_id == user_id)
        .order_by(models.EmotionLog.felt_at.desc())
    )


def build_providers(
    session_factory: async_sessionmaker[AsyncSession],
    store: SessionStore,
) -> dict[ActivityCategory, ActivityProvider]:
    """The full provider set, one per category."""
    return {
        ActivityCategory.SELF_DESCRIPTION: SqlActivityProvider(
            session_factory,
            _answers_query,
            lambda r: SelfDescriptionAnswer(
                question=r.question, response=r.response or "", activity_type=r.activity_type,
            ),
        ),
        ActivityCategory.TIMELINE_NOTES: SqlActivityProvider(
            session_factory, _notes_query, lambda r: TimelineNote(text=r.text or ""),
        ),
        ActivityCategory.LETTERS: SqlActivityProvider(
            session_factory,
            _letters_query,
            lambda r: Letter(title=r.title or "", content=r.content or ""),
        ),
        ActivityCategory.MEDITATION: VideoSessionProvider(store, Program.MEDITATION),
        ActivityCategory.ANGER_MANAGEMENT: VideoSessionProvider(store, Program.ANGER_MANAGEMENT),
        ActivityCategory.EMOTION_MATCHING: SqlActivityProvider(
            session_factory,
            _matches_query,
            lambda r: EmotionMatchAttempt(emotion_name=r.emotion_name, is_correct=bool(r.is_correct)),
        ),
        ActivityCategory.EMOTION_LOG: SqlActivityProvider(
            session_factory,
            _emotion_log_query,
            lambda r: EmotionLogEntry(emotion_name=r.emotion_name, intensity=r.intensity, notes=r.notes),
        ),
    }
