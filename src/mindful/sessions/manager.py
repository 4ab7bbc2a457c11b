"""Watch-session manager — owns the one progress record per user x content."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

import structlog

from mindful.auth.dependencies import Identity
from mindful.db.models import WatchSession
from mindful.sessions.state import Program, completion_percentage
from mindful.sessions.store import ZEROED_SESSION, SessionStore, StoreUnavailable

logger = structlog.get_logger()

UPDATABLE_FIELDS = frozenset({
    "program",
    "started_at",
    "completed_at",
    "watch_duration",
    "total_duration",
    "last_position",
    "completion_percentage",
    "reflection_text",
    "techniques_applied",
})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Outcome(str, Enum):
    """Result of a keyed mutation. Only APPLIED means the row changed."""

    APPLIED = "applied"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


class WatchSessionManager:
    """Get-or-create, progress updates, restarts, and skip bookkeeping."""

    def __init__(self, store: SessionStore) -> None:
        self.store = store

    async def get_or_create(
        self,
        identity: Identity,
        content_id: str,
        title: str,
        program: Program = Program.MEDITATION,
    ) -> WatchSession:
        """Fetch the session, inserting a zeroed one if absent.

        Raises StoreUnavailable; callers degrade to a null session.
        """
        try:
            existing = await self.store.get(identity.user_id, content_id)
            if existing is not None:
                return existing
            return await self.store.insert_if_absent(
                identity.user_id,
                content_id,
                {**ZEROED_SESSION, "content_title": title, "program": program.value},
            )
        except StoreUnavailable:
            logger.warning("session_get_or_create_failed", user_id=identity.user_id, content_id=content_id, exc_info=True)
            raise

    async def get(self, identity: Identity, content_id: str) -> WatchSession | None:
        try:
            return await self.store.get(identity.user_id, content_id)
        except StoreUnavailable:
            logger.warning("session_get_failed", user_id=identity.user_id, content_id=content_id, exc_info=True)
            return None

    async def update(
        self,
        identity: Identity,
        content_id: str,
        title: str,
        fields: dict[str, Any],
    ) -> WatchSession | None:
        """Upsert `fields` into the session and stamp updated_at.

        Callers pass watch_duration as max(observed, stored); no monotonicity
        check happens here. completion_percentage is derived from
        watch_duration and the supplied or stored total_duration unless given.
        Returns None when the store fails.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            msg = f"Unknown session fields: {sorted(unknown)}"
            raise ValueError(msg)

        merged = dict(fields)
        if isinstance(merged.get("program"), Program):
            merged["program"] = merged["program"].value
        merged["content_title"] = title
        merged["updated_at"] = _utcnow()

        try:
            if "watch_duration" in merged and "completion_percentage" not in merged:
                total = merged.get("total_duration")
                if total is None:
                    stored = await self.store.get(identity.user_id, content_id)
                    total = stored.total_duration if stored is not None else 0.0
                merged["completion_percentage"] = completion_percentage(merged["watch_duration"], total)
            return await self.store.upsert(identity.user_id, content_id, merged)
        except StoreUnavailable:
            logger.warning("session_update_failed", user_id=identity.user_id, content_id=content_id, exc_info=True)
            return None

    async def record_skip(self, identity: Identity, content_id: str) -> Outcome:
        """Increment skip_count by one, atomically in the store."""
        return await self._apply(
            "skip_record",
            identity,
            content_id,
            {"updated_at": _utcnow()},
            increments={"skip_count": 1},
        )

    async def restart_session(self, identity: Identity, content_id: str) -> Outcome:
        """Start watching again: reset position and completion, bump view_count.

        watch_duration, completion_percentage and skip_count are kept.
        """
        now = _utcnow()
        outcome = await self._apply(
            "session_restart",
            identity,
            content_id,
            {
                "started_at": now,
                "completed_at": None,
                "last_position": 0.0,
                "updated_at": now,
            },
            increments={"view_count": 1},
        )
        if outcome is Outcome.APPLIED:
            logger.info("session_restarted", user_id=identity.user_id, content_id=content_id)
        return outcome

    async def save_reflection(self, identity: Identity, content_id: str, text: str) -> Outcome:
        return await self._apply(
            "reflection_save", identity, content_id, {"reflection_text": text.strip(), "updated_at": _utcnow()},
        )

    async def save_techniques(self, identity: Identity, content_id: str, tags: list[str]) -> Outcome:
        # dict.fromkeys de-duplicates and keeps selection order
        return await self._apply(
            "techniques_save",
            identity,
            content_id,
            {"techniques_applied": list(dict.fromkeys(tags)), "updated_at": _utcnow()},
        )

    async def list_sessions(
        self, identity: Identity, program: Program | None = None,
    ) -> list[WatchSession]:
        """All of the caller's sessions, most recently updated first."""
        try:
            return await self.store.list_for_user(
                identity.user_id, program.value if program is not None else None
            )
        except StoreUnavailable:
            logger.warning("session_list_failed", user_id=identity.user_id, exc_info=True)
            return []

    async def _apply(
        self,
        action: str,
        identity: Identity,
        content_id: str,
        values: dict[str, Any],
        increments: dict[str, int] | None = None,
    ) -> Outcome:
        try:
            row = await self.store.update_fields(identity.user_id, content_id, values, increments)
        except StoreUnavailable:
            logger.warning(f"{action}_failed", user_id=identity.user_id, content_id=content_id, exc_info=True)
            return Outcome.UNAVAILABLE
        if row is None:
            logger.warning(f"{action}_no_session", user_id=identity.user_id, content_id=content_id)
            return Outcome.NOT_FOUND
        return Outcome.APPLIED
