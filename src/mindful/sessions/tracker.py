"""Playback tracker — consumes the typed event stream for one viewer x content.

The tracker is seeded from the stored session, so a batch of events posted
after a page reload continues from the persisted high-water mark instead of
from zero. Skip detections are recorded as fire-and-forget tasks; call
`finish()` before the request ends so none are left dangling.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

import structlog

from mindful.auth.dependencies import Identity
from mindful.db.models import WatchSession
from mindful.sessions.detector import SeekChannel, SeekDetector
from mindful.sessions.events import (
    EndedEvent,
    PauseEvent,
    PlaybackEvent,
    PlaybackEventType,
    PlayEvent,
    PositionUpdateEvent,
    ReadyEvent,
    SeekedEvent,
)
from mindful.sessions.manager import WatchSessionManager
from mindful.sessions.state import SessionState

logger = structlog.get_logger()


class PlaybackTracker:
    """Applies playback events to a watch session."""

    def __init__(
        self,
        manager: WatchSessionManager,
        detector: SeekDetector,
        identity: Identity,
        content_id: str,
        title: str,
        session: WatchSession | None,
    ) -> None:
        self.manager = manager
        self.detector = detector
        self.identity = identity
        self.content_id = content_id
        self.title = title
        self.session = session

        self.position = session.last_position if session else 0.0
        self.last_time = self.position
        self.max_watched = session.watch_duration if session else 0.0
        self.duration = session.total_duration if session else 0.0
        self.started = session is not None and session.started_at is not None
        self.completed = session is not None and session.completed_at is not None

        self.skips_detected = 0
        # Landing point of a jump the periodic channel just counted; the
        # player's own seek report for that jump must not count again.
        self._periodic_target: float | None = None
        self._unsaved = False
        self._pending: set[asyncio.Task[None]] = set()

        self._handlers = {
            PlaybackEventType.READY: self._on_ready,
            PlaybackEventType.PLAY: self._on_play,
            PlaybackEventType.PAUSE: self._on_pause,
            PlaybackEventType.ENDED: self._on_ended,
            PlaybackEventType.POSITION_UPDATE: self._on_position_update,
            PlaybackEventType.SEEKED: self._on_seeked,
        }

    @property
    def state(self) -> SessionState:
        if self.completed:
            return SessionState.COMPLETED
        if self.started:
            return SessionState.IN_PROGRESS
        return SessionState.NOT_STARTED

    async def handle(self, event: PlaybackEvent) -> None:
        await self._handlers[PlaybackEventType(event.type)](event)

    async def handle_all(self, events: Iterable[PlaybackEvent]) -> None:
        for event in events:
            await self.handle(event)

    async def finish(self) -> WatchSession | None:
        """Wait for pending skip writes, save the position, return the freshest session.

        The position is saved even without a pause so the next batch of the
        same playback compares against where this one stopped.
        """
        if self._pending:
            await asyncio.gather(*self._pending)
        saved = False
        if self._unsaved:
            saved = await self._persist_progress()
        if self.skips_detected and not saved:
            refreshed = await self.manager.get(self.identity, self.content_id)
            if refreshed is not None:
                self.session = refreshed
        return self.session

    # --- Event handlers ---

    async def _on_ready(self, event: ReadyEvent) -> None:
        self.duration = event.duration
        if event.duration > 0:
            await self._update({"total_duration": event.duration})

    async def _on_play(self, _event: PlayEvent) -> None:
        if self.started or self.completed:
            return
        self.started = True
        await self._update({"started_at": datetime.now(timezone.utc)})

    async def _on_pause(self, _event: PauseEvent) -> None:
        await self._persist_progress()

    async def _on_ended(self, _event: EndedEvent) -> None:
        self.completed = True
        await self._persist_progress(completed=True)

    async def _on_position_update(self, event: PositionUpdateEvent) -> None:
        if self.detector.is_skip(self.last_time, event.time, SeekChannel.PERIODIC):
            self._on_skip()
            self._periodic_target = event.time
        else:
            self._periodic_target = None
        self.last_time = event.time
        self.position = event.time
        self._unsaved = True
        self.max_watched = max(self.max_watched, event.time)
        if event.duration > 0:
            self.duration = event.duration

    async def _on_seeked(self, event: SeekedEvent) -> None:
        already_counted = self._periodic_target is not None and event.to_time == self._periodic_target
        if not already_counted and self.detector.is_skip(event.from_time, event.to_time, SeekChannel.EXPLICIT):
            self._on_skip()
        self._periodic_target = None
        self.last_time = event.to_time
        self.position = event.to_time
        self._unsaved = True

    # --- Internals ---

    def _on_skip(self) -> None:
        self.skips_detected += 1
        task = asyncio.create_task(self._record_skip())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _record_skip(self) -> None:
        try:
            await self.manager.record_skip(self.identity, self.content_id)
        except Exception:
            logger.warning("skip_task_failed", user_id=self.identity.user_id, content_id=self.content_id, exc_info=True)

    async def _persist_progress(self, completed: bool = False) -> bool:
        stored = self.session.watch_duration if self.session else 0.0
        fields: dict[str, Any] = {
            "watch_duration": max(self.max_watched, stored),
            "total_duration": self.duration,
            "last_position": self.position,
        }
        if completed:
            fields["completed_at"] = datetime.now(timezone.utc)
        saved = await self._update(fields)
        if saved:
            self._unsaved = False
        return saved

    async def _update(self, fields: dict[str, Any]) -> bool:
        updated = await self.manager.update(self.identity, self.content_id, self.title, fields)
        if updated is None:
            return False
        self.session = updated
        return True
