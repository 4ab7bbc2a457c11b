"""Session lifecycle states and derived progress values."""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Protocol


class Program(str, Enum):
    """Video programs that produce watch sessions."""

    MEDITATION = "meditation"
    ANGER_MANAGEMENT = "anger_management"


class SessionState(str, Enum):
    """NotStarted -> InProgress (play) -> Completed (ended).

    Completed -> InProgress only through an explicit restart.
    """

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class _Timestamped(Protocol):
    started_at: datetime | None
    completed_at: datetime | None


def session_state(session: _Timestamped | None) -> SessionState:
    """Derive the lifecycle state from the stored timestamps."""
    if session is None or session.started_at is None and session.completed_at is None:
        return SessionState.NOT_STARTED
    if session.completed_at is not None:
        return SessionState.COMPLETED
    return SessionState.IN_PROGRESS


def completion_percentage(watch_duration: float, total_duration: float) -> int:
    """clamp(round(100 * watched / total), 0, 100), or 0 when the length is unknown.

    Halves round up, matching what the player UI displays.
    """
    if total_duration <= 0:
        return 0
    pct = math.floor(100 * watch_duration / total_duration + 0.5)
    return max(0, min(100, pct))
