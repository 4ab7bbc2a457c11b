"""Pydantic request/response models for watch-session endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from mindful.sessions.events import PlaybackEvent
from mindful.sessions.state import Program, SessionState, session_state


# --- Requests ---


class SessionOpenRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    program: Program = Program.MEDITATION


class SessionUpdateRequest(BaseModel):
    """Partial progress update. Omitted fields are left untouched."""

    title: str = Field(min_length=1, max_length=200)
    program: Program | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    watch_duration: float | None = Field(default=None, ge=0)
    total_duration: float | None = Field(default=None, ge=0)
    last_position: float | None = Field(default=None, ge=0)
    completion_percentage: int | None = Field(default=None, ge=0, le=100)


class ReflectionRequest(BaseModel):
    text: str = Field(max_length=5000)


class TechniquesRequest(BaseModel):
    techniques: list[str] = Field(default_factory=list, max_length=50)


class EventBatchRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    program: Program = Program.MEDITATION
    events: list[PlaybackEvent] = Field(min_length=1, max_length=500)


# --- Responses ---


class WatchSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    content_id: str
    content_title: str
    program: Program
    started_at: datetime | None = None
    completed_at: datetime | None = None
    watch_duration: float
    total_duration: float
    last_position: float
    completion_percentage: int
    view_count: int
    skip_count: int
    reflection_text: str | None = None
    techniques_applied: list[str] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def state(self) -> SessionState:
        return session_state(self)


class SessionEnvelope(BaseModel):
    """`session` is null when the store could not be reached."""

    session: WatchSessionResponse | None = None


class SessionListResponse(BaseModel):
    sessions: list[WatchSessionResponse]
    total: int


class EventBatchResponse(BaseModel):
    session: WatchSessionResponse | None = None
    state: SessionState
    skips_detected: int
