"""Playback event schemas.

Whatever video widget renders the content reports through one typed stream:

    {"type": "ready", "duration": 612.0}
    {"type": "play"}
    {"type": "pause"}
    {"type": "ended"}
    {"type": "position_update", "time": 42.1, "duration": 612.0}
    {"type": "seeked", "from_time": 42.1, "to_time": 120.0}
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class PlaybackEventType(str, Enum):
    """All supported playback event types."""

    READY = "ready"
    PLAY = "play"
    PAUSE = "pause"
    ENDED = "ended"
    POSITION_UPDATE = "position_update"
    SEEKED = "seeked"


class ReadyEvent(BaseModel):
    """Player loaded; content length is known."""

    type: Literal["ready"] = "ready"
    duration: float = Field(ge=0)


class PlayEvent(BaseModel):
    type: Literal["play"] = "play"


class PauseEvent(BaseModel):
    type: Literal["pause"] = "pause"


class EndedEvent(BaseModel):
    type: Literal["ended"] = "ended"


class PositionUpdateEvent(BaseModel):
    """Periodic position report (coarse)."""

    type: Literal["position_update"] = "position_update"
    time: float = Field(ge=0)
    duration: float = Field(default=0.0, ge=0)


class SeekedEvent(BaseModel):
    """Explicit seek notification (exact)."""

    type: Literal["seeked"] = "seeked"
    from_time: float = Field(ge=0)
    to_time: float = Field(ge=0)


PlaybackEvent = Annotated[
    Union[ReadyEvent, PlayEvent, PauseEvent, EndedEvent, PositionUpdateEvent, SeekedEvent],
    Field(discriminator="type"),
]
