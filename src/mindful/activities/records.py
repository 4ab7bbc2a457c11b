"""Activity records — one frozen variant per scored category.

Each variant carries only the fields its category needs, so scoring never has
to guess which optional attribute a row happens to have.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class ActivityCategory(str, Enum):
    """Categories that contribute to a user's score."""

    SELF_DESCRIPTION = "self_description"
    TIMELINE_NOTES = "timeline_notes"
    LETTERS = "letters"
    MEDITATION = "meditation"
    ANGER_MANAGEMENT = "anger_management"
    EMOTION_MATCHING = "emotion_matching"
    EMOTION_LOG = "emotion_log"


SELF_DESCRIPTION_ACTIVITY = "cuentame_quien_eres"


@dataclass(frozen=True)
class SelfDescriptionAnswer:
    question: str
    response: str
    activity_type: str = SELF_DESCRIPTION_ACTIVITY


@dataclass(frozen=True)
class TimelineNote:
    text: str


@dataclass(frozen=True)
class Letter:
    title: str
    content: str


@dataclass(frozen=True)
class VideoSessionRecord:
    program: str
    watch_duration: float
    completed: bool
    reflection_text: str | None = None
    techniques_applied: tuple[str, ...] = field(default_factory=tuple)
    view_count: int = 0
    skip_count: int = 0


@dataclass(frozen=True)
class EmotionMatchAttempt:
    emotion_name: str
    is_correct: bool


@dataclass(frozen=True)
class EmotionLogEntry:
    emotion_name: str
    intensity: int | None = None
    notes: str | None = None


ActivityRecord = Union[
    SelfDescriptionAnswer,
    TimelineNote,
    Letter,
    VideoSessionRecord,
    EmotionMatchAttempt,
    EmotionLogEntry,
]
