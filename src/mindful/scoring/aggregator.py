"""Score aggregator — sums category points over a user's activity records.

Category formulas (1 point per character for free text):

    self-description answers   len(response)
    timeline notes             len(text)
    letters                    len(title) + len(content)
    video sessions             per session, floored at 0:
                               floor(watch/60)*50 + 200 if completed
                               + len(reflection) + 100*(views-1) if views > 1
                               + 50 per technique (anger management)
                               - 10*max(0, skips-5)
    emotion matching           10*attempts + 30*correct + 100*distinct correct emotions
    emotion log                50*entries + len(note) for entries with a note

A nonzero raw total below 10 is reported as 10.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

from mindful.activities.providers import ActivityProvider
from mindful.activities.records import (
    ActivityCategory,
    ActivityRecord,
    EmotionLogEntry,
    EmotionMatchAttempt,
    Letter,
    SelfDescriptionAnswer,
    TimelineNote,
    VideoSessionRecord,
)
from mindful.sessions.state import Program

logger = logging.getLogger(__name__)

MIN_VISIBLE_SCORE = 10

POINTS_PER_MINUTE = 50
COMPLETION_BONUS = 200
REWATCH_BONUS = 100
TECHNIQUE_BONUS = 50
SKIP_ALLOWANCE = 5
SKIP_PENALTY = 10

MATCH_ATTEMPT_POINTS = 10
MATCH_CORRECT_POINTS = 30
MATCH_MASTERED_POINTS = 100
EMOTION_LOG_ENTRY_POINTS = 50


# --- Category points ---


def answer_points(records: Sequence[ActivityRecord]) -> int:
    return sum(len(r.response) for r in records if isinstance(r, SelfDescriptionAnswer))


def note_points(records: Sequence[ActivityRecord]) -> int:
    return sum(len(r.text) for r in records if isinstance(r, TimelineNote))


def letter_points(records: Sequence[ActivityRecord]) -> int:
    return sum(len(r.title) + len(r.content) for r in records if isinstance(r, Letter))


def session_points(session: VideoSessionRecord) -> int:
    """Points for one watch session, never negative."""
    points = math.floor(session.watch_duration / 60) * POINTS_PER_MINUTE
    if session.completed:
        points += COMPLETION_BONUS
    if session.reflection_text:
        points += len(session.reflection_text)
    if session.program == Program.ANGER_MANAGEMENT.value:
        points += TECHNIQUE_BONUS * len(session.techniques_applied)
    if session.view_count > 1:
        points += REWATCH_BONUS * (session.view_count - 1)
    points -= SKIP_PENALTY * max(0, session.skip_count - SKIP_ALLOWANCE)
    return max(0, points)


def video_points(records: Sequence[ActivityRecord]) -> int:
    return sum(session_points(r) for r in records if isinstance(r, VideoSessionRecord))


def match_points(records: Sequence[ActivityRecord]) -> int:
    attempts = [r for r in records if isinstance(r, EmotionMatchAttempt)]
    correct = [r for r in attempts if r.is_correct]
    mastered = {r.emotion_name for r in correct}
    return (
        MATCH_ATTEMPT_POINTS * len(attempts)
        + MATCH_CORRECT_POINTS * len(correct)
        + MATCH_MASTERED_POINTS * len(mastered)
    )


def emotion_log_points(records: Sequence[ActivityRecord]) -> int:
    entries = [r for r in records if isinstance(r, EmotionLogEntry)]
    return EMOTION_LOG_ENTRY_POINTS * len(entries) + sum(len(r.notes) for r in entries if r.notes)


CATEGORY_POINTS: dict[ActivityCategory, Callable[[Sequence[ActivityRecord]], int]] = {
    ActivityCategory.SELF_DESCRIPTION: answer_points,
    ActivityCategory.TIMELINE_NOTES: note_points,
    ActivityCategory.LETTERS: letter_points,
    ActivityCategory.MEDITATION: video_points,
    ActivityCategory.ANGER_MANAGEMENT: video_points,
    ActivityCategory.EMOTION_MATCHING: match_points,
    ActivityCategory.EMOTION_LOG: emotion_log_points,
}


def finalize_score(raw_total: int) -> int:
    """Any participation is visible: 0 < raw < 10 becomes 10."""
    if 0 < raw_total < MIN_VISIBLE_SCORE:
        return MIN_VISIBLE_SCORE
    return raw_total


@dataclass
class ScoreBreakdown:
    categories: dict[ActivityCategory, int] = field(default_factory=dict)
    failed: list[ActivityCategory] = field(default_factory=list)

    @property
    def raw_total(self) -> int:
        return sum(self.categories.values())

    @property
    def total(self) -> int:
        return finalize_score(self.raw_total)


class ScoreAggregator:
    """Computes a user's score from the configured providers.

    A provider that fails contributes 0 for its category and is logged; the
    other categories are still summed.
    """

    def __init__(self, providers: Mapping[ActivityCategory, ActivityProvider]) -> None:
        self.providers = dict(providers)

    async def breakdown(self, user_id: str) -> ScoreBreakdown:
        categories = list(self.providers)
        results = await asyncio.gather(
            *(self._category_points(category, user_id) for category in categories)
        )

        breakdown = ScoreBreakdown()
        for category, points in zip(categories, results):
            if points is None:
                breakdown.failed.append(category)
                points = 0
            breakdown.categories[category] = points
        return breakdown

    async def score(self, user_id: str) -> int:
        return (await self.breakdown(user_id)).total

    async def _category_points(self, category: ActivityCategory, user_id: str) -> int | None:
        try:
            records = await self.providers[category].list_for_user(user_id)
        except Exception:
            logger.warning("Failed to load %s for user %s", category.value, user_id, exc_info=True)
            return None
        return CATEGORY_POINTS[category](records)
