"""Seek/skip detection.

A forward jump in playback position is a skip when it exceeds the channel's
threshold and did not start at position 0. The zero guard ignores the first
position report after a (re)load, which can jump from 0 to wherever the
player resumed.
"""

from __future__ import annotations

from enum import Enum

PERIODIC_SKIP_THRESHOLD = 2.0  # seconds, coarse timeupdate reports
EXPLICIT_SKIP_THRESHOLD = 1.0  # seconds, exact seek notifications


class SeekChannel(str, Enum):
    """Where a position transition was observed."""

    PERIODIC = "periodic"
    EXPLICIT = "explicit"


class SeekDetector:
    """Classifies (from_time, to_time) transitions as skips."""

    def __init__(
        self,
        periodic_threshold: float = PERIODIC_SKIP_THRESHOLD,
        explicit_threshold: float = EXPLICIT_SKIP_THRESHOLD,
    ) -> None:
        self._thresholds = {
            SeekChannel.PERIODIC: periodic_threshold,
            SeekChannel.EXPLICIT: explicit_threshold,
        }

    def threshold(self, channel: SeekChannel) -> float:
        return self._thresholds[channel]

    def is_skip(self, from_time: float, to_time: float, channel: SeekChannel) -> bool:
        """True iff to_time - from_time > threshold and from_time > 0."""
        if from_time <= 0:
            return False
        return to_time - from_time > self._thresholds[channel]
