"""Seek/skip classification tests."""

import pytest

from mindful.sessions.detector import SeekChannel, SeekDetector


class TestSeekDetector:
    def test_periodic_jump_over_threshold_is_skip(self):
        assert SeekDetector().is_skip(10, 15, SeekChannel.PERIODIC) is True

    def test_jump_from_zero_is_never_a_skip(self):
        """The first report after a (re)load may jump from 0 to the resume point."""
        detector = SeekDetector()
        assert detector.is_skip(0, 8, SeekChannel.PERIODIC) is False
        assert detector.is_skip(0, 500, SeekChannel.EXPLICIT) is False

    def test_periodic_threshold_is_exclusive(self):
        detector = SeekDetector()
        assert detector.is_skip(10, 12, SeekChannel.PERIODIC) is False
        assert detector.is_skip(10, 12.01, SeekChannel.PERIODIC) is True

    def test_explicit_threshold_is_one_second(self):
        detector = SeekDetector()
        assert detector.is_skip(10, 11, SeekChannel.EXPLICIT) is False
        assert detector.is_skip(10, 11.5, SeekChannel.EXPLICIT) is True
        assert detector.is_skip(10, 11.5, SeekChannel.PERIODIC) is False

    def test_backward_seek_is_not_a_skip(self):
        assert SeekDetector().is_skip(120, 30, SeekChannel.EXPLICIT) is False

    @pytest.mark.parametrize(
        ("from_time", "to_time", "expected"),
        [(0.5, 2.6, True), (0.5, 2.5, False), (100, 100.2, False)],
    )
    def test_normal_playback_ticks(self, from_time, to_time, expected):
        assert SeekDetector().is_skip(from_time, to_time, SeekChannel.PERIODIC) is expected

    def test_thresholds_are_configurable(self):
        detector = SeekDetector(periodic_threshold=5.0, explicit_threshold=3.0)
        assert detector.threshold(SeekChannel.PERIODIC) == 5.0
        assert detector.threshold(SeekChannel.EXPLICIT) == 3.0
        assert detector.is_skip(10, 14, SeekChannel.PERIODIC) is False
        assert detector.is_skip(10, 14, SeekChannel.EXPLICIT) is True
