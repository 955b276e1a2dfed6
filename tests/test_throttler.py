"""
Tests for the announcement throttler.
"""

from conftest import pixel_prediction
from detection.postprocess import process
from models.announcement import AnnouncementState
from pipeline.stages.announce import AnnouncementThrottler


def _frame(*labels):
    preds = [pixel_prediction(label, 0, 0, 10, 200 - 10 * i) for i, label in enumerate(labels)]
    return process(preds, 640, 360, timestamp=1)


class TestAnnouncementThrottler:
    def test_first_frame_is_announced(self):
        throttler = AnnouncementThrottler()
        assert throttler.should_announce(_frame("chair"), now=10_000) is True
        assert throttler.state.last_signature == "chair"
        assert throttler.state.last_announced_at == 10_000

    def test_same_scene_within_window_is_suppressed(self):
        throttler = AnnouncementThrottler()
        assert throttler.should_announce(_frame("chair"), now=10_000)
        assert throttler.should_announce(_frame("chair"), now=11_000) is False

    def test_same_scene_after_window_is_still_suppressed(self):
        """Unchanged scenes are never repeated, however long it has been."""
        throttler = AnnouncementThrottler()
        assert throttler.should_announce(_frame("chair"), now=10_000)
        assert throttler.should_announce(_frame("chair"), now=60_000) is False

    def test_changed_scene_within_window_is_suppressed(self):
        throttler = AnnouncementThrottler()
        assert throttler.should_announce(_frame("chair"), now=10_000)
        assert throttler.should_announce(_frame("person"), now=12_000) is False
        # State untouched by the rejection
        assert throttler.state.last_signature == "chair"

    def test_window_is_exclusive(self):
        """Exactly 3000 ms is not enough; 3001 ms is."""
        throttler = AnnouncementThrottler()
        assert throttler.should_announce(_frame("chair"), now=10_000)
        assert throttler.should_announce(_frame("person"), now=13_000) is False
        assert throttler.should_announce(_frame("person"), now=13_001) is True

    def test_changed_scene_after_window_resets_timer(self):
        throttler = AnnouncementThrottler()
        assert throttler.should_announce(_frame("chair"), now=10_000)
        assert throttler.should_announce(_frame("person"), now=14_000)
        assert throttler.state.last_announced_at == 14_000
        assert throttler.should_announce(_frame("chair"), now=15_000) is False

    def test_signature_order_matters(self):
        throttler = AnnouncementThrottler()
        assert throttler.should_announce(_frame("chair", "person"), now=10_000)
        assert throttler.should_announce(_frame("person", "chair"), now=14_000)

    def test_empty_frame_is_throttled_like_any_other(self):
        throttler = AnnouncementThrottler()
        assert throttler.should_announce(_frame("chair"), now=10_000)
        assert throttler.should_announce(_frame(), now=11_000) is False
        assert throttler.should_announce(_frame(), now=14_000) is True
        assert throttler.state.last_signature == ""

    def test_empty_first_frame_matches_initial_signature(self):
        """Initial state has signature "", so an empty scene is not announced first."""
        throttler = AnnouncementThrottler()
        assert throttler.should_announce(_frame(), now=10_000) is False

    def test_reset(self):
        throttler = AnnouncementThrottler()
        throttler.should_announce(_frame("chair"), now=10_000)
        throttler.reset()
        assert throttler.state == AnnouncementState()
        assert throttler.should_announce(_frame("chair"), now=10_500) is True

    def test_custom_interval(self):
        throttler = AnnouncementThrottler(min_interval_ms=100)
        assert throttler.should_announce(_frame("chair"), now=1_000)
        assert throttler.should_announce(_frame("cup"), now=1_101) is True

    def test_independent_instances(self):
        a = AnnouncementThrottler()
        b = AnnouncementThrottler()
        assert a.should_announce(_frame("chair"), now=10_000)
        assert b.should_announce(_frame("chair"), now=10_000)
