"""
Announce stage: decides whether a detection frame should be spoken.

A frame is announced only when its label signature differs from the last
announced one AND enough time has passed since that announcement. This keeps
identical scenes quiet and caps how often noisy per-frame flicker can talk.
An empty frame has the signature "" and follows the same rule.
"""

from __future__ import annotations

import logging
from typing import Optional

from models.announcement import AnnouncementState
from models.detection import DetectionFrame

DEFAULT_MIN_INTERVAL_MS = 3000


class AnnouncementThrottler:
    """
    Stateful announcement policy.

    Example:
        throttler = AnnouncementThrottler()
        if throttler.should_announce(frame, now_ms):
            speak(frame)
    """

    def __init__(
        self,
        min_interval_ms: int = DEFAULT_MIN_INTERVAL_MS,
        state: Optional[AnnouncementState] = None,
    ):
        self._min_interval_ms = min_interval_ms
        self._state = state if state is not None else AnnouncementState()

    @property
    def state(self) -> AnnouncementState:
        return self._state

    @property
    def min_interval_ms(self) -> int:
        return self._min_interval_ms

    def should_announce(self, frame: DetectionFrame, now: int) -> bool:
        """
        Return True and record the announcement if frame should be spoken.

        Args:
            frame: Post-processed detection frame.
            now: Current time in epoch milliseconds.
        """
        signature = frame.signature
        elapsed = now - self._state.last_announced_at
        if signature == self._state.last_signature or elapsed <= self._min_interval_ms:
            return False

        self._state.last_signature = signature
        self._state.last_announced_at = now
        logging.debug(f"Announcement accepted: signature='{signature}' elapsed={elapsed}ms")
        return True

    def reset(self) -> None:
        self._state.last_signature = ""
        self._state.last_announced_at = 0
