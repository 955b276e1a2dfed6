"""
Published detection state.

The detection loop publishes each new frame here; the voice command handler,
the person alert hook and the web API read it. A publish is a single
reference swap, so readers always see a complete frame (last publish wins).
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from models.detection import DetectionFrame, EMPTY_FRAME

FrameListener = Callable[[DetectionFrame], None]


class DetectionState:
    def __init__(self):
        self._current: DetectionFrame = EMPTY_FRAME
        self._updated_at: Optional[float] = None
        self._listeners: List[FrameListener] = []

    @property
    def current(self) -> DetectionFrame:
        return self._current

    @property
    def updated_at(self) -> Optional[float]:
        """Unix timestamp of the last publish, None if nothing was published."""
        return self._updated_at

    def subscribe(self, listener: FrameListener) -> Callable[[], None]:
        """Register listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, frame: DetectionFrame) -> None:
        self._current = frame
        self._updated_at = time.time()
        for listener in list(self._listeners):
            try:
                listener(frame)
            except Exception as e:
                logging.warning(f"Frame listener error: {e}")

    def clear(self) -> None:
        self._current = EMPTY_FRAME
        self._updated_at = None
