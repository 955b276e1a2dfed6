"""
FrameData model for images acquired from the capture device.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass
class FrameData:
    """
    Pixel payload and metadata for one acquired camera frame.

    Attributes:
        frame: The raw image as a numpy array (BGR, as delivered by OpenCV).
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp (seconds) when the frame was acquired.
        frame_index: Sequential frame number since the source was opened.
        source: Identifier of the capture device.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Create FrameData from a numpy array, reading dimensions from its shape."""
        h, w = frame.shape[:2]
        return cls(frame=frame, width=w, height=h, timestamp=timestamp,
                   frame_index=frame_index, source=source)

    @property
    def timestamp_ms(self) -> int:
        return int(self.timestamp * 1000)

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)
