"""
ObservationSource interface for the capture device.

The detection loop only needs three things from a camera: open it, grab the
current frame, and release it. Sources return None from read() on any
acquisition failure instead of raising, so a bad frame simply skips a cycle.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Base configuration for observation sources.

    Attributes:
        source_id: Identifier for this source (e.g., "main-camera").
        resolution: Target resolution as (width, height). None = use source default.
        fps: Target frames per second. None = use source default.
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    resolution: Optional[tuple[int, int]] = None
    fps: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class ObservationSource(ABC):
    """
    Abstract base class for capture devices.

    Lifecycle:
        1. Create instance with config
        2. Call open() to acquire the device
        3. Call read() whenever a frame is needed
        4. Call close() to release the device

    is_open doubles as the readiness flag consulted by the scheduler.
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        """Whether the source is open and ready to deliver frames."""
        return self._is_open

    @property
    def frame_index(self) -> int:
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """
        Open the capture device.

        Raises:
            RuntimeError: If the device cannot be opened.
        """

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """
        Acquire the current frame.

        Returns:
            FrameData, or None if no frame could be acquired.
        """

    @abstractmethod
    def close(self) -> None:
        """Release the device. Safe to call multiple times."""

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
