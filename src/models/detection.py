"""
Detection models for object detection results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Tuple


class Position(str, Enum):
    """Horizontal bucket of a detection relative to the camera view."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box normalized to [0, 1] relative to frame dimensions.

    Attributes:
        x: Left edge (origin top-left).
        y: Top edge.
        width: Box width.
        height: Box height.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    @classmethod
    def from_tuple(cls, t: Tuple[float, float, float, float]) -> "BoundingBox":
        """Create from (x, y, width, height) tuple."""
        return cls(x=t[0], y=t[1], width=t[2], height=t[3])


@dataclass(frozen=True)
class RawPrediction:
    """
    A single prediction as returned by the detection model.

    Attributes:
        label: Object class name.
        score: Confidence score (0-1).
        bbox: Pixel bounding box as (x, y, width, height).
    """
    label: str
    score: float
    bbox: Tuple[float, float, float, float]


@dataclass(frozen=True)
class Detection:
    """
    A post-processed detection with spatial guidance.

    Attributes:
        id: Identifier, unique within one frame.
        label: Object class name reported by the model.
        score: Confidence score (0-1).
        bbox: Normalized bounding box.
        distance: Estimated distance in meters, None when bbox height is zero.
        position: Horizontal bucket derived from the bbox center.
    """
    id: str
    label: str
    score: float
    bbox: BoundingBox
    distance: Optional[float] = None
    position: Optional[Position] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "label": self.label,
            "score": self.score,
            "bbox": list(self.bbox.as_tuple()),
            "distance": self.distance,
            "position": self.position.value if self.position else None,
        }


@dataclass(frozen=True)
class DetectionFrame:
    """
    Detections of one inference cycle, nearest first.

    Attributes:
        detections: Detections sorted ascending by distance.
        timestamp: Epoch milliseconds of the cycle that produced the frame.
    """
    detections: Tuple[Detection, ...] = ()
    timestamp: int = 0

    def __len__(self) -> int:
        return len(self.detections)

    def __iter__(self) -> Iterator[Detection]:
        return iter(self.detections)

    def __getitem__(self, index):
        return self.detections[index]

    def __bool__(self) -> bool:
        return bool(self.detections)

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(d.label for d in self.detections)

    @property
    def signature(self) -> str:
        """Comma-joined labels, used to detect scene changes."""
        return ",".join(self.labels)

    def count(self, label: str) -> int:
        return sum(1 for d in self.detections if d.label == label)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "detections": [d.to_dict() for d in self.detections],
        }


EMPTY_FRAME = DetectionFrame()
