"""
StoredDetectionEvent model for the detection history log.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple


@dataclass(frozen=True)
class StoredDetectionEvent:
    """
    A persisted record of an announced detection frame.

    Attributes:
        timestamp: Epoch milliseconds of the announcement.
        labels: Object labels in frame order (nearest first).
    """
    timestamp: int
    labels: Tuple[str, ...] = ()

    @classmethod
    def create(cls, timestamp: int, labels: Sequence[str]) -> "StoredDetectionEvent":
        return cls(timestamp=int(timestamp), labels=tuple(labels))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StoredDetectionEvent":
        """Adapter: Create from a deserialized JSON object."""
        return cls(
            timestamp=int(d["timestamp"]),
            labels=tuple(str(label) for label in d.get("labels", [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "labels": list(self.labels),
        }
