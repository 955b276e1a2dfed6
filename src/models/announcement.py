"""
Announcement models shared by the throttler, scheduler and speech output.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from models.detection import DetectionFrame


class AnnounceReason(str, Enum):
    PERIODIC = "periodic"
    VOICE_COMMAND = "voice_command"


@dataclass
class AnnouncementState:
    """
    Mutable state owned by a single AnnouncementThrottler.

    Attributes:
        last_signature: Signature of the last announced frame.
        last_announced_at: Epoch milliseconds of the last announcement.
    """
    last_signature: str = ""
    last_announced_at: int = 0


@dataclass(frozen=True)
class AnnouncementEvent:
    """
    Emitted by the scheduler when a frame should be spoken.

    Attributes:
        frame: The detection frame to announce.
        reason: Why the announcement was triggered.
        timestamp: Epoch milliseconds of the decision.
    """
    frame: DetectionFrame
    reason: AnnounceReason
    timestamp: int
