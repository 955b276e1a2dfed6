"""
Typed models for the sight assist application.

These models carry detection results, announcement state and configuration
between the pipeline, speech, storage and web layers.
"""

from .frame import FrameData
from .detection import BoundingBox, Detection, DetectionFrame, Position, RawPrediction, EMPTY_FRAME
from .history import StoredDetectionEvent
from .announcement import AnnounceReason, AnnouncementEvent, AnnouncementState
from .config import (
    Config,
    CameraConfig,
    DetectionConfig,
    SchedulerConfig,
    AnnounceConfig,
    SpeechConfig,
    StorageConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "BoundingBox",
    "Detection",
    "DetectionFrame",
    "Position",
    "RawPrediction",
    "EMPTY_FRAME",
    # History
    "StoredDetectionEvent",
    # Announcement
    "AnnounceReason",
    "AnnouncementEvent",
    "AnnouncementState",
    # Config
    "Config",
    "CameraConfig",
    "DetectionConfig",
    "SchedulerConfig",
    "AnnounceConfig",
    "SpeechConfig",
    "StorageConfig",
    "WebConfig",
]
