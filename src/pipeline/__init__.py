"""
Pipeline module for the sight assist system.

The pipeline orchestrates the periodic detection cycle:
- Frame acquisition from the capture device
- Model inference and post-processing
- Publishing the current frame
- Announcement decisions (via AnnouncementThrottler) and history persistence
"""

from .engine import (
    PipelineEngine,
    PipelineConfig,
    PipelineStats,
    SchedulerState,
    create_engine_from_config,
)
from .stages.announce import AnnouncementThrottler

__all__ = [
    "PipelineEngine",
    "PipelineConfig",
    "PipelineStats",
    "SchedulerState",
    "create_engine_from_config",
    "AnnouncementThrottler",
]
