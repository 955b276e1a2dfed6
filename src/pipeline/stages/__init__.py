"""
Pipeline stages for the sight assist system.

Each stage handles a specific decision inside a detection cycle:
- announce: whether a frame should be spoken
"""

from .announce import AnnouncementThrottler

__all__ = ["AnnouncementThrottler"]
