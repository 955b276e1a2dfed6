"""
Sight Assist - Storage Module

Key-value persistence and the bounded detection history built on it.
"""

from .kv_store import KeyValueStore
from .history import DetectionHistoryStore, HISTORY_KEY, HISTORY_LIMIT

__all__ = ['KeyValueStore', 'DetectionHistoryStore', 'HISTORY_KEY', 'HISTORY_LIMIT']
