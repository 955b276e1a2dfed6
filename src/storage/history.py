"""
Detection history store.

A bounded, most-recent-first log of announced detection frames, persisted as
one JSON array under a single key of the KeyValueStore.

History is a convenience feature: every storage failure is logged and
absorbed. append() then does nothing and read_all() returns an empty list.
The read/modify/write in append() is not transactional; the detection loop
is the only writer.
"""

from __future__ import annotations

import json
import logging
from typing import List

from models.history import StoredDetectionEvent

HISTORY_KEY = "sightassist:lastDetections"
HISTORY_LIMIT = 20


class DetectionHistoryStore:
    def __init__(self, kv_store, key: str = HISTORY_KEY, limit: int = HISTORY_LIMIT):
        self._kv = kv_store
        self._key = key
        self._limit = limit

    @property
    def key(self) -> str:
        return self._key

    @property
    def limit(self) -> int:
        return self._limit

    def _load(self) -> List[StoredDetectionEvent]:
        blob = self._kv.get(self._key)
        if not blob:
            return []
        return [StoredDetectionEvent.from_dict(item) for item in json.loads(blob)]

    def append(self, event: StoredDetectionEvent) -> None:
        """Prepend event and keep only the most recent entries."""
        try:
            events = [event] + self._load()
            events = events[: self._limit]
            self._kv.set(self._key, json.dumps([e.to_dict() for e in events]))
        except Exception as e:
            logging.debug(f"History append skipped: {e}")

    def read_all(self) -> List[StoredDetectionEvent]:
        """Return stored events, most recent first."""
        try:
            return self._load()
        except Exception as e:
            logging.debug(f"History read failed: {e}")
            return []

    def clear(self) -> None:
        try:
            self._kv.delete(self._key)
        except Exception as e:
            logging.debug(f"History clear skipped: {e}")

    def close(self) -> None:
        """Close the underlying store connection."""
        try:
            self._kv.close()
        except Exception as e:
            logging.debug(f"History store close failed: {e}")
