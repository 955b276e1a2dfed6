"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import threading

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.detection import RawPrediction  # noqa: E402
from models.frame import FrameData  # noqa: E402
from observation.base import ObservationConfig, ObservationSource  # noqa: E402


class FakeSource(ObservationSource):
    """Capture device returning blank 640x360 frames."""

    def __init__(self, width: int = 640, height: int = 360, fail: bool = False, opened: bool = True):
        super().__init__(ObservationConfig(source_id="fake-camera"))
        self.width = width
        self.height = height
        self.fail = fail
        self.reads = 0
        self._is_open = opened

    def open(self) -> None:
        self._is_open = True

    def read(self):
        self.reads += 1
        if self.fail:
            return None
        self._frame_index += 1
        return FrameData(
            frame=np.zeros((self.height, self.width, 3), dtype=np.uint8),
            width=self.width,
            height=self.height,
            timestamp=1700000000.0,
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def close(self) -> None:
        self._is_open = False


class FakeDetector:
    """Model returning a fixed prediction list; optionally blocks until released."""

    def __init__(self, predictions=None, ready: bool = True, error: Exception = None, block: bool = False):
        self.predictions = list(predictions or [])
        self.ready = ready
        self.error = error
        self.calls = 0
        self.release = threading.Event()
        if not block:
            self.release.set()

    @property
    def is_ready(self) -> bool:
        return self.ready

    def detect(self, frame):
        self.calls += 1
        self.release.wait(timeout=2.0)
        if self.error is not None:
            raise self.error
        return list(self.predictions)


class FakeSynthesizer:
    def __init__(self):
        self.said = []

    def say(self, text, locale="en-US"):
        self.said.append((text, locale))


class MemoryKV:
    """In-memory stand-in for KeyValueStore."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)

    def close(self):
        pass


def pixel_prediction(label, x, y, w, h, score=0.9):
    return RawPrediction(label=label, score=score, bbox=(x, y, w, h))


@pytest.fixture
def fake_source():
    return FakeSource()


@pytest.fixture
def fake_synth():
    return FakeSynthesizer()


@pytest.fixture
def memory_kv():
    return MemoryKV()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  device_id: 0
  resolution: [640, 360]
  fps: 30

detection:
  model: "yolov8n.pt"
  conf_threshold: 0.3

scheduler:
  interval_ms: 700

announce:
  min_interval_ms: 3000

storage:
  local_database_path: "data/test.sqlite"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "detection": {
            "model": "yolov8n.pt",
            "conf_threshold": 0.3,
        },
        "scheduler": {"interval_ms": 700},
        "announce": {"min_interval_ms": 3000},
        "storage": {
            "local_database_path": "data/test.sqlite",
            "history_limit": 20,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
