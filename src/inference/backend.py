"""
Inference backend interface.

Backends return pixel-space predictions as (x, y, width, height) boxes in the
coordinate system of the frame they were given, already filtered by the
backend's own confidence threshold.
"""

from __future__ import annotations

from typing import List, Protocol

import numpy as np

from models.detection import RawPrediction


class InferenceBackend(Protocol):
    @property
    def is_ready(self) -> bool:
        ...

    def detect(self, frame: np.ndarray) -> List[RawPrediction]:
        ...
