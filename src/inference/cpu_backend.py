"""
CPU inference backend.

Uses Ultralytics YOLO (COCO classes) to produce labelled predictions. Model
loading failures leave the backend in a not-ready state instead of raising,
so the rest of the application can keep running without detection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from models.detection import RawPrediction
from .backend import InferenceBackend


@dataclass(frozen=True)
class CpuYoloConfig:
    model: str
    conf_threshold: float = 0.3
    iou_threshold: float = 0.45
    classes: Optional[Sequence[int]] = None
    class_name_overrides: Optional[Dict[int, str]] = None


class UltralyticsCpuBackend(InferenceBackend):
    def __init__(self, cfg: CpuYoloConfig):
        self.cfg = cfg
        self._model: Any = None

    @property
    def is_ready(self) -> bool:
        return self._model is not None

    def load(self) -> bool:
        """Load the model; returns readiness."""
        if self._model is not None:
            return True
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            logging.error(
                f"Ultralytics is not installed ({e}). Install with `pip install ultralytics`."
            )
            return False

        try:
            self._model = YOLO(self.cfg.model)
        except Exception as e:
            logging.error(f"Failed to load detection model {self.cfg.model}: {e}")
            self._model = None
            return False

        logging.info(f"Detection model loaded: {self.cfg.model}")
        return True

    def detect(self, frame: np.ndarray) -> List[RawPrediction]:
        if self._model is None:
            raise RuntimeError("Detection model is not loaded")

        results = self._model.predict(
            source=frame,
            conf=self.cfg.conf_threshold,
            iou=self.cfg.iou_threshold,
            classes=list(self.cfg.classes) if self.cfg.classes is not None else None,
            verbose=False,
        )
        if not results:
            return []

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []

        xyxy = boxes.xyxy.cpu().numpy() if hasattr(boxes.xyxy, "cpu") else np.asarray(boxes.xyxy)
        conf = boxes.conf.cpu().numpy() if hasattr(boxes.conf, "cpu") else np.asarray(boxes.conf)
        cls = boxes.cls.cpu().numpy() if hasattr(boxes.cls, "cpu") else np.asarray(boxes.cls)

        out: List[RawPrediction] = []
        for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
            class_id = int(k)
            label = (
                (self.cfg.class_name_overrides or {}).get(class_id)
                or names.get(class_id)
                or str(class_id)
            )
            out.append(
                RawPrediction(
                    label=label,
                    score=float(c),
                    bbox=(float(x1), float(y1), float(x2 - x1), float(y2 - y1)),
                )
            )

        return out


def create_backend_from_config(detection_cfg: Dict[str, Any]) -> UltralyticsCpuBackend:
    """Factory: build (but do not load) the backend from the detection config section."""
    return UltralyticsCpuBackend(
        CpuYoloConfig(
            model=detection_cfg.get("model", "yolov8n.pt"),
            conf_threshold=float(detection_cfg.get("conf_threshold", 0.3)),
            iou_threshold=float(detection_cfg.get("iou_threshold", 0.45)),
            classes=detection_cfg.get("classes"),
            class_name_overrides=detection_cfg.get("class_name_overrides"),
        )
    )
