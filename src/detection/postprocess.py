"""
Detection post-processing.

Turns raw model predictions (pixel boxes) into a ranked DetectionFrame:
normalized boxes, a distance estimate from box height and a
left/center/right bucket from the box center. Nearest objects come first.
"""

from __future__ import annotations

import time
from typing import Iterable, List, Optional

from models.detection import BoundingBox, Detection, DetectionFrame, Position, RawPrediction

# Inverse proportionality constant, tuned for a 16:9 preview.
DISTANCE_K = 1.6
MIN_DISTANCE_M = 0.5
MAX_DISTANCE_M = 8.0

# Sort key for detections without a distance; larger than MAX_DISTANCE_M.
MISSING_DISTANCE_SORT_KEY = 9.0

LEFT_BOUNDARY = 0.33
RIGHT_BOUNDARY = 0.66


def estimate_distance(bbox: BoundingBox) -> Optional[float]:
    """
    Estimate distance in meters from the normalized box height.

    Returns None when the box has no height.
    """
    if bbox.height is None or bbox.height <= 0:
        return None
    meters = DISTANCE_K / bbox.height
    return max(MIN_DISTANCE_M, min(MAX_DISTANCE_M, meters))


def classify_position(bbox: BoundingBox) -> Position:
    cx = bbox.center_x
    if cx < LEFT_BOUNDARY:
        return Position.LEFT
    if cx > RIGHT_BOUNDARY:
        return Position.RIGHT
    return Position.CENTER


def normalize_bbox(pixel_bbox, image_width: float, image_height: float) -> BoundingBox:
    px, py, pw, ph = pixel_bbox
    return BoundingBox(
        x=px / image_width,
        y=py / image_height,
        width=pw / image_width,
        height=ph / image_height,
    )


def _sort_key(detection: Detection) -> float:
    return detection.distance if detection.distance is not None else MISSING_DISTANCE_SORT_KEY


def process(
    predictions: Iterable[RawPrediction],
    image_width: float,
    image_height: float,
    timestamp: Optional[int] = None,
) -> DetectionFrame:
    """
    Build a ranked DetectionFrame from raw model predictions.

    Args:
        predictions: Raw predictions with pixel (x, y, width, height) boxes.
        image_width: Width of the analysed image in pixels.
        image_height: Height of the analysed image in pixels.
        timestamp: Cycle timestamp in epoch milliseconds, used for ids.
            Defaults to the current time.

    Returns:
        DetectionFrame sorted ascending by distance, missing distances last.
        Python's sort is stable, so equal distances keep input order.
    """
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    if not image_width or not image_height or image_width <= 0 or image_height <= 0:
        return DetectionFrame(detections=(), timestamp=timestamp)

    results: List[Detection] = []
    for idx, pred in enumerate(predictions):
        bbox = normalize_bbox(pred.bbox, image_width, image_height)
        results.append(
            Detection(
                id=f"{timestamp}-{idx}",
                label=pred.label,
                score=float(pred.score or 0.0),
                bbox=bbox,
                distance=estimate_distance(bbox),
                position=classify_position(bbox),
            )
        )

    results.sort(key=_sort_key)
    return DetectionFrame(detections=tuple(results), timestamp=timestamp)
