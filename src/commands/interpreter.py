"""
Voice command interpreter.

Maps a free-text transcript and the latest detection frame to a spoken
answer. Intents are matched by substring, first match wins:

- "what do you see"          -> up to five objects with position and distance
- "how many people"          -> person count
- "nearest" / "closest"      -> the nearest object
- anything else              -> help text
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional

from models.detection import Detection, DetectionFrame

MAX_LISTED_OBJECTS = 5
# Used only when comparing; never spoken.
MISSING_DISTANCE_COMPARE = 999.0

NOTHING_SEEN = "I do not see anything."
NO_OBJECTS = "No objects detected."
HELP_TEXT = "I can answer: what do you see, how many people, nearest object."


def format_tenths(value: float) -> str:
    """One decimal place, exact halves rounded up (2.25 -> "2.3")."""
    return str(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def normalize_transcript(transcript: Optional[str]) -> str:
    return (transcript or "").lower().strip()


def _position_text(detection: Detection) -> str:
    return detection.position.value if detection.position else "center"


def _describe_seen(frame: DetectionFrame) -> str:
    if not frame:
        return NOTHING_SEEN
    parts = []
    for d in frame.detections[:MAX_LISTED_OBJECTS]:
        if d.distance:
            parts.append(f"{d.label} {_position_text(d)} {format_tenths(d.distance)} meters")
        else:
            parts.append(f"{d.label} {_position_text(d)}")
    return ", ".join(parts)


def _count_people(frame: DetectionFrame) -> str:
    count = frame.count("person")
    return f"{count} {'person' if count == 1 else 'people'}"


def _describe_nearest(frame: DetectionFrame) -> str:
    nearest: Optional[Detection] = None
    for d in frame:
        if nearest is None:
            nearest = d
            continue
        current = nearest.distance if nearest.distance is not None else MISSING_DISTANCE_COMPARE
        candidate = d.distance if d.distance is not None else MISSING_DISTANCE_COMPARE
        if candidate < current:
            nearest = d

    if nearest is None:
        return NO_OBJECTS
    if nearest.distance:
        return f"{nearest.label} to your {_position_text(nearest)}, {format_tenths(nearest.distance)} meters"
    return f"{nearest.label} to your {_position_text(nearest)}"


def interpret(transcript: str, frame: DetectionFrame) -> str:
    """
    Return the spoken answer for transcript given the current frame.

    Never raises; unmatched or malformed input gets the help text.
    """
    text = normalize_transcript(transcript)
    if "what do you see" in text:
        return _describe_seen(frame)
    if "how many people" in text:
        return _count_people(frame)
    if "nearest" in text or "closest" in text:
        return _describe_nearest(frame)
    return HELP_TEXT


class VoiceCommandHandler:
    """
    Binds the interpreter to a frame provider and a speak function.

    Empty transcripts are ignored: nothing is interpreted or spoken.
    """

    def __init__(
        self,
        frame_provider: Callable[[], DetectionFrame],
        speak: Callable[[str], None],
    ):
        self._frame_provider = frame_provider
        self._speak = speak

    def handle(self, transcript: Optional[str]) -> Optional[str]:
        if not normalize_transcript(transcript):
            return None
        response = interpret(transcript, self._frame_provider())
        logging.info(f"Voice command '{transcript}' -> '{response}'")
        self._speak(response)
        return response
