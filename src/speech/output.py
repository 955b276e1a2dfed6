"""
Speech output adapter.

Every utterance goes through SpeechOutput so consecutive duplicates are
dropped in one place, whether they come from periodic announcements or from
answers to voice commands.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from models.detection import DetectionFrame
from .synthesis import SpeechSynthesizer

MAX_DESCRIBED_OBJECTS = 5
NOTHING_OF_INTEREST = "I see nothing of interest."


def _format_meters(distance: float) -> str:
    # Halves round up: 2.25 m is spoken as 2.3
    value = max(0.5, math.floor(distance * 10 + 0.5) / 10)
    return f"{value:g}"


def describe_objects(frame: DetectionFrame) -> str:
    """Render a frame as a proactive announcement."""
    if not frame:
        return NOTHING_OF_INTEREST
    phrases = []
    for d in frame.detections[:MAX_DESCRIBED_OBJECTS]:
        where = d.position.value if d.position else "center"
        if d.distance:
            phrases.append(f"{d.label} to your {where}, {_format_meters(d.distance)} meters")
        else:
            phrases.append(f"{d.label} to your {where}")
    return ", ".join(phrases)


class SpeechOutput:
    """
    Deduplicating front for a SpeechSynthesizer.

    Example:
        speech = SpeechOutput(Pyttsx3Synthesizer())
        speech.speak("chair center 1.2 meters")
        speech.speak("chair center 1.2 meters")  # ignored
    """

    def __init__(self, synthesizer: SpeechSynthesizer, locale: str = "en-US"):
        self._synthesizer = synthesizer
        self._locale = locale
        self._last_spoken: Optional[str] = None

    @property
    def last_spoken(self) -> Optional[str]:
        return self._last_spoken

    def speak(self, text: str) -> bool:
        """Speak text unless it is empty or repeats the previous utterance."""
        if not text or text == self._last_spoken:
            return False
        self._last_spoken = text
        try:
            self._synthesizer.say(text, locale=self._locale)
        except Exception as e:
            logging.warning(f"Speech synthesis failed: {e}")
            return False
        logging.debug(f"Spoke: {text}")
        return True

    def speak_objects(self, frame: DetectionFrame) -> bool:
        return self.speak(describe_objects(frame))

    def reset(self) -> None:
        self._last_spoken = None

    def close(self) -> None:
        close = getattr(self._synthesizer, "close", None)
        if close is not None:
            close()
