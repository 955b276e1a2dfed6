"""
Speech recognition listener.

Wraps speech_recognition's background listener and reports three kinds of
events: start, end and result(transcript). Callbacks for result may fire on
the recognizer's background thread; callers that need a particular thread
must marshal themselves.

Start and stop failures are logged and swallowed; the listening flag only
changes when the underlying call succeeds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional


@dataclass
class VoiceEvents:
    on_start: Optional[Callable[[], None]] = None
    on_end: Optional[Callable[[], None]] = None
    on_result: Optional[Callable[[str], None]] = None


def _default_recognizer() -> Any:
    import speech_recognition as sr

    return sr.Recognizer()


def _default_microphone() -> Any:
    import speech_recognition as sr

    return sr.Microphone()


class VoiceListener:
    """
    Start/stop controllable transcript source.

    Each start_listening() registers one background listener; stop_listening()
    calls its stopper and drops it, so repeated cycles never leak listeners.
    """

    def __init__(
        self,
        events: Optional[VoiceEvents] = None,
        locale: str = "en-US",
        energy_threshold: int = 3000,
        pause_threshold: float = 0.8,
        phrase_time_limit: Optional[float] = 5.0,
        recognizer_factory: Callable[[], Any] = _default_recognizer,
        microphone_factory: Callable[[], Any] = _default_microphone,
    ):
        self._events = events or VoiceEvents()
        self._locale = locale
        self._energy_threshold = energy_threshold
        self._pause_threshold = pause_threshold
        self._phrase_time_limit = phrase_time_limit
        self._recognizer_factory = recognizer_factory
        self._microphone_factory = microphone_factory
        self._recognizer: Any = None
        self._stopper: Optional[Callable[..., None]] = None

    @property
    def is_listening(self) -> bool:
        return self._stopper is not None

    def set_events(self, events: VoiceEvents) -> None:
        self._events = events

    def _emit(self, callback: Optional[Callable], *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logging.warning(f"Voice event callback error: {e}")

    def _on_audio(self, recognizer: Any, audio: Any) -> None:
        try:
            transcript = recognizer.recognize_google(audio, language=self._locale)
        except Exception as e:
            # UnknownValueError (nothing intelligible) lands here too.
            logging.debug(f"Speech not recognized: {e}")
            return
        if not transcript:
            return
        logging.info(f"Heard: {transcript}")
        self._emit(self._events.on_result, transcript)

    def start_listening(self) -> bool:
        if self._stopper is not None:
            return True
        try:
            if self._recognizer is None:
                self._recognizer = self._recognizer_factory()
                self._recognizer.energy_threshold = self._energy_threshold
                self._recognizer.dynamic_energy_threshold = True
                self._recognizer.pause_threshold = self._pause_threshold
            microphone = self._microphone_factory()
            self._stopper = self._recognizer.listen_in_background(
                microphone,
                self._on_audio,
                phrase_time_limit=self._phrase_time_limit,
            )
        except Exception as e:
            logging.warning(f"Failed to start listening: {e}")
            self._stopper = None
            return False

        logging.info("Voice listening started")
        self._emit(self._events.on_start)
        return True

    def stop_listening(self) -> bool:
        if self._stopper is None:
            return True
        stopper = self._stopper
        try:
            stopper(wait_for_stop=False)
        except Exception as e:
            logging.warning(f"Failed to stop listening: {e}")
            return False
        self._stopper = None
        logging.info("Voice listening stopped")
        self._emit(self._events.on_end)
        return True

    def close(self) -> None:
        """Stop listening and forget all callbacks."""
        self.stop_listening()
        self._stopper = None
        self._events = VoiceEvents()
