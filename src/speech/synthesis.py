"""
Speech synthesis backend.

pyttsx3's runAndWait() blocks until the utterance is finished, so utterances
are queued and spoken from a daemon worker thread. say() returns immediately.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Optional, Protocol


class SpeechSynthesizer(Protocol):
    def say(self, text: str, locale: str = "en-US") -> None:
        ...


def _voice_matches(voice: Any, locale: str) -> bool:
    wanted = locale.lower().replace("-", "_")
    short = wanted.split("_")[0]
    for lang in getattr(voice, "languages", None) or []:
        if isinstance(lang, bytes):
            lang = lang.decode("utf-8", errors="ignore")
        lang = str(lang).lower().lstrip("\x05").replace("-", "_")
        if lang == wanted or lang.startswith(short):
            return True
    return wanted in str(getattr(voice, "id", "")).lower().replace("-", "_")


class Pyttsx3Synthesizer:
    """Fire-and-forget text-to-speech on top of pyttsx3."""

    def __init__(self, rate: int = 170, volume: float = 1.0, engine: Any = None):
        self._rate = rate
        self._volume = volume
        self._engine = engine
        self._locale: Optional[str] = None
        self._queue: "queue.Queue[Optional[tuple[str, str]]]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None

    def _init_engine(self) -> Any:
        if self._engine is None:
            import pyttsx3

            self._engine = pyttsx3.init()
        self._engine.setProperty("rate", self._rate)
        self._engine.setProperty("volume", self._volume)
        return self._engine

    def _select_voice(self, engine: Any, locale: str) -> None:
        if locale == self._locale:
            return
        self._locale = locale
        try:
            for voice in engine.getProperty("voices") or []:
                if _voice_matches(voice, locale):
                    engine.setProperty("voice", voice.id)
                    return
        except Exception as e:
            logging.debug(f"Voice selection for {locale} failed: {e}")

    def _worker(self) -> None:
        try:
            engine = self._init_engine()
        except Exception as e:
            logging.error(f"Speech engine initialization failed: {e}")
            return

        while True:
            item = self._queue.get()
            if item is None:
                break
            text, locale = item
            try:
                self._select_voice(engine, locale)
                engine.say(text)
                engine.runAndWait()
            except Exception as e:
                logging.warning(f"Speech synthesis error: {e}")

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._worker, name="tts-worker", daemon=True)
        self._thread.start()

    def say(self, text: str, locale: str = "en-US") -> None:
        if self._thread is None:
            self.start()
        self._queue.put((text, locale))

    def close(self, timeout: float = 2.0) -> None:
        self._queue.put(None)
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
