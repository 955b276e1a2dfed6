"""
Assistant runtime: wires the detection loop, speech and voice commands.

Everything that touches shared state (publishing frames, speaking, answering
commands) runs on the asyncio event loop thread. Transcripts from the
recognizer thread and calls from the web server thread are marshalled onto
the loop before they run, so two speak() calls never race.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional

from commands.interpreter import VoiceCommandHandler
from models.announcement import AnnouncementEvent
from models.detection import DetectionFrame
from models.history import StoredDetectionEvent
from pipeline.engine import PipelineEngine, SchedulerState
from speech.output import SpeechOutput
from speech.recognition import VoiceEvents, VoiceListener

PERSON_LABEL = "person"


class Assistant:
    """
    Holds the application's components and exposes the user-facing controls
    (detection on/off, listening on/off, ask a question).
    """

    def __init__(
        self,
        engine: PipelineEngine,
        speech: SpeechOutput,
        listener: VoiceListener,
        history: Any,
    ):
        self.engine = engine
        self.speech = speech
        self.listener = listener
        self.history_store = history
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._person_alerts: List[Callable[[DetectionFrame], None]] = []
        self._commands = VoiceCommandHandler(
            frame_provider=lambda: self.engine.detection_state.current,
            speak=self.speech.speak,
        )

        self.engine.add_announcement_listener(self._on_announcement)
        self.engine.detection_state.subscribe(self._on_frame)
        self.listener.set_events(
            VoiceEvents(
                on_start=lambda: logging.debug("Voice listener: start"),
                on_end=lambda: logging.debug("Voice listener: end"),
                on_result=self._on_transcript,
            )
        )

    def attach_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Remember the event loop that owns this assistant."""
        self._loop = loop

    @property
    def loop(self) -> Optional[asyncio.AbstractEventLoop]:
        return self._loop

    @property
    def is_ready(self) -> bool:
        return self.engine.is_ready

    @property
    def is_detecting(self) -> bool:
        return self.engine.state is SchedulerState.RUNNING

    @property
    def is_listening(self) -> bool:
        return self.listener.is_listening

    @property
    def current_frame(self) -> DetectionFrame:
        return self.engine.detection_state.current

    def history(self) -> List[StoredDetectionEvent]:
        return self.history_store.read_all()

    def add_person_alert(self, callback: Callable[[DetectionFrame], None]) -> None:
        """Call callback for each published frame containing a person while detecting."""
        self._person_alerts.append(callback)

    # Detection controls

    def start_detection(self) -> bool:
        return self.engine.start()

    def stop_detection(self) -> None:
        self.engine.stop()

    def toggle_detection(self) -> bool:
        """Flip detection on/off; returns the new running state."""
        if self.is_detecting:
            self.stop_detection()
        else:
            self.start_detection()
        return self.is_detecting

    # Voice controls

    def start_listening(self) -> bool:
        return self.listener.start_listening()

    def stop_listening(self) -> bool:
        return self.listener.stop_listening()

    def toggle_listening(self) -> bool:
        if self.is_listening:
            self.stop_listening()
        else:
            self.start_listening()
        return self.is_listening

    def handle_command(self, transcript: Optional[str]) -> Optional[str]:
        """Answer transcript against the current frame and speak the answer."""
        return self._commands.handle(transcript)

    # Cross-thread helpers

    def call_soon(self, fn: Callable, *args) -> None:
        """Schedule fn on the owning loop; runs inline when no loop is attached."""
        if self._loop is None or self._loop.is_closed():
            fn(*args)
            return
        self._loop.call_soon_threadsafe(fn, *args)

    def call_in_loop(self, fn: Callable, *args, timeout: float = 5.0) -> Any:
        """Run fn on the owning loop from another thread and return its result."""
        if self._loop is None or not self._loop.is_running():
            return fn(*args)

        async def _call():
            return fn(*args)

        future = asyncio.run_coroutine_threadsafe(_call(), self._loop)
        return future.result(timeout=timeout)

    # Internal wiring

    def _on_announcement(self, event: AnnouncementEvent) -> None:
        self.speech.speak_objects(event.frame)

    def _on_transcript(self, transcript: str) -> None:
        self.call_soon(self.handle_command, transcript)

    def _on_frame(self, frame: DetectionFrame) -> None:
        if not self.is_detecting or PERSON_LABEL not in frame.labels:
            return
        for callback in list(self._person_alerts):
            try:
                callback(frame)
            except Exception as e:
                logging.warning(f"Person alert callback error: {e}")

    async def aclose(self) -> None:
        """Stop detection and listening and release the capture device."""
        await self.engine.aclose()
        self.listener.close()
        try:
            self.engine.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")
