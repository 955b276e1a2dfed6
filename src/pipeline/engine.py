"""
Detection loop engine for the sight assist system.

Runs the periodic capture -> inference -> post-process -> announce cycle on
an asyncio event loop. Blocking capability calls (camera read, model
inference, history I/O) run in worker threads so the loop stays responsive
for voice commands.

State machine:
    IDLE --start()--> RUNNING --stop()--> IDLE

Guarantees:
- At most one capture+inference cycle is in flight; ticks that arrive while
  a cycle is outstanding are skipped, not queued.
- A cycle that finishes after stop() is discarded: nothing is published,
  announced or persisted.
- stop() is idempotent and always releases the periodic timer.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from detection.postprocess import process
from models.announcement import AnnounceReason, AnnouncementEvent
from models.detection import DetectionFrame
from models.history import StoredDetectionEvent
from observation import ObservationSource
from pipeline.stages.announce import AnnouncementThrottler, DEFAULT_MIN_INTERVAL_MS
from runtime.state import DetectionState


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class PipelineConfig:
    """
    Configuration for the detection loop.

    Attributes:
        interval_ms: Period between cycle triggers.
        min_announce_interval_ms: Minimum gap between two announcements.
        stats_log_interval: Seconds between status log messages.
    """
    interval_ms: int = 700
    min_announce_interval_ms: int = DEFAULT_MIN_INTERVAL_MS
    stats_log_interval: float = 60.0


@dataclass
class PipelineStats:
    """Runtime statistics for one detection session."""
    cycles_started: int = 0
    cycles_completed: int = 0
    cycles_skipped: int = 0
    cycles_failed: int = 0
    cycles_discarded: int = 0
    announcements: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cycles_started": self.cycles_started,
            "cycles_completed": self.cycles_completed,
            "cycles_skipped": self.cycles_skipped,
            "cycles_failed": self.cycles_failed,
            "cycles_discarded": self.cycles_discarded,
            "announcements": self.announcements,
            "uptime_seconds": time.time() - self.start_time,
        }


class PipelineEngine:
    """
    Periodic detection scheduler.

    Example:
        engine = PipelineEngine(source, detector, history, PipelineConfig())
        engine.add_announcement_listener(lambda event: speech.speak_objects(event.frame))
        engine.start()      # must be called from the running event loop
        ...
        await engine.aclose()
    """

    def __init__(
        self,
        source: ObservationSource,
        detector: Any,
        history: Any,
        config: PipelineConfig,
        detection_state: Optional[DetectionState] = None,
        throttler: Optional[AnnouncementThrottler] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.source = source
        self.detector = detector
        self.history = history
        self.config = config
        self.detection_state = detection_state if detection_state is not None else DetectionState()
        self.throttler = throttler or AnnouncementThrottler(config.min_announce_interval_ms)
        self.stats = PipelineStats()
        self._clock = clock
        self._state = SchedulerState.IDLE
        self._session = 0
        self._timer_task: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self._announcement_listeners: List[Callable[[AnnouncementEvent], None]] = []
        self._state_listeners: List[Callable[[SchedulerState], None]] = []

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SchedulerState.RUNNING

    @property
    def is_ready(self) -> bool:
        """Whether the capture device and the model are both usable."""
        return bool(self.source.is_open and getattr(self.detector, "is_ready", False))

    @property
    def cycle_in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def add_announcement_listener(self, callback: Callable[[AnnouncementEvent], None]) -> None:
        self._announcement_listeners.append(callback)

    def add_state_listener(self, callback: Callable[[SchedulerState], None]) -> None:
        self._state_listeners.append(callback)

    def start(self) -> bool:
        """
        Enter RUNNING and schedule the periodic cycle.

        Returns False (and stays IDLE) when already running, when the camera
        or model is not ready, or when called outside a running event loop.
        """
        if self._state is SchedulerState.RUNNING:
            return False
        if not self.is_ready:
            logging.info("Detection not started: capture device or model not ready")
            return False
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logging.error("Detection start requires a running event loop")
            return False

        self._session += 1
        self.throttler.reset()
        self.stats = PipelineStats()
        self._timer_task = loop.create_task(self._run_timer(self._session))
        self._set_state(SchedulerState.RUNNING)
        logging.info(
            f"Detection started: source={self.source.source_id}, "
            f"interval={self.config.interval_ms}ms"
        )
        return True

    def stop(self) -> None:
        """Enter IDLE, cancel the timer and invalidate any in-flight cycle."""
        self._session += 1
        timer, self._timer_task = self._timer_task, None
        if timer is not None and not timer.done():
            timer.cancel()
        self.throttler.reset()

        if self._state is SchedulerState.RUNNING:
            self._set_state(SchedulerState.IDLE)
            logging.info(
                f"Detection stopped: completed={self.stats.cycles_completed}, "
                f"skipped={self.stats.cycles_skipped}, failed={self.stats.cycles_failed}, "
                f"announcements={self.stats.announcements}"
            )

    async def aclose(self) -> None:
        """
        Stop, then wait for the timer task and any in-flight cycle to finish.

        The in-flight cycle belongs to a stale session, so its result is
        discarded; waiting only guarantees no worker thread is still using
        the camera or the history store when the caller releases them.
        """
        timer = self._timer_task
        inflight = self._inflight
        self.stop()
        for task in (timer, inflight):
            if task is None:
                continue
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logging.debug(f"Task ended with error during shutdown: {e}")

    async def __aenter__(self) -> "PipelineEngine":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def run_cycle(self) -> Optional[DetectionFrame]:
        """
        Run one cycle immediately for the current session (RUNNING only).

        Returns None without capturing when another cycle is still in flight.
        """
        if self._state is not SchedulerState.RUNNING:
            return None
        if self.cycle_in_flight:
            self.stats.cycles_skipped += 1
            logging.debug("Previous cycle still running, skipping manual cycle")
            return None
        task = self._launch_cycle(self._session)
        try:
            return await task
        except Exception:
            # Already counted and logged by _on_cycle_done
            return None

    def _set_state(self, state: SchedulerState) -> None:
        self._state = state
        for callback in list(self._state_listeners):
            try:
                callback(state)
            except Exception as e:
                logging.warning(f"State listener error: {e}")

    def _is_current(self, session: int) -> bool:
        return session == self._session and self._state is SchedulerState.RUNNING

    async def _run_timer(self, session: int) -> None:
        interval = self.config.interval_ms / 1000.0
        while self._is_current(session):
            await asyncio.sleep(interval)
            if not self._is_current(session):
                break
            self._tick(session)
            self._log_stats_periodically()

    def _tick(self, session: int) -> None:
        if self.cycle_in_flight:
            self.stats.cycles_skipped += 1
            logging.debug("Previous cycle still running, skipping tick")
            return
        self._launch_cycle(session)

    def _launch_cycle(self, session: int) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._run_cycle(session))
        task.add_done_callback(self._on_cycle_done)
        self._inflight = task
        return task

    def _on_cycle_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.stats.cycles_failed += 1
            logging.error(f"Detection cycle crashed: {error!r}")

    async def _run_cycle(self, session: int) -> Optional[DetectionFrame]:
        self.stats.cycles_started += 1
        try:
            frame_data = await asyncio.to_thread(self.source.read)
            if frame_data is None:
                self.stats.cycles_failed += 1
                logging.debug("Frame acquisition returned nothing, cycle aborted")
                return None
            predictions = await asyncio.to_thread(self.detector.detect, frame_data.frame)
        except Exception as e:
            self.stats.cycles_failed += 1
            logging.warning(f"Detection cycle failed: {e}")
            return None

        if not self._is_current(session):
            self.stats.cycles_discarded += 1
            logging.debug("Discarding cycle result after stop")
            return None

        now = self._clock()
        frame = process(predictions, frame_data.width, frame_data.height, timestamp=now)
        self.detection_state.publish(frame)
        self.stats.cycles_completed += 1

        if self.throttler.should_announce(frame, now):
            self.stats.announcements += 1
            self._emit_announcement(AnnouncementEvent(frame=frame, reason=AnnounceReason.PERIODIC, timestamp=now))
            record = StoredDetectionEvent.create(now, frame.labels)
            await asyncio.to_thread(self.history.append, record)

        return frame

    def _emit_announcement(self, event: AnnouncementEvent) -> None:
        logging.info(f"Announcing: {event.frame.signature or '(nothing)'}")
        for callback in list(self._announcement_listeners):
            try:
                callback(event)
            except Exception as e:
                logging.warning(f"Announcement listener error: {e}")

    def _log_stats_periodically(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            logging.info(f"Detection stats: {self.stats.to_dict()}")
            self.stats.last_stats_log_time = now


def create_engine_from_config(
    config: Dict[str, Any],
    source: ObservationSource,
    detector: Any,
    history: Any,
    detection_state: Optional[DetectionState] = None,
) -> PipelineEngine:
    """
    Factory function to create a PipelineEngine from the application config dict.

    Args:
        config: Full application config dict.
        source: Capture device.
        detector: Inference backend.
        history: DetectionHistoryStore for announced frames.
        detection_state: Shared published-frame holder.
    """
    scheduler_cfg = config.get("scheduler", {}) or {}
    announce_cfg = config.get("announce", {}) or {}
    pipeline_config = PipelineConfig(
        interval_ms=int(scheduler_cfg.get("interval_ms", 700)),
        min_announce_interval_ms=int(announce_cfg.get("min_interval_ms", DEFAULT_MIN_INTERVAL_MS)),
    )
    return PipelineEngine(source, detector, history, pipeline_config, detection_state=detection_state)
