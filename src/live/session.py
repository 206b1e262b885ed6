"""
Live (webcam) detection session.

A timer fires every interval; each firing starts one tick (read a frame,
identify it, publish the batch, offer confident records to the logging
sink). Ticks never overlap: a firing that arrives while the previous tick is
still running is dropped, not queued.

Each start/stop bumps a generation counter. A tick that was in flight when
the session stopped or restarted is allowed to finish but its batch is
discarded because its generation no longer matches.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import replace
from typing import Callable, Optional, Set

from aggregation.cooldown import CooldownState
from aggregation.normalizer import now_ms
from aggregation.presentation import derive_view
from capture.base import CaptureDeviceError, CaptureSource
from models.batch import AggregationBatch, DetectionMode, ResultsView
from models.config import LiveConfig
from pipeline.engine import IdentificationPipeline, STRATEGY_DETECT
from sinks.sheet_logger import DetectionLog, SheetLogger, SOURCE_WEBCAM

THRESHOLD_PRESETS = {
    "sensitive": 0.5,
    "balanced": 0.7,
    "strict": 0.85,
}


class LiveSession:
    def __init__(
        self,
        pipeline: IdentificationPipeline,
        source_factory: Callable[[], CaptureSource],
        config: Optional[LiveConfig] = None,
        sheet_logger: Optional[SheetLogger] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.pipeline = pipeline
        self.config = config or LiveConfig()
        self.sheet_logger = sheet_logger
        self._source_factory = source_factory
        self._clock = clock

        self.cooldown = CooldownState(self.config.cooldown_ms)
        self.threshold = self.clamp_threshold(self.config.confidence_threshold)
        self.generation = 0
        self.active = False
        self.dropped_ticks = 0
        self.last_error: Optional[str] = None

        self._batch = AggregationBatch.empty()
        self._source: Optional[CaptureSource] = None
        self._source_lock = threading.Lock()
        self._timer_task: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None
        self._log_tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Threshold
    # ------------------------------------------------------------------

    def clamp_threshold(self, value: float) -> float:
        return min(max(float(value), self.config.min_threshold), self.config.max_threshold)

    def set_threshold(self, value: float) -> float:
        self.threshold = self.clamp_threshold(value)
        logging.info(f"Live confidence threshold set to {self.threshold:.2f}")
        return self.threshold

    def apply_preset(self, name: str) -> float:
        if name not in THRESHOLD_PRESETS:
            raise ValueError(f"Unknown threshold preset: {name}")
        return self.set_threshold(THRESHOLD_PRESETS[name])

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """
        Acquire the camera and start the tick timer.

        Raises:
            CaptureDeviceError: If the camera cannot be opened. Nothing stays acquired.
        """
        if self.active:
            return
        self._reset()
        source = self._source_factory()
        try:
            await asyncio.to_thread(source.open)
        except CaptureDeviceError as e:
            await asyncio.to_thread(source.close)
            self.last_error = e.user_message
            logging.error(f"Live session could not start: {e}")
            raise
        except Exception:
            await asyncio.to_thread(source.close)
            raise

        self._source = source
        self.active = True
        self._timer_task = asyncio.create_task(self._run_timer())
        logging.info(f"Live session started (generation={self.generation}, threshold={self.threshold:.2f})")

    async def stop(self) -> None:
        """Stop the timer, drop all session state and release the camera."""
        was_active = self.active
        self.active = False
        if self._timer_task is not None:
            self._timer_task.cancel()
            try:
                await self._timer_task
            except asyncio.CancelledError:
                pass
            self._timer_task = None

        self._reset()
        await asyncio.to_thread(self._release_source)
        if was_active:
            logging.info("Live session stopped")

    async def close(self) -> None:
        await self.stop()
        if self._log_tasks:
            await asyncio.gather(*self._log_tasks, return_exceptions=True)

    def _reset(self) -> None:
        self.generation += 1
        self.cooldown.reset()
        self._batch = AggregationBatch.empty()
        self.dropped_ticks = 0
        self.last_error = None

    def _release_source(self) -> None:
        with self._source_lock:
            source, self._source = self._source, None
            if source is not None:
                source.close()

    def _read_frame(self):
        with self._source_lock:
            if self._source is None:
                return None
            return self._source.read()

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    async def _run_timer(self) -> None:
        interval = self.config.interval_ms / 1000.0
        while True:
            await asyncio.sleep(interval)
            self.schedule_tick()

    @property
    def pending_tick(self) -> Optional[asyncio.Task]:
        return self._tick_task

    def schedule_tick(self) -> bool:
        """
        Start a tick unless one is still running. Returns False when dropped.

        A tick left over from before a stop/start keeps the slot until it
        finishes, so at most one inference is ever in flight.
        """
        if not self.active:
            return False
        if self._tick_task is not None and not self._tick_task.done():
            self.dropped_ticks += 1
            logging.debug(f"Tick dropped, previous inference still running ({self.dropped_ticks} dropped)")
            return False
        self._tick_task = asyncio.create_task(self._tick(self.generation))
        return True

    async def _tick(self, generation: int) -> None:
        try:
            frame = await asyncio.to_thread(self._read_frame)
            if frame is None:
                return
            batch = await self.pipeline.identify(
                frame, self.threshold, strategy=STRATEGY_DETECT, generation=generation
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # One failed tick aborts only itself; cooldown and session state survive.
            if generation == self.generation:
                self.last_error = str(e)
            logging.error(f"Live prediction error: {e}")
            return

        if generation != self.generation:
            logging.debug(f"Discarding stale batch (generation {generation} != {self.generation})")
            return

        self._batch = batch
        self.last_error = None
        self._offer_to_sink(batch)

    def _offer_to_sink(self, batch: AggregationBatch) -> None:
        if self.sheet_logger is None:
            return
        now = self._clock()
        for rec in batch.records:
            if rec.confidence <= self.pipeline.config.log_min_confidence:
                continue
            if not self.cooldown.try_acquire(rec.label, now):
                continue
            entry = DetectionLog(part=rec.label, confidence=rec.confidence, source=SOURCE_WEBCAM)
            task = asyncio.create_task(asyncio.to_thread(self.sheet_logger.log, entry))
            self._log_tasks.add(task)
            task.add_done_callback(self._log_done)

    def _log_done(self, task: asyncio.Task) -> None:
        self._log_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logging.error(f"Error logging webcam detection: {task.exception()}")

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    @property
    def batch(self) -> AggregationBatch:
        return self._batch

    def view(self) -> ResultsView:
        batch = self._batch
        shown = replace(
            batch,
            is_irrelevant=batch.is_irrelevant and self.active,
            is_processing=self.active and not batch.records and not batch.is_irrelevant,
        )
        return derive_view(shown, DetectionMode.WEBCAM, max_records=self.config.max_display)
