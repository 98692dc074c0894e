from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import Enum
from typing import Protocol

from stock_tracker.services.alert_processor import CycleReport

logger = logging.getLogger(__name__)


class CycleJob(Protocol):
    async def run_cycle(self) -> CycleReport | None: ...


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class AlertScheduler:
    """Runs the alert job on a fixed cadence, one cycle at a time.

    The first cycle starts as soon as the scheduler does (unless
    ``run_on_startup`` is off). When a cycle outlasts the interval the missed
    ticks are dropped with a warning instead of stacking up.
    """

    def __init__(self, job: CycleJob, interval_seconds: float = 300, run_on_startup: bool = True) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.job = job
        self.interval_seconds = interval_seconds
        self.run_on_startup = run_on_startup
        self._state = SchedulerState.IDLE
        self._task: asyncio.Task | None = None
        self.last_report: CycleReport | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_started(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> CycleReport | None:
        if self._state is SchedulerState.RUNNING:
            logger.warning("Alert cycle already in progress, skipping")
            return None

        self._state = SchedulerState.RUNNING
        try:
            report = await self.job.run_cycle()
        except Exception:
            logger.exception("Alert cycle crashed")
            return None
        finally:
            self._state = SchedulerState.IDLE

        if report is not None:
            self.last_report = report
        return report

    async def _loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        if not self.run_on_startup:
            next_tick += self.interval_seconds

        while True:
            delay = next_tick - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)

            await self.run_once()

            next_tick += self.interval_seconds
            overrun = loop.time() - next_tick
            if overrun >= 0:
                missed = int(overrun // self.interval_seconds) + 1
                logger.warning(
                    "Alert cycle overran its %gs interval, skipping %d tick(s)",
                    self.interval_seconds,
                    missed,
                )
                next_tick += missed * self.interval_seconds

    def start(self) -> None:
        if self.is_started:
            return
        logger.info("Alert scheduler started, interval %gs", self.interval_seconds)
        self._task = asyncio.create_task(self._loop(), name="alert-scheduler")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Alert scheduler stopped")
