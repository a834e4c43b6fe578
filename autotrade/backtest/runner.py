"""Fixed-cadence replay driver.

Runs ``ReplaySimulation.tick()`` on an asyncio task, one tick per interval.
Ticks are single-flight: a tick runs to completion under a lock before the
next one can start, and starting or stopping always cancels the pending
task first.  Pausing keeps the simulation untouched, so a later ``start()``
resumes at the same queue offset with the same open position.
"""

import asyncio
import logging
from typing import Callable, Optional

from autotrade.backtest.simulation import ReplaySimulation, TickResult

logger = logging.getLogger("autotrade.runner")


class ReplayRunner:
    """Drives a simulation on a timer.

    Args:
        simulation: The replay to advance.
        interval_ms: Delay between ticks in milliseconds.
        on_tick: Optional callback receiving every ``TickResult``.
    """

    def __init__(
        self,
        simulation: ReplaySimulation,
        interval_ms: int = 40,
        on_tick: Optional[Callable[[TickResult], None]] = None,
    ) -> None:
        if interval_ms < 0:
            raise ValueError(f"interval_ms must be non-negative, got {interval_ms}")
        self._sim = simulation
        self._interval = interval_ms / 1000.0
        self._on_tick = on_tick
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    @property
    def simulation(self) -> ReplaySimulation:
        return self._sim

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self) -> None:
        """Begin (or resume) ticking.  Must be called inside a running loop."""
        self._cancel_pending()
        if self._sim.is_finished:
            logger.info("Replay already finished — nothing to start.")
            return
        logger.info(
            "Replay started at tick %d (%d bars remaining).",
            self._sim.context.tick_count, self._sim.remaining,
        )
        self._task = asyncio.create_task(self._loop())

    def stop(self) -> None:
        """Pause after the current tick.  Safe to call repeatedly."""
        if self.is_running:
            logger.info("Replay paused at tick %d.", self._sim.context.tick_count)
        self._cancel_pending()

    async def wait(self) -> None:
        """Wait for the current run to finish or be stopped.

        Re-raises any error a tick raised.
        """
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def run(self) -> None:
        """Start and wait until the hidden queue is exhausted or stopped."""
        self.start()
        await self.wait()

    async def step(self) -> Optional[TickResult]:
        """Run exactly one tick under the single-flight lock."""
        async with self._lock:
            return self._sim.tick()

    # ── Internals ────────────────────────────────────────────────────────

    def _cancel_pending(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _loop(self) -> None:
        while True:
            try:
                result = await self.step()
            except Exception:
                logger.exception(
                    "Tick %d failed — stopping replay.",
                    self._sim.context.tick_count,
                )
                raise

            if result is None:
                logger.info(
                    "Replay finished after %d ticks, balance %.2f.",
                    self._sim.context.tick_count, self._sim.context.balance,
                )
                return

            if self._on_tick is not None:
                self._on_tick(result)
            await asyncio.sleep(self._interval)
