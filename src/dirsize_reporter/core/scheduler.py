"""Fixed-interval driver for scan cycles.

The scheduler behaves like a ticker with a buffer of one: ticks fire on a
fixed grid starting one interval after ``run()`` begins, each tick runs one
cycle to completion, and cycles never overlap. When a cycle overruns the
interval, the ticks it missed collapse into a single pending tick that fires
as soon as the cycle returns.

State transitions:
    IDLE -> RUNNING: ``run()`` called
    RUNNING -> SHUTTING_DOWN: ``request_shutdown()`` called
    SHUTTING_DOWN -> STOPPED: in-flight cycle (if any) finished
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from enum import Enum

from dirsize_reporter.utils.formatting import format_interval

__all__ = ["Scheduler", "SchedulerState"]

type CycleRunner = Callable[[], Awaitable[object]]


class SchedulerState(Enum):
    """Lifecycle states of the scheduler."""

    IDLE = "idle"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class Scheduler:
    """Run a cycle on a fixed interval until shutdown is requested."""

    def __init__(
        self,
        run_cycle: CycleRunner,
        interval: float,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        if interval <= 0:
            msg = "interval must be greater than zero"
            raise ValueError(msg)

        self.run_cycle: CycleRunner = run_cycle
        self.interval: float = float(interval)
        self._logger: logging.Logger = logger or logging.getLogger(__name__)
        self._state: SchedulerState = SchedulerState.IDLE
        self._shutdown_event: asyncio.Event = asyncio.Event()
        self._cycles_completed: int = 0
        self._cycle_in_flight: bool = False

    @property
    def state(self) -> SchedulerState:
        """Return the current scheduler state."""
        return self._state

    @property
    def cycles_completed(self) -> int:
        """Return the number of cycles that ran to completion."""
        return self._cycles_completed

    @property
    def cycle_in_flight(self) -> bool:
        """Return True while a cycle is executing."""
        return self._cycle_in_flight

    def request_shutdown(self) -> None:
        """Stop accepting ticks; an in-flight cycle is allowed to finish."""
        if self._shutdown_event.is_set():
            return
        self._logger.info("Shutdown requested for scheduler", extra={"cycle_in_flight": self._cycle_in_flight})
        if self._state is SchedulerState.RUNNING:
            self._state = SchedulerState.SHUTTING_DOWN
        self._shutdown_event.set()

    async def run(self) -> None:
        """Tick until shutdown is requested, then enter STOPPED."""
        if self._state is not SchedulerState.IDLE:
            msg = f"Scheduler cannot start from state {self._state.value}"
            raise RuntimeError(msg)

        if not self._shutdown_event.is_set():
            self._state = SchedulerState.RUNNING
        self._logger.info("Starting metrics ticker", extra={"interval": format_interval(self.interval)})

        loop = asyncio.get_running_loop()
        next_fire = loop.time() + self.interval
        try:
            while not self._shutdown_event.is_set():
                if await self._wait_until(next_fire):
                    break
                await self._tick()
                next_fire = self._next_fire_after(next_fire, loop.time())
        finally:
            self._state = SchedulerState.STOPPED
            self._logger.info("Scheduler stopped", extra={"cycles_completed": self._cycles_completed})

    async def _wait_until(self, deadline: float) -> bool:
        """Sleep until ``deadline``; return True if shutdown arrived first."""
        delay = deadline - asyncio.get_running_loop().time()
        if delay <= 0:
            return self._shutdown_event.is_set()
        try:
            async with asyncio.timeout(delay):
                _ = await self._shutdown_event.wait()
        except TimeoutError:
            return self._shutdown_event.is_set()
        return True

    def _next_fire_after(self, previous: float, now: float) -> float:
        candidate = previous + self.interval
        if candidate > now:
            return candidate
        # Missed ticks collapse into one pending tick on the original grid
        missed = math.floor((now - candidate) / self.interval)
        self._logger.warning(
            "Scan cycle overran the reporting interval",
            extra={"missed_ticks": missed + 1, "interval": format_interval(self.interval)},
        )
        return candidate + missed * self.interval

    async def _tick(self) -> None:
        self._cycle_in_flight = True
        try:
            _ = await self.run_cycle()
        except asyncio.CancelledError:
            raise
        except Exception:
            self._logger.exception("Scan cycle failed unexpectedly")
        else:
            self._cycles_completed += 1
        finally:
            self._cycle_in_flight = False
