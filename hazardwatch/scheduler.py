"""Refresh Scheduler.

Runs refresh cycles on a fixed period and on demand, never more than
one at a time. A trigger that arrives while a cycle is in flight is
remembered once and served by a single follow-up cycle.

Everything here runs on one asyncio event loop; the in-flight check in
trigger() is synchronous, so no lock is needed.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable


logger = logging.getLogger(__name__)


DEFAULT_INTERVAL_SECONDS = 300


class SchedulerState(str, Enum):
    """Scheduler states. SUCCESS and FAILED are transient before IDLE."""
    IDLE = "idle"
    FETCHING = "fetching"
    SUCCESS = "success"
    FAILED = "failed"


class RefreshScheduler:
    """Drives non-overlapping refresh cycles.

    Args:
        run_cycle: Coroutine function performing one fetch-and-aggregate
        on_success: Called with the cycle's result; an exception raised
            here counts as a failed cycle
        on_failure: Called with the exception of a failed cycle
        interval_seconds: Period of the refresh timer
    """

    def __init__(
        self,
        run_cycle: Callable[[], Awaitable[Any]],
        on_success: Callable[[Any], None],
        on_failure: Callable[[Exception], None],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        self._run_cycle = run_cycle
        self._on_success = on_success
        self._on_failure = on_failure
        self.interval_seconds = interval_seconds

        self.state = SchedulerState.IDLE
        self.last_outcome: SchedulerState | None = None
        self.last_error: Exception | None = None
        self.cycles_started = 0

        self._pending = False
        self._closed = False
        self._timer_task: asyncio.Task | None = None
        self._cycle_task: asyncio.Task | None = None
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def running(self) -> bool:
        """True while the periodic timer is active."""
        return self._timer_task is not None and not self._closed

    @property
    def pending(self) -> bool:
        """True if a follow-up cycle has been requested."""
        return self._pending

    def start(self) -> None:
        """Start the periodic timer. The first cycle runs immediately.

        Must be called from within the running event loop.
        """
        if self._closed:
            raise RuntimeError("Scheduler has been shut down")
        if self._timer_task is not None:
            return

        logger.info("Starting refresh timer (every %ss)", self.interval_seconds)
        self._timer_task = asyncio.get_running_loop().create_task(self._tick())

    async def _tick(self) -> None:
        while True:
            self.trigger()
            await asyncio.sleep(self.interval_seconds)

    def trigger(self) -> bool:
        """Request a cycle.

        Returns:
            True if a cycle was started, False if the request was
            coalesced into the pending follow-up (or the scheduler is shut down)
        """
        if self._closed:
            return False

        if self.state is SchedulerState.FETCHING:
            if not self._pending:
                logger.debug("Cycle in flight, queueing one follow-up")
            self._pending = True
            return False

        self._begin()
        return True

    def _begin(self) -> None:
        self.state = SchedulerState.FETCHING
        self.cycles_started += 1
        self._idle.clear()
        self._cycle_task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        try:
            result = await self._run_cycle()
            if self._closed:
                return
            self._on_success(result)
        except Exception as e:
            if self._closed:
                return
            self.state = SchedulerState.FAILED
            self.last_outcome = SchedulerState.FAILED
            self.last_error = e
            logger.warning("Refresh cycle failed: %s", e)
            self._on_failure(e)
        else:
            if self._closed:
                return
            self.state = SchedulerState.SUCCESS
            self.last_outcome = SchedulerState.SUCCESS
            self.last_error = None
        finally:
            if not self._closed:
                self._finish()

    def _finish(self) -> None:
        self.state = SchedulerState.IDLE
        self._cycle_task = None

        if self._pending:
            self._pending = False
            self._begin()
        else:
            self._idle.set()

    async def wait_idle(self) -> None:
        """Wait until no cycle is in flight or pending."""
        await self._idle.wait()

    async def shutdown(self) -> None:
        """Stop the timer and discard any in-flight cycle."""
        if self._closed:
            return

        self._closed = True
        self._pending = False

        tasks = [t for t in (self._timer_task, self._cycle_task) if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self._timer_task = None
        self._cycle_task = None
        self.state = SchedulerState.IDLE
        self._idle.set()

        logger.info("Refresh scheduler stopped")
