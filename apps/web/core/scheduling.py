"""
Cancellable timers on top of asyncio tasks.

Both primitives take the sleep coroutine as a dependency so callers (and
tests) can substitute their own clock.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class PeriodicTask:
    """
    Run an async callback every ``interval`` seconds until cancelled.

    Ticks follow a fixed cadence: each callback runs in its own task, so a
    slow callback does not push back the next tick. A tick that comes due
    while the previous callback is still running is skipped.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[object]],
        interval: float,
        *,
        sleep: Sleep = asyncio.sleep,
        name: str = "periodic-task",
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.name = name
        self.skipped = 0
        self._callback = callback
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None
        self._running: asyncio.Task[None] | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """(Re)arm the task. Any previous run is cancelled first."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name=self.name)

    def cancel(self) -> None:
        """Stop ticking and abandon a callback that is still running."""
        for task in (self._task, self._running):
            if task is not None and not task.done():
                task.cancel()
        self._task = None
        self._running = None

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            await self._sleep(self.interval)
            if self._running is not None and not self._running.done():
                self.skipped += 1
                logger.debug("%s still running; skipping tick", self.name)
                continue
            self._running = loop.create_task(self._invoke(), name=f"{self.name}-callback")

    async def _invoke(self) -> None:
        try:
            await self._callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("%s callback failed", self.name)


class DelayedCall:
    """Call a plain callback once after ``delay`` seconds unless cancelled."""

    def __init__(
        self,
        callback: Callable[[], object],
        delay: float,
        *,
        sleep: Sleep = asyncio.sleep,
        name: str = "delayed-call",
    ) -> None:
        self.delay = delay
        self.name = name
        self._callback = callback
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name=self.name)

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        await self._sleep(self.delay)
        # Detach first so the callback may cancel or re-arm this timer.
        self._task = None
        try:
            self._callback()
        except Exception:
            logger.exception("%s callback failed", self.name)
