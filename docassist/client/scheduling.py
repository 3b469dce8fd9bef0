"""Cancellable fixed-interval task used for health retries and job polling."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ScheduledTask:
    """Runs a coroutine callback on a fixed interval until told to stop.

    The callback returns True to keep running and False to stop. Once
    ``cancel()`` returns, the callback is never invoked again.

    Args:
        callback: Coroutine function invoked on each tick.
        interval: Seconds between the end of one invocation and the next.
        sleep: Sleep function, injectable for tests.
        immediate: Invoke the callback once before the first sleep.
        name: Task name for logging.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[bool]],
        interval: float,
        *,
        sleep: Sleep = asyncio.sleep,
        immediate: bool = False,
        name: str = "scheduled-task",
    ) -> None:
        self._callback = callback
        self._interval = interval
        self._sleep = sleep
        self._immediate = immediate
        self._name = name
        self._cancelled = False
        self._task: asyncio.Task[None] | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done() and not self._cancelled

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> "ScheduledTask":
        """Schedule the loop on the running event loop and return self."""
        if self._task is not None:
            raise RuntimeError(f"{self._name} already started")
        self._task = asyncio.create_task(self._run(), name=self._name)
        return self

    def cancel(self) -> None:
        """Stop the loop; no further callback invocation will happen."""
        self._cancelled = True
        if self._task is not None and not self._task.done():
            if self._task is not asyncio.current_task():
                self._task.cancel()
        logger.debug(f"{self._name} cancelled")

    async def wait(self) -> None:
        """Wait for the loop to finish, whether stopped or cancelled."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise

    async def _run(self) -> None:
        if not self._immediate:
            await self._sleep(self._interval)
        while not self._cancelled:
            keep_going = await self._callback()
            if not keep_going or self._cancelled:
                break
            await self._sleep(self._interval)
        logger.debug(f"{self._name} stopped")
