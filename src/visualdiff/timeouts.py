"""
Deadlines and cooperative yielding for long-running comparisons.

Each Deadline is an independent cancellation token. `race` runs a piece of
work against any number of deadlines and the first one to finish wins, so an
outer budget and an inner budget can both bound the same pixel loop.
"""

import asyncio
import logging
from typing import Any, Awaitable, Optional

from .errors import ComparisonTimeoutError

logger = logging.getLogger(__name__)


class Deadline:
    """Wall-clock budget armed at start()"""

    def __init__(self, seconds: float, message: str):
        if seconds <= 0:
            raise ValueError(f"Deadline must be positive, got {seconds}")
        self.seconds = seconds
        self.message = message
        self._expires_at: Optional[float] = None

    def start(self) -> 'Deadline':
        if self._expires_at is None:
            self._expires_at = asyncio.get_running_loop().time() + self.seconds
        return self

    @property
    def started(self) -> bool:
        return self._expires_at is not None

    def remaining(self) -> float:
        if self._expires_at is None:
            return self.seconds
        return max(0.0, self._expires_at - asyncio.get_running_loop().time())

    def expired(self) -> bool:
        return self.started and self.remaining() <= 0.0

    async def wait(self) -> 'Deadline':
        """Sleep until the deadline fires"""
        self.start()
        await asyncio.sleep(self.remaining())
        return self

    def __repr__(self):
        return f"Deadline({self.seconds}s, {self.message!r})"


async def race(work: Awaitable[Any], *deadlines: Deadline) -> Any:
    """
    Run `work` against every deadline, first to complete wins.

    Deadlines that were not started yet are armed here. If a deadline fires
    before the work completes the work is cancelled and
    ComparisonTimeoutError carries that deadline's message. When several
    deadlines are already due, the one listed first wins.
    """
    work_task = asyncio.ensure_future(work)
    if not deadlines:
        return await work_task

    timer_tasks = [asyncio.ensure_future(deadline.wait()) for deadline in deadlines]
    try:
        done, _ = await asyncio.wait([work_task, *timer_tasks], return_when=asyncio.FIRST_COMPLETED)
        if work_task in done:
            return work_task.result()

        fired = next(deadline for deadline, task in zip(deadlines, timer_tasks) if task in done)
        logger.warning(f"{fired!r} fired before work completed")
        work_task.cancel()
        try:
            await work_task
        except asyncio.CancelledError:
            pass
        raise ComparisonTimeoutError(fired.message)
    finally:
        for task in timer_tasks:
            task.cancel()
        if not work_task.done():
            work_task.cancel()


async def cooperative_yield() -> None:
    """Suspend so the event loop can run timers and other tasks"""
    await asyncio.sleep(0)
