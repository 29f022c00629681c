from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, Set

from utils.logger import get_logger

_logger = get_logger(__name__)


class Debouncer:
    """
    Coalesces rapid pushes into one callback, fired once the value has been
    stable for `window` seconds.

    Every push bumps a generation counter and restarts the timer. A timer only
    fires if its generation is still the latest when it wakes up. Once a timer
    has fired its callback is no longer cancellable by later pushes, so a
    request already in flight runs to completion.
    """

    def __init__(self, window: float, callback: Callable[[Any], Awaitable[None]]):
        self.window = window
        self._callback = callback
        self._generation = 0
        self._timer: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def push(self, value: Any) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
        task = asyncio.get_running_loop().create_task(
            self._fire(self._generation, value)
        )
        self._timer = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def cancel(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _fire(self, generation: int, value: Any) -> None:
        await asyncio.sleep(self.window)
        if generation != self._generation:
            return
        self._timer = None
        _logger.debug(f"Debounce fired for {value!r}")
        await self._callback(value)

    async def wait(self) -> None:
        """Wait until no timer is pending and every fired callback finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
