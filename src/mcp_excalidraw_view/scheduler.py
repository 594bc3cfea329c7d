"""
Timer and frame scheduling on the asyncio event loop.

The animator and the debounced writers only depend on the small
``Scheduler`` protocol, so tests can drive them with a manual clock.
"""

import asyncio
from typing import Any, Callable, Optional, Protocol

# One display refresh
FRAME_INTERVAL = 1 / 60


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], Any]) -> Handle: ...

    def request_frame(self, callback: Callable[[], Any]) -> Handle: ...


class AsyncioScheduler:
    """Scheduler backed by ``loop.call_later``."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def request_frame(self, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        return self.loop.call_later(FRAME_INTERVAL, callback)


class Debouncer:
    """Coalesces calls: ``callback`` runs once, ``delay`` after the last trigger."""

    def __init__(self, scheduler: Scheduler, delay: float, callback: Callable[[], Any]):
        self.scheduler = scheduler
        self.delay = delay
        self.callback = callback
        self._handle: Optional[Handle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        self.cancel()
        self._handle = self.scheduler.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self.callback()
