"""
Refresh schedulers for the live video preview.

schedule(callback) runs the callback once, on the next display refresh, and
returns a handle whose cancel() guarantees it will not run. The preview
controller reschedules from inside the callback, so the loop is always a
single outstanding handle that can be cancelled synchronously.
"""

import asyncio
from typing import Callable, Optional, Protocol

from ..config import get_settings


class FrameHandle(Protocol):
    def cancel(self) -> None: ...


class ManualHandle:
    """Handle returned by ManualRefreshScheduler."""

    def __init__(self, callback: Callable[[], None]):
        self.callback = callback
        self.is_cancelled = False

    def cancel(self):
        self.is_cancelled = True

    def cancelled(self) -> bool:
        return self.is_cancelled


class ManualRefreshScheduler:
    """
    Step-driven scheduler.

    Callbacks run only when tick() is called, which makes the preview loop
    deterministic for headless rendering and tests.
    """

    def __init__(self):
        self._queue: list[ManualHandle] = []
        self.ticks = 0

    def schedule(self, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(callback)
        self._queue = [h for h in self._queue if not h.is_cancelled]
        self._queue.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for h in self._queue if not h.is_cancelled)

    @property
    def queued(self) -> int:
        """Handles held in the queue, cancelled ones included."""
        return len(self._queue)

    def tick(self) -> int:
        """
        Run every callback due on this refresh.

        Callbacks scheduled while ticking wait for the next tick.
        Returns the number of callbacks run.
        """
        due, self._queue = self._queue, []
        self.ticks += 1
        ran = 0
        for handle in due:
            if handle.is_cancelled:
                continue
            handle.is_cancelled = True
            handle.callback()
            ran += 1
        return ran

    def run(self, ticks: int) -> int:
        return sum(self.tick() for _ in range(ticks))


class TimerFrameHandle:
    """Wraps an asyncio TimerHandle so cancelling also stops tracking it."""

    def __init__(self, scheduler: "AsyncioRefreshScheduler"):
        self._scheduler = scheduler
        self.timer: Optional[asyncio.TimerHandle] = None

    def cancel(self):
        if self.timer is not None:
            self.timer.cancel()
        self._scheduler._handles.discard(self)

    def cancelled(self) -> bool:
        return self.timer is not None and self.timer.cancelled()


class AsyncioRefreshScheduler:
    """Schedules callbacks on an asyncio event loop at the configured refresh rate."""

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        refresh_rate: Optional[float] = None,
    ):
        rate = refresh_rate or get_settings().refresh_rate
        if rate <= 0:
            raise ValueError(f"Refresh rate must be positive, got {rate}")
        self.interval = 1.0 / rate
        self._loop = loop
        self._handles: set[TimerFrameHandle] = set()

    def schedule(self, callback: Callable[[], None]) -> TimerFrameHandle:
        loop = self._loop or asyncio.get_running_loop()
        handle = TimerFrameHandle(self)

        def fire():
            self._handles.discard(handle)
            callback()

        handle.timer = loop.call_later(self.interval, fire)
        self._handles.add(handle)
        return handle

    @property
    def pending(self) -> int:
        return len(self._handles)
