"""Scheduler abstraction for timed playback work.

Playback schedules two kinds of work: the typewriter's fixed-interval reveal
ticks and the reconciler's coalesced passes. Both go through a `Scheduler`
so that tests can drive time by hand instead of waiting on wall-clock timers.

    AsyncioScheduler — production implementation on the running event loop.

Tests use FakeScheduler (defined in the test helpers) instead.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Handle: ...

    def call_every(self, interval_ms: float, callback: Callable[[], None]) -> Handle: ...


class _RepeatingHandle:
    """Re-arms itself after every call until cancelled."""

    def __init__(self, loop: asyncio.AbstractEventLoop, interval_ms: float,
                 callback: Callable[[], None]) -> None:
        self._loop = loop
        self._interval = interval_ms / 1000
        self._callback = callback
        self._timer: asyncio.TimerHandle | None = None
        self._cancelled = False
        self._arm()

    def _arm(self) -> None:
        self._timer = self._loop.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._arm()
        try:
            self._callback()
        except Exception:
            logger.exception("Repeating callback failed")

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class AsyncioScheduler:
    """Schedules callbacks on the running asyncio loop.

    The loop is looked up at call time, so one instance can be created before
    the server's loop starts.
    """

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Handle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay_ms / 1000, callback)

    def call_every(self, interval_ms: float, callback: Callable[[], None]) -> Handle:
        return _RepeatingHandle(asyncio.get_running_loop(), interval_ms, callback)
