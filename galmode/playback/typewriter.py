"""Typewriter reveal of a frame's text, one character per tick.

States: idle → revealing → complete; only start() enters revealing again.

The target text is re-read on every tick, so a frame that keeps growing while
it streams in is revealed up to its latest length. The reveal cursor only
ever moves forward.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

from .scheduler import Handle, Scheduler

logger = logging.getLogger(__name__)

TextSource = Callable[[], str]


class RevealState(str, Enum):
    IDLE = "idle"
    REVEALING = "revealing"
    COMPLETE = "complete"


class TypewriterAnimator:
    """Reveals text on a fixed ms-per-character schedule.

    Args:
        scheduler:   Drives the reveal ticks.
        enabled:     When False, start() shows the full text at once.
        speed_ms:    Interval between characters. Total reveal time grows
                     linearly with the text length.
        on_reveal:   Called with the visible substring after every change.
        on_complete: Called once each time the animator reaches complete.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        enabled: bool = True,
        speed_ms: float = 50,
        on_reveal: Callable[[str], None] | None = None,
        on_complete: Callable[[], None] | None = None,
    ) -> None:
        self._scheduler = scheduler
        self.enabled = enabled
        self.speed_ms = speed_ms
        self._on_reveal = on_reveal
        self._on_complete = on_complete
        self._source: TextSource = lambda: ""
        self._timer: Handle | None = None
        self.state = RevealState.IDLE
        self.cursor = 0

    @property
    def text(self) -> str:
        """The current target text."""
        return self._source()

    @property
    def visible_text(self) -> str:
        """Revealed part of the text; all of it once complete."""
        if self.state is RevealState.COMPLETE:
            return self._source()
        return self._source()[:self.cursor]

    @property
    def revealing(self) -> bool:
        return self.state is RevealState.REVEALING

    def start(self, text: str | TextSource) -> None:
        """Begin revealing `text` (a string or a callable returning the latest text)."""
        self.stop()
        self.cursor = 0
        self._source = text if callable(text) else (lambda: text)
        current = self._source()
        if not self.enabled:
            self._complete(current)
            return
        self.cursor = min(1, len(current))
        self.state = RevealState.REVEALING
        self._emit()
        self._timer = self._scheduler.call_every(self.speed_ms, self._tick)

    def stop(self) -> None:
        """Cancel any running reveal without changing what is shown."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self.state is RevealState.REVEALING:
            self.state = RevealState.IDLE

    def skip(self) -> bool:
        """Show the full text now. Returns False if nothing was being revealed."""
        if self.state is not RevealState.REVEALING:
            return False
        self._complete(self._source())
        return True

    def _tick(self) -> None:
        if self.state is not RevealState.REVEALING:
            return
        current = self._source()
        if self.cursor >= len(current):
            self._complete(current)
            return
        self.cursor += 1
        self._emit()

    def _emit(self) -> None:
        if self._on_reveal:
            self._on_reveal(self.visible_text)

    def _complete(self, current: str) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        # the cursor never moves back, even when the target shrank below it
        self.cursor = max(self.cursor, len(current))
        self.state = RevealState.COMPLETE
        self._emit()
        logger.debug("Reveal complete at %d chars", self.cursor)
        if self._on_complete:
            self._on_complete()
