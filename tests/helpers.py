"""Shared test doubles: a hand-driven scheduler and a recording renderer."""

from __future__ import annotations

import itertools
from collections.abc import Callable

from galmode.models import Choice, TranscriptMessage
from galmode.render import FrameView


class FakeHandle:
    _seq = itertools.count()

    def __init__(self, due: float, callback: Callable[[], None], interval: float | None = None) -> None:
        self.due = due
        self.callback = callback
        self.interval = interval
        self.cancelled = False
        self.seq = next(self._seq)

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Runs scheduled callbacks only when the test advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: list[FakeHandle] = []

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(self.now + delay_ms, callback)
        self.handles.append(handle)
        return handle

    def call_every(self, interval_ms: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(self.now + interval_ms, callback, interval_ms)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled]

    def advance(self, ms: float) -> None:
        """Move the clock forward, firing every callback that falls due on the way."""
        target = self.now + ms
        while True:
            due = [h for h in self.handles if not h.cancelled and h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.due, h.seq))
            self.now = handle.due
            if handle.interval is None:
                handle.cancelled = True
            else:
                handle.due += handle.interval
            handle.callback()
        self.now = target
        self.handles = [h for h in self.handles if not h.cancelled]


class RecordingRenderer:
    """Keeps every call made by the session, in order."""

    def __init__(self) -> None:
        self.frames: list[FrameView] = []
        self.texts: list[str] = []
        self.backgrounds: list[str | None] = []
        self.ends: list[list[Choice]] = []

    def render_frame(self, view: FrameView) -> None:
        self.frames.append(view)

    def update_text(self, text: str) -> None:
        self.texts.append(text)

    def set_background(self, ref: str | None) -> None:
        self.backgrounds.append(ref)

    def show_end(self, choices: list[Choice]) -> None:
        self.ends.append(list(choices))

    @property
    def last_text(self) -> str:
        return self.texts[-1] if self.texts else ""


def message(raw: str, speaker: str | None = None, is_user: bool = False, attachments=None) -> TranscriptMessage:
    return TranscriptMessage(
        raw_content=raw, speaker_name=speaker, is_user=is_user,
        attachments=attachments or [],
    )
