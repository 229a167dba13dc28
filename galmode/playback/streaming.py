"""Streaming reconciliation: keep the playlist tail in step with a reply
that is still being generated.

While a reply streams in, every frame before the boundary index is frozen
history. Each reconciliation pass re-parses the *whole* accumulated buffer as
one synthetic message and swaps it in as the new tail. Token arrivals only
schedule a pass; all arrivals within one refresh interval share a single pass.

Finalization always wins over a pending pass: it cancels the pending pass and
runs one synchronous pass over the authoritative final text.

FallbackPoller stands in for push token events when the host cannot deliver
them, and forces finalization once its poll budget runs out.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from pydantic import BaseModel

from galmode.frames import frames_from_markup
from galmode.models import Frame
from galmode.source import ContentSource, SourceError

from .playlist import PlaylistStore
from .scheduler import Handle, Scheduler

logger = logging.getLogger(__name__)


class ReconcileError(RuntimeError):
    """Raised when a pass cannot be applied to the current playlist."""


class StreamingSession(BaseModel):
    buffer_text: str = ""
    boundary_index: int = 0
    message_index: int = 0
    active: bool = True
    closing: bool = False  # finalization under way; no more scheduled passes
    last_tail_count: int = 0


class ReconcileResult(BaseModel):
    """Outcome of one reconciliation pass."""

    tail_count: int
    previous_index: int
    current_index: int
    followed_tail: bool = False  # current index advanced along with the live tail
    more_available: bool = False
    final: bool = False
    shrunk: bool = False  # final pass produced fewer frames than the pass before


class StreamReconciler:
    """Owns one StreamingSession and re-derives the playlist tail from it.

    Args:
        store:               Playlist to reconcile into.
        scheduler:           Used to coalesce passes to one per refresh interval.
        speaker_name:        Default speaker for streamed frames (the character).
        default_background:  Background when no frame precedes the boundary.
        refresh_interval_ms: Coalescing window, one display refresh by default.
        on_change:           Called with the result of every applied pass.
    """

    def __init__(
        self,
        store: PlaylistStore,
        scheduler: Scheduler,
        *,
        speaker_name: str | None,
        default_background: str | None,
        refresh_interval_ms: float = 16,
        on_change: Callable[[ReconcileResult], None] | None = None,
    ) -> None:
        self.store = store
        self._scheduler = scheduler
        self.speaker_name = speaker_name
        self.default_background = default_background
        self.refresh_interval_ms = refresh_interval_ms
        self._on_change = on_change
        self.session: StreamingSession | None = None
        self._pending: Handle | None = None

    @property
    def active(self) -> bool:
        return self.session is not None and self.session.active

    @property
    def pending(self) -> bool:
        return self._pending is not None

    # ── Session lifecycle ────────────────────────────────

    def start(self, boundary_index: int, message_index: int) -> None:
        """Freeze frames[:boundary_index] as history and open a session."""
        if self.active:
            logger.warning("Streaming session already active; restarting it")
            self._cancel_pending()
        self.session = StreamingSession(
            boundary_index=boundary_index,
            message_index=message_index,
        )
        self.store.state.streaming_boundary_index = boundary_index
        logger.info(f"Streaming started at boundary {boundary_index} (message {message_index})")

    def on_token(self, delta: str) -> None:
        """Append a token delta and schedule a coalesced pass."""
        if not self.active:
            return
        self.session.buffer_text += delta
        self._schedule()

    def replace_buffer(self, text: str) -> None:
        """Replace the whole buffer (polling mode reads full message text)."""
        if not self.active:
            return
        self.session.buffer_text = text
        self._schedule()

    def close(self) -> None:
        """Stop scheduling passes. Tokens still accumulate until finalize()."""
        self._cancel_pending()
        if self.session is not None:
            self.session.closing = True

    def finalize(self, final_text: str | None = None) -> ReconcileResult | None:
        """Run the authoritative last pass and close the session.

        `final_text` is the host's final message text; when None the buffer is
        used. Returns None when no session was active.
        """
        if not self.active:
            return None
        self._cancel_pending()
        session = self.session
        if final_text is None:
            logger.warning("No final text for message %d; finalizing from buffer", session.message_index)
            final_text = session.buffer_text
        session.buffer_text = final_text
        previous_tail = session.last_tail_count
        try:
            result = self._apply(final_text, final=True)
        except ReconcileError as e:
            logger.warning(f"Final reconciliation skipped: {e}")
            result = None
        else:
            if result.tail_count < previous_tail:
                logger.warning(
                    "Final pass produced %d frames past the boundary, previous pass had %d",
                    result.tail_count, previous_tail,
                )
                result = result.model_copy(update={"shrunk": True})
        session.active = False
        self.session = None
        self.store.state.streaming_boundary_index = None
        logger.info(f"Streaming finished. Total frames: {len(self.store)}")
        if result is not None and self._on_change:
            self._on_change(result)
        return result

    # ── Passes ───────────────────────────────────────────

    def reconcile(self) -> ReconcileResult | None:
        """Run one pass over the current buffer right now."""
        if not self.active:
            return None
        self._cancel_pending()
        result = self._apply(self.session.buffer_text)
        if self._on_change:
            self._on_change(result)
        return result

    def _schedule(self) -> None:
        if self._pending is None and not self.session.closing:
            self._pending = self._scheduler.call_later(self.refresh_interval_ms, self._run_pending)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _run_pending(self) -> None:
        self._pending = None
        if not self.active:
            return
        try:
            self.reconcile()
        except ReconcileError as e:
            logger.warning(f"Reconciliation pass skipped: {e}")

    def _initial_background(self, boundary: int) -> str | None:
        if 0 < boundary <= len(self.store) and not self.store.is_placeholder:
            return self.store.frame(boundary - 1).background
        return self.default_background

    def _parse(self, text: str, boundary: int) -> list[Frame]:
        return frames_from_markup(
            text,
            initial_background=self._initial_background(boundary),
            default_speaker=self.speaker_name,
            is_user=False,
            message_index=self.session.message_index,
        )

    def _apply(self, text: str, *, final: bool = False) -> ReconcileResult:
        session = self.session
        store = self.store
        boundary = session.boundary_index
        if boundary > len(store) and not store.is_placeholder:
            raise ReconcileError(f"Boundary {boundary} beyond playlist of {len(store)} frames")

        new_frames = self._parse(text, boundary)

        old_tail = store.last_index
        previous = store.current_index
        watching_tail = previous >= boundary and previous == old_tail

        store.replace_tail(boundary, new_frames)
        session.last_tail_count = len(new_frames)

        followed = False
        if watching_tail:
            store.current_index = store.last_index
            followed = store.current_index != previous
        # history browsing (index below the boundary) is never moved
        more = store.current_index < store.last_index
        if more:
            store.state.more_available = True
        store.mark_high_water(store.last_index)

        logger.debug(
            "Reconciled %d chars into %d tail frames (index %d -> %d)",
            len(text), len(new_frames), previous, store.current_index,
        )
        return ReconcileResult(
            tail_count=len(new_frames),
            previous_index=previous,
            current_index=store.current_index,
            followed_tail=followed,
            more_available=more,
            final=final,
        )


class FallbackPoller:
    """Polls the content source when push token events are unavailable.

    Every `interval_ms` it asks the source whether generation is still
    running. While it is, the full message text replaces the reconciler's
    buffer. After `max_idle_polls` polls without generation, or `max_polls`
    polls in total, it forces finalization with whatever text it has.
    Source failures are logged and count as idle polls.
    """

    def __init__(
        self,
        reconciler: StreamReconciler,
        source: ContentSource,
        *,
        message_index: int,
        interval_ms: float = 500,
        max_idle_polls: int = 5,
        max_polls: int = 600,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.reconciler = reconciler
        self.source = source
        self.message_index = message_index
        self.interval_ms = interval_ms
        self.max_idle_polls = max_idle_polls
        self.max_polls = max_polls
        self._sleep = sleep
        self.polls = 0

    async def _read(self) -> tuple[bool, str | None]:
        try:
            generating = await self.source.is_generating()
            text = await self.source.get_message_text(self.message_index)
        except SourceError as e:
            logger.warning(f"Poll {self.polls} failed: {e}")
            return False, None
        return generating, text

    async def run(self) -> ReconcileResult | None:
        """Poll until the session ends; returns the finalization result."""
        idle = 0
        last_text: str | None = None
        while self.reconciler.active:
            await self._sleep(self.interval_ms / 1000)
            if not self.reconciler.active:
                # push-based finalization got there first
                return None
            self.polls += 1
            generating, text = await self._read()
            if text is not None:
                last_text = text
            if generating:
                idle = 0
                if text is not None:
                    self.reconciler.replace_buffer(text)
            else:
                idle += 1
            if idle >= self.max_idle_polls or self.polls >= self.max_polls:
                if generating:
                    logger.warning(f"Poll budget of {self.max_polls} exhausted; forcing finalization")
                return self.reconciler.finalize(last_text)
        return None
