"""Playlist state and its owning store.

The store is the single owner of the ordered frame sequence, the current
position and the furthest-seen position. Navigation and streaming
reconciliation only ever change the playlist through it, so the index
invariants are enforced in one place:

  * frames is never empty — an empty result becomes one placeholder frame
  * 0 <= current_index <= len(frames) - 1
  * high_water_index >= current_index, and it never decreases

Startup state (restored snapshot, new-game request, resume position) arrives
as a one-shot StartupMessage rather than a flag read from shared scope.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from galmode.frames import placeholder_frame
from galmode.models import Frame, PlaylistSnapshot

logger = logging.getLogger(__name__)


class PlaylistState(BaseModel):
    frames: list[Frame] = Field(default_factory=list)
    current_index: int = 0
    high_water_index: int = 0
    streaming_boundary_index: int | None = None
    more_available: bool = False


class StartupMessage(BaseModel):
    """What the next playlist should start from."""

    new_game: bool = False
    snapshot: PlaylistSnapshot | None = None
    resume_index: int | None = None


class StartupChannel:
    """One-shot hand-off of a StartupMessage to the next playlist store."""

    def __init__(self) -> None:
        self._pending: StartupMessage | None = None

    def send(self, message: StartupMessage) -> None:
        if self._pending is not None:
            logger.debug("Replacing unread startup message")
        self._pending = message

    def receive(self) -> StartupMessage | None:
        """Return the pending message and clear it; None if nothing was sent."""
        message, self._pending = self._pending, None
        return message

    @property
    def pending(self) -> bool:
        return self._pending is not None


class PlaylistStore:
    """Authoritative ordered frames plus current and furthest-seen position."""

    def __init__(
        self,
        frames: list[Frame] | None = None,
        *,
        placeholder_background: str | None = None,
        startup: StartupMessage | None = None,
    ) -> None:
        self._placeholder_background = placeholder_background
        self.state = PlaylistState()
        self._placeholder = False
        self._set_frames(list(frames or []))

        index = self.last_index
        high_water = 0
        if startup is not None:
            snapshot = startup.snapshot
            if startup.new_game:
                index = 0
            elif snapshot is not None and snapshot.frames:
                logger.info(f"Restoring playlist snapshot with {len(snapshot.frames)} frames")
                self._set_frames(list(snapshot.frames))
                index = snapshot.current_index
                high_water = snapshot.high_water_index
            elif snapshot is not None:
                logger.warning("Snapshot has no frames; keeping parsed playlist")
                index = snapshot.current_index
            elif startup.resume_index is not None:
                index = startup.resume_index

        self.state.current_index = self._clamp(index)
        self.state.high_water_index = max(high_water, self.state.current_index)

    # ── Internal helpers ─────────────────────────────────

    def _set_frames(self, frames: list[Frame]) -> None:
        if frames:
            self.state.frames = frames
            self._placeholder = False
        else:
            message_index = self.state.frames[-1].source_message_index if self.state.frames else 0
            self.state.frames = [placeholder_frame(self._placeholder_background, message_index)]
            self._placeholder = True

    def _clamp(self, index: int) -> int:
        return max(0, min(index, len(self.state.frames) - 1))

    def _raise_high_water(self, index: int) -> None:
        self.state.high_water_index = max(self.state.high_water_index, index)

    # ── Read access ──────────────────────────────────────

    def __len__(self) -> int:
        return len(self.state.frames)

    @property
    def frames(self) -> list[Frame]:
        return list(self.state.frames)

    @property
    def last_index(self) -> int:
        return len(self.state.frames) - 1

    @property
    def current_index(self) -> int:
        return self.state.current_index

    @current_index.setter
    def current_index(self, index: int) -> None:
        """Clamp any externally assigned index and raise the high-water mark."""
        self.state.current_index = self._clamp(index)
        self._raise_high_water(self.state.current_index)
        if self.state.current_index == self.last_index:
            self.state.more_available = False

    @property
    def high_water_index(self) -> int:
        return self.state.high_water_index

    @property
    def is_placeholder(self) -> bool:
        """True when the playlist holds only the substituted placeholder frame."""
        return self._placeholder

    @property
    def at_end(self) -> bool:
        return self.state.current_index == self.last_index

    def frame(self, index: int) -> Frame:
        return self.state.frames[index]

    def current_frame(self) -> Frame:
        return self.state.frames[self.state.current_index]

    # ── Mutation ─────────────────────────────────────────

    def replace_all(self, frames: list[Frame]) -> None:
        """Swap in a whole new frame list, keeping the position where possible."""
        self._set_frames(list(frames))
        self.state.current_index = self._clamp(self.state.current_index)
        self._raise_high_water(self.state.current_index)

    def replace_tail(self, from_index: int, frames: list[Frame]) -> None:
        """Keep frames[:from_index] untouched and replace everything after it."""
        if from_index < 0 or from_index > len(self.state.frames):
            raise IndexError(f"Tail index {from_index} out of range for {len(self.state.frames)} frames")
        head = [] if self._placeholder else self.state.frames[:from_index]
        self._set_frames(head + list(frames))
        self.state.current_index = self._clamp(self.state.current_index)

    def mark_high_water(self, index: int) -> None:
        self._raise_high_water(min(index, self.last_index))

    def snapshot(self) -> PlaylistSnapshot:
        return PlaylistSnapshot(
            frames=list(self.state.frames),
            current_index=self.state.current_index,
            high_water_index=self.state.high_water_index,
        )
