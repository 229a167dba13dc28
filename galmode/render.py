"""Rendering collaborator — whatever draws the current frame.

The session pushes view updates into an injected renderer matching the
protocol below. `ViewStateRenderer` just keeps the latest state so the HTTP
API can serve it to a browser front end.
"""

from __future__ import annotations

import logging
from typing import Protocol

from pydantic import BaseModel, Field

from galmode.models import Choice

logger = logging.getLogger(__name__)

USER_COLOR = "#00d2ff"
DEFAULT_PALETTE = ["#00d2ff", "#ff6ec7", "#ffd700", "#00ff88", "#ff8c00", "#b19cd9", "#ff6b6b"]


class FrameView(BaseModel):
    """Everything a renderer needs to draw the current frame."""

    index: int
    total: int
    speaker_name: str | None = None
    speaker_color: str | None = None
    is_user: bool = False
    background: str | None = None
    text: str = ""  # revealed part
    full_text: str = ""
    revealing: bool = False
    streaming: bool = False
    loading: bool = False  # reply requested, only reasoning received so far
    more_available: bool = False
    end_reached: bool = False
    choices: list[Choice] = Field(default_factory=list)


class Renderer(Protocol):
    def render_frame(self, view: FrameView) -> None: ...

    def update_text(self, text: str) -> None: ...

    def set_background(self, ref: str | None) -> None: ...

    def show_end(self, choices: list[Choice]) -> None: ...


class SpeakerPalette:
    """Stable per-speaker name colours, assigned round-robin on first sight."""

    def __init__(self, palette: list[str] | None = None, user_color: str = USER_COLOR) -> None:
        self._palette = list(palette or DEFAULT_PALETTE)
        self._user_color = user_color
        self._assigned: dict[str, str] = {}

    def color_for(self, name: str | None, is_user: bool = False) -> str | None:
        if is_user:
            return self._user_color
        if not name:
            return None
        if name not in self._assigned:
            self._assigned[name] = self._palette[len(self._assigned) % len(self._palette)]
        return self._assigned[name]


class ViewStateRenderer:
    """Holds the latest rendered state; read by the HTTP surface."""

    def __init__(self) -> None:
        self.view: FrameView | None = None
        self.background: str | None = None
        self.end_choices: list[Choice] | None = None

    def render_frame(self, view: FrameView) -> None:
        self.view = view
        self.background = view.background
        self.end_choices = None

    def update_text(self, text: str) -> None:
        if self.view is not None:
            self.view = self.view.model_copy(update={"text": text})

    def set_background(self, ref: str | None) -> None:
        self.background = ref

    def show_end(self, choices: list[Choice]) -> None:
        logger.debug("End reached with %d choices", len(choices))
        self.end_choices = list(choices)
