"""Core domain models.

Every parsing, playback and storage function operates on these types.
Pydantic is used for validation and serialisation at every data boundary.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TokenKind = Literal["text", "image", "break"]


class ContentNode(BaseModel):
    """One node of a message's generic content tree.

    Element nodes carry a lower-case tag, CSS-style classes and children;
    text nodes carry only `text`. Images are elements with tag "img" and a
    `src` reference.
    """

    kind: Literal["element", "text"] = "element"
    tag: str = ""
    classes: list[str] = Field(default_factory=list)
    text: str = ""
    src: str = ""
    children: list[ContentNode] = Field(default_factory=list)


class Token(BaseModel):
    """A flattened unit of narrative content: text run, inline image or break."""

    model_config = ConfigDict(frozen=True)

    kind: TokenKind
    value: str = ""  # text for "text", image reference for "image"


class Frame(BaseModel):
    """One displayable page: speaker + text + background."""

    model_config = ConfigDict(frozen=True)

    text: str
    speaker_name: str | None = None
    is_user: bool = False
    background: str | None = None
    source_message_index: int = 0


class Choice(BaseModel):
    """A selectable option detected in a frame's text."""

    id: int
    text: str


class PlaylistSnapshot(BaseModel):
    """Opaque playback state handed to and accepted from persistence."""

    frames: list[Frame] = Field(default_factory=list)
    current_index: int = 0
    high_water_index: int = 0


class TranscriptMessage(BaseModel):
    """A single message as exposed by the host's transcript."""

    raw_content: str = ""
    speaker_name: str | None = None
    is_user: bool = False
    attachments: list[str] = Field(default_factory=list)  # image refs, first wins


class CharacterInfo(BaseModel):
    """The character the conversation is held with."""

    name: str = "AI"
    avatar: str | None = None
