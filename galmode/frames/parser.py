"""Message tokens -> ordered frames (speaker + text + background).

Each frame boundary is a line break or an inline image. Images change the
background for the frames that follow them, never for the frame just
flushed. A leading `Name:` prefix assigns the speaker; anything else falls
back to the message's default speaker.
"""

import re

from galmode.models import Frame, Token

from .markup import message_tree
from .tokenizer import tokenize

PLACEHOLDER_TEXT = "…"
PLACEHOLDER_SPEAKER = "System"

MAX_SPEAKER_LENGTH = 20

_CLEANUP_PATTERNS = [
    re.compile(r"image###[\s\S]*?###", re.IGNORECASE),
    re.compile(r"<thinking>[\s\S]*?</thinking>", re.IGNORECASE),
    re.compile(r"<think>[\s\S]*?</think>", re.IGNORECASE),
    re.compile(r"</?(?:image|FILE_CONTENT|ATTACHMENT_FILE)[^>]*>", re.IGNORECASE),
]

# Priority order: quoted, asterisked (action), parenthesised, plain continuation
_SPEAKER_PATTERNS = [
    re.compile(r"^([^:：\n]+?)[：:]\s*[\"「『]"),
    re.compile(r"^([^:：\n]+?)[：:]\s*\*"),
    re.compile(r"^([^:：\n]+?)[：:]\s*\("),
    re.compile(r"^([^:：\n]+?)[：:]\s*[^\"「『*(]"),
]

_SPEAKER_PREFIX = re.compile(r"^[^:：\n]+?[：:]\s*")
_RESERVED_NAME_CHARS = re.compile(r"[<>{}]")

# opening quote -> closing quote
_QUOTE_PAIRS = {'"': '"', "「": "」", "『": "』"}

_THINK_OPEN = re.compile(r"<think(?:ing)?>", re.IGNORECASE)
_THINK_CLOSE = re.compile(r"</think(?:ing)?>", re.IGNORECASE)
_THINK_BLOCK = re.compile(r"<think(?:ing)?>[\s\S]*</think(?:ing)?>", re.IGNORECASE)


def clean_text(text: str) -> str:
    """Strip reasoning spans and leftover attachment markup, then trim."""
    if not text:
        return ""
    for pattern in _CLEANUP_PATTERNS:
        text = pattern.sub("", text)
    return text.strip()


def parse_speaker(text: str) -> str | None:
    """Return the speaker named by a leading `Name:` prefix, or None.

    The first matching pattern wins. Names longer than 20 characters or
    containing markup characters are rejected.
    """
    stripped = text.strip()
    for pattern in _SPEAKER_PATTERNS:
        match = pattern.match(stripped)
        if not match:
            continue
        name = match.group(1).strip()
        if 0 < len(name) <= MAX_SPEAKER_LENGTH and not _RESERVED_NAME_CHARS.search(name):
            return name
    return None


def strip_speaker(text: str) -> str:
    """Remove a `Name:` prefix and one pair of quotes wrapping the remainder."""
    cleaned = _SPEAKER_PREFIX.sub("", text.strip(), count=1).strip()
    if len(cleaned) >= 2:
        close = _QUOTE_PAIRS.get(cleaned[0])
        inner = cleaned[1:-1]
        if close and cleaned[-1] == close and cleaned[0] not in inner and close not in inner:
            cleaned = inner.strip()
    return cleaned


def _leading_image(tokens: list[Token]) -> str | None:
    """First image that appears before any narrative text."""
    for token in tokens:
        if token.kind == "image":
            return token.value
        if token.kind == "text" and clean_text(token.value):
            return None
    return None


def build_frames(
    tokens: list[Token],
    *,
    initial_background: str | None,
    default_speaker: str | None,
    is_user: bool = False,
    attachment: str | None = None,
    message_index: int = 0,
) -> list[Frame]:
    """Split one message's token stream into frames.

    Returns [] when the message is empty after cleaning; callers substitute
    `placeholder_frame()` where a frame is required.
    """
    frames: list[Frame] = []
    background = attachment or _leading_image(tokens) or initial_background
    buffer = ""

    def flush(bg: str | None) -> None:
        nonlocal buffer
        cleaned = clean_text(buffer)
        buffer = ""
        if not cleaned:
            return
        speaker = parse_speaker(cleaned)
        if speaker is None:
            frames.append(Frame(
                text=cleaned,
                speaker_name=default_speaker,
                is_user=is_user,
                background=bg,
                source_message_index=message_index,
            ))
            return
        frames.append(Frame(
            text=strip_speaker(cleaned),
            speaker_name=speaker,
            is_user=is_user and speaker == default_speaker,
            background=bg,
            source_message_index=message_index,
        ))

    for token in tokens:
        if token.kind == "text":
            buffer += token.value
        elif token.kind == "image":
            flush(background)
            background = token.value
        else:
            flush(background)
    flush(background)

    return frames


def frames_from_markup(
    raw: str,
    *,
    initial_background: str | None,
    default_speaker: str | None,
    is_user: bool = False,
    attachment: str | None = None,
    message_index: int = 0,
) -> list[Frame]:
    """Markup -> content tree -> tokens -> frames."""
    return build_frames(
        tokenize(message_tree(raw)),
        initial_background=initial_background,
        default_speaker=default_speaker,
        is_user=is_user,
        attachment=attachment,
        message_index=message_index,
    )


def placeholder_frame(background: str | None, message_index: int = 0) -> Frame:
    """The stand-in frame used whenever a playlist would otherwise be empty."""
    return Frame(
        text=PLACEHOLDER_TEXT,
        speaker_name=PLACEHOLDER_SPEAKER,
        is_user=False,
        background=background,
        source_message_index=message_index,
    )


def is_thinking_phase(text: str) -> bool:
    """True while a streamed reply is still (or only) a reasoning block.

    Short replies count as still loading.
    """
    if not text or len(text) < 10:
        return True
    has_open = bool(_THINK_OPEN.search(text))
    has_close = bool(_THINK_CLOSE.search(text))
    if has_open and not has_close:
        return True
    if has_open and has_close:
        return len(_THINK_BLOCK.sub("", text).strip()) < 10
    return False
