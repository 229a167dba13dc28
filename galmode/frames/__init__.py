"""Message content -> frames.

Flow for one message:
  1. markup.message_tree   — raw host markup / text into a generic content tree
  2. tokenizer.tokenize    — tree into text / image / break tokens, dropping
                             reasoning blocks, UI controls and decorative images
  3. parser.build_frames   — tokens into frames (speaker, text, background)

choices.detect_choices turns a frame's text into selectable options.
All functions here are pure and never raise on malformed content.
"""

from .choices import detect_choices  # noqa: F401
from .markup import message_tree, parse_markup  # noqa: F401
from .parser import (  # noqa: F401
    PLACEHOLDER_SPEAKER,
    PLACEHOLDER_TEXT,
    build_frames,
    clean_text,
    frames_from_markup,
    is_thinking_phase,
    parse_speaker,
    placeholder_frame,
    strip_speaker,
)
from .tokenizer import default_is_narrative, tokenize  # noqa: F401
