"""Choice detection over a frame's text.

Pattern families are tried in a fixed priority order:

  1. bracket quotes      「Go north」『Go south』
  2. square brackets     [Go north] [Go south]   (image/attachment markers skipped)
  3. numbered lines      1. Go north / 2、Go south / 3) Wait

The first family with more than one match is the choice set. A single match
is not a choice set, and then the next family is tried.
"""

import re

from galmode.models import Choice

_BRACKET_QUOTE = re.compile(r"「([^」]+)」|『([^』]+)』")
_SQUARE_BRACKET = re.compile(r"\[([^\]]+)\]")
_NUMBERED_LINE = re.compile(r"^(\d+)[.。、)）]\s*(.+)$")
_ATTACHMENT_MARKER = re.compile(r"^(?:img|image)|^(?:file|attachment)\s*[:：]", re.IGNORECASE)


def _bracket_quotes(text: str) -> list[Choice]:
    choices: list[Choice] = []
    for match in _BRACKET_QUOTE.finditer(text):
        body = (match.group(1) or match.group(2) or "").strip()
        if body:
            choices.append(Choice(id=len(choices) + 1, text=body))
    return choices


def _square_brackets(text: str) -> list[Choice]:
    choices: list[Choice] = []
    for match in _SQUARE_BRACKET.finditer(text):
        body = match.group(1).strip()
        if body and not _ATTACHMENT_MARKER.match(body):
            choices.append(Choice(id=len(choices) + 1, text=body))
    return choices


def _numbered_lines(text: str) -> list[Choice]:
    choices: list[Choice] = []
    for line in text.split("\n"):
        match = _NUMBERED_LINE.match(line.strip())
        if match:
            body = match.group(2).strip()
            if body:
                choices.append(Choice(id=int(match.group(1)), text=body))
    return choices


CHOICE_FAMILIES = [_bracket_quotes, _square_brackets, _numbered_lines]


def detect_choices(text: str) -> list[Choice]:
    """Return the choices offered by `text`, or [] if it offers none."""
    if not text:
        return []
    for family in CHOICE_FAMILIES:
        choices = family(text)
        if len(choices) > 1:
            return choices
    return []
