"""Built-in demo story for running the player without a host."""

from galmode.models import CharacterInfo, TranscriptMessage
from galmode.source import StaticContentSource

DEMO_CHARACTER = CharacterInfo(name="Mira", avatar="/demo/mira.png")

DEMO_MESSAGES = [
    {
        "raw_content": '<img src="/demo/harbor-dusk.png">'
        "The ferry horn sounds twice as the last light slips behind the cranes.\n"
        "Mira: 「You came after all.」\n"
        "*Mira tucks a loose strand of hair behind her ear.*",
    },
    {
        "raw_content": "I said I would, didn't I?",
        "speaker_name": "You",
        "is_user": True,
    },
    {
        "raw_content": "<p>She laughs, but her eyes keep drifting to the water.</p>"
        '<p><img src="/demo/pier-night.png"></p>'
        "<p>Old Tam: Boat leaves in five minutes. Tickets or nothing.</p>"
        "<p>Mira: Well? 「Board the ferry」「Ask what she is running from」「Walk me back to town」</p>",
    },
]


def demo_source() -> StaticContentSource:
    """A fresh in-memory source holding the demo transcript."""
    return StaticContentSource(
        messages=[TranscriptMessage.model_validate(m) for m in DEMO_MESSAGES],
        character=DEMO_CHARACTER,
    )
