"""Host markup adapter: raw message markup -> generic content tree.

The host renders messages as HTML-ish markup. This adapter translates that
markup into `ContentNode` trees so the tokenizer never depends on the host's
actual rendering structure. Unknown or broken markup degrades to text.
"""

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from galmode.models import ContentNode


def _convert(element: Tag) -> list[ContentNode]:
    nodes: list[ContentNode] = []
    for child in element.children:
        if isinstance(child, Tag):
            nodes.append(ContentNode(
                tag=child.name.lower(),
                classes=list(child.get("class", [])),
                src=child.get("src", "") or "",
                children=_convert(child),
            ))
        elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
            # comments, doctypes and CDATA are not message text
            nodes.append(ContentNode(kind="text", text=str(child)))
    return nodes


def parse_markup(markup: str) -> ContentNode:
    """Parse markup into a content tree rooted at a synthetic "root" element.

    Unclosed elements extend to the end of the input, so an unterminated
    reasoning block swallows everything after it.
    """
    soup = BeautifulSoup(markup or "", "html.parser")
    return ContentNode(tag="root", children=_convert(soup))


def message_tree(raw: str) -> ContentNode:
    """Build a content tree from raw message text (plain text or markup).

    Line breaks in the raw text become <br> elements, matching how the host
    renders a message body.
    """
    text = (raw or "").replace("\r\n", "\n").replace("\n", "<br>")
    return parse_markup(text)
