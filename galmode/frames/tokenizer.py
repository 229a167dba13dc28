"""Content tree flattening into text / image / break tokens."""

from collections.abc import Callable

from galmode.models import ContentNode, Token

EXCLUDED_TAGS = {"script", "style", "think", "thinking", "details", "summary", "select"}

EXCLUDED_CLASSES = {
    "suggestion_box",
    "thinking",
    "cot",
    "reasoning",
    "inline-dropdown",
    "mes_button",
}

# Decorative images that never act as a background
DECORATIVE_IMAGE_CLASSES = {"emoji", "icon", "avatar_img"}

BREAK_TAGS = {"br", "hr"}
BLOCK_TAGS = {"p", "div", "blockquote"}


def default_is_narrative(node: ContentNode) -> bool:
    """Return False for reasoning blocks, UI controls and decorative images."""
    if node.kind == "text":
        return True
    if node.tag in EXCLUDED_TAGS:
        return False
    if EXCLUDED_CLASSES.intersection(node.classes):
        return False
    if node.tag == "img":
        return bool(node.src) and not DECORATIVE_IMAGE_CLASSES.intersection(node.classes)
    return True


def tokenize(
    root: ContentNode,
    is_narrative: Callable[[ContentNode], bool] = default_is_narrative,
) -> list[Token]:
    """Flatten a content tree into an ordered token stream.

    Non-narrative nodes are dropped with their whole subtree. Block containers
    open with a break unless the previous token already is one; <br>/<hr>
    always break. Whitespace-only text is dropped.
    """
    tokens: list[Token] = []

    def walk(node: ContentNode) -> None:
        if not is_narrative(node):
            return
        if node.kind == "text":
            if node.text.strip():
                tokens.append(Token(kind="text", value=node.text))
            return
        if node.tag == "img":
            tokens.append(Token(kind="image", value=node.src))
        elif node.tag in BREAK_TAGS:
            tokens.append(Token(kind="break"))
        elif node.tag in BLOCK_TAGS:
            if not tokens or tokens[-1].kind != "break":
                tokens.append(Token(kind="break"))
        for child in node.children:
            walk(child)

    walk(root)
    return tokens
