"""Storage initialization, path helpers, and slug utilities."""

import re
import unicodedata
from pathlib import Path

_data_dir: Path | None = None


def slugify(name: str) -> str:
    """Convert a character name to a filesystem-safe slug.

    "Lady Sylvie" → "lady-sylvie"
    """
    text = unicodedata.normalize("NFKD", name)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower()
    text = re.sub(r"['\"]", "", text)  # strip apostrophes/quotes before hyphenation
    text = re.sub(r"[^a-z0-9]+", "-", text)
    text = text.strip("-")
    return text or "unnamed"


def init_storage(data_dir: Path) -> None:
    global _data_dir
    _data_dir = data_dir
    _data_dir.mkdir(parents=True, exist_ok=True)
    saves_dir().mkdir(exist_ok=True)


def data_dir() -> Path:
    assert _data_dir is not None, "Call init_storage() before using storage"
    return _data_dir


def saves_dir() -> Path:
    return data_dir() / "saves"
