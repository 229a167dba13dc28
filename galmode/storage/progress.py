"""Auto-saved playback position per character."""

import json
from pathlib import Path

from .core import data_dir, slugify


def _progress_path() -> Path:
    return data_dir() / "progress.json"


def _read_all() -> dict[str, int]:
    path = _progress_path()
    if not path.is_file():
        return {}
    return json.loads(path.read_text())


def save_auto_progress(character: str, index: int) -> None:
    """Remember the current frame index for a character."""
    progress = _read_all()
    progress[slugify(character)] = index
    _progress_path().write_text(json.dumps(progress, indent=2))


def load_auto_progress(character: str) -> int | None:
    """Return the remembered frame index, or None if there is none."""
    value = _read_all().get(slugify(character))
    return int(value) if value is not None else None
