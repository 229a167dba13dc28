"""Save slots: one JSON file per slot, grouped by character.

Layout:
  saves/<character-slug>/slot-<id>.json

Each file wraps the playback snapshot with save metadata. The snapshot itself
is stored as dumped and never interpreted here.
"""

import json
import logging
import re
import time
from pathlib import Path
from typing import Any

from galmode.models import PlaylistSnapshot

from .core import saves_dir, slugify

logger = logging.getLogger(__name__)

SAVE_FORMAT_VERSION = "3.1"
PREVIEW_LENGTH = 50

_SLOT_ID = re.compile(r"^[A-Za-z0-9_-]{1,32}$")


def _character_dir(character: str) -> Path:
    return saves_dir() / slugify(character)


def _slot_path(character: str, slot_id: str) -> Path:
    if not _SLOT_ID.match(slot_id):
        raise ValueError(f"Invalid slot id {slot_id!r}")
    return _character_dir(character) / f"slot-{slot_id}.json"


def save_slot(
    character: str, slot_id: str, snapshot: PlaylistSnapshot, preview: str = ""
) -> dict[str, Any]:
    """Write a snapshot to a slot (overwriting it). Returns the slot summary."""
    path = _slot_path(character, slot_id)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "_version": SAVE_FORMAT_VERSION,
        "_saved_at": int(time.time() * 1000),
        "character": character,
        "slot_id": slot_id,
        "snapshot": snapshot.model_dump(),
        "stats": {
            "total_frames": len(snapshot.frames),
            "preview_text": preview[:PREVIEW_LENGTH] or "No preview",
        },
    }
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False))
    logger.info(f"Saved slot {slot_id} for {character}")
    return _summary(data)


def load_slot(character: str, slot_id: str) -> PlaylistSnapshot | None:
    """Read a slot's snapshot. Returns None if the slot does not exist."""
    path = _slot_path(character, slot_id)
    if not path.is_file():
        return None
    data = json.loads(path.read_text())
    return PlaylistSnapshot.model_validate(data.get("snapshot", {}))


def list_slots(character: str) -> list[dict[str, Any]]:
    """Summaries of all slots for a character, newest first."""
    directory = _character_dir(character)
    if not directory.is_dir():
        return []
    slots: list[dict[str, Any]] = []
    for path in directory.glob("slot-*.json"):
        try:
            slots.append(_summary(json.loads(path.read_text())))
        except json.JSONDecodeError as e:
            logger.warning(f"Skipping unreadable save {path.name}: {e}")
    slots.sort(key=lambda s: s["saved_at"], reverse=True)
    return slots


def delete_slot(character: str, slot_id: str) -> bool:
    """Delete a slot. Returns False if it did not exist."""
    path = _slot_path(character, slot_id)
    if not path.is_file():
        return False
    path.unlink()
    return True


def _summary(data: dict[str, Any]) -> dict[str, Any]:
    snapshot = data.get("snapshot", {})
    stats = data.get("stats", {})
    return {
        "slot_id": data.get("slot_id", ""),
        "saved_at": data.get("_saved_at", 0),
        "position": snapshot.get("current_index", 0) + 1,
        "total_frames": stats.get("total_frames", 0),
        "preview": stats.get("preview_text", ""),
    }
