"""Global player configuration (host connection, typewriter, streaming cadence)."""

import json
from pathlib import Path
from typing import Any

from .core import data_dir

_CONFIG_DEFAULTS: dict[str, Any] = {
    "host_url": "",
    "host_api_key": "",
    "typewriter_enabled": True,
    "typewriter_speed": 50,  # ms per character
    "font_size": 26,
    "refresh_interval_ms": 16,  # one display refresh
    "poll_interval_ms": 500,
    "max_idle_polls": 5,
    "max_polls": 600,
    "placeholder_background": "",
    "speaker_palette": ["#00d2ff", "#ff6ec7", "#ffd700", "#00ff88", "#ff8c00", "#b19cd9", "#ff6b6b"],
}


def _config_path() -> Path:
    return data_dir() / "config.json"


def get_config() -> dict[str, Any]:
    """Read config, returning defaults merged with stored values."""
    config: dict[str, Any] = json.loads(json.dumps(_CONFIG_DEFAULTS))
    path = _config_path()
    if path.is_file():
        stored = json.loads(path.read_text())
        for key in _CONFIG_DEFAULTS:
            if key in stored:
                config[key] = stored[key]
    return config


def update_config(fields: dict[str, Any]) -> dict[str, Any]:
    """Merge known fields into config and persist. Returns full config.

    Unknown keys are ignored; speaker_palette is replaced wholesale.
    """
    config = get_config()
    for key, value in fields.items():
        if key in _CONFIG_DEFAULTS:
            config[key] = value
    _config_path().write_text(json.dumps(config, indent=2))
    return config
