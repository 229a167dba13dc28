"""File-based JSON storage.

Data layout:
  data/
    config.json          Player settings (host connection, typewriter, streaming cadence)
    progress.json        Auto-saved frame index per character slug
    saves/
      <character-slug>/
        slot-<id>.json   Save slot: playback snapshot + save metadata

Slug rules: name → Unicode normalize → strip non-ASCII → lowercase →
replace non-alnum runs with hyphen → strip leading/trailing hyphens.

Config: get_config() returns defaults merged with stored values.
update_config() applies partial updates; unknown keys are ignored.
"""

# Re-export all public symbols so `from galmode import storage` keeps working.

from .core import (  # noqa: F401
    data_dir,
    init_storage,
    saves_dir,
    slugify,
)

from .config import (  # noqa: F401
    get_config,
    update_config,
)

from .progress import (  # noqa: F401
    load_auto_progress,
    save_auto_progress,
)

from .saves import (  # noqa: F401
    delete_slot,
    list_slots,
    load_slot,
    save_slot,
)
