"""FastAPI API endpoints under /api.

Endpoint groups: settings (health + player settings), player (load,
navigation, typewriter skip, choices, continue, host generation events) and
saves (slots of the current character). All player endpoints act on the one
GameSession stored on `app.state.session` and answer with the current frame
view.
"""

from fastapi import APIRouter

from .player import router as player_router
from .saves import router as saves_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(player_router)
router.include_router(saves_router)
