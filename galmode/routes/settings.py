"""Health check and settings endpoints."""

from fastapi import APIRouter, Request

from galmode import storage
from galmode.session import PlayerSettings

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings():
    """Get player settings (host connection, typewriter, streaming cadence)."""
    return storage.get_config()


@router.patch("/settings")
async def update_settings(body: dict, request: Request):
    """Update player settings (partial merge) and apply them to the running session."""
    config = storage.update_config(body)
    request.app.state.session.apply_settings(PlayerSettings.from_config(config))
    return config
