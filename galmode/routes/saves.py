"""Save slot endpoints for the currently loaded character."""

from fastapi import APIRouter, HTTPException, Request

router = APIRouter(prefix="/saves")


@router.get("")
async def list_slots(request: Request):
    """List save slots, newest first."""
    return request.app.state.session.list_slots()


@router.post("/{slot_id}")
async def save_slot(slot_id: str, request: Request):
    """Save the current playback position and playlist to a slot."""
    try:
        return request.app.state.session.save_slot(slot_id)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.post("/{slot_id}/load")
async def load_slot(slot_id: str, request: Request):
    """Restore a slot and reload the player from it."""
    session = request.app.state.session
    try:
        found = await session.load_slot(slot_id)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if not found:
        raise HTTPException(404, "Save slot not found")
    return session.view()


@router.delete("/{slot_id}")
async def delete_slot(slot_id: str, request: Request):
    try:
        deleted = request.app.state.session.delete_slot(slot_id)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if not deleted:
        raise HTTPException(404, "Save slot not found")
    return {"ok": True}
