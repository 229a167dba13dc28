"""Player endpoints: load, navigation, choices, continue, and host generation events."""

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request

from galmode.session import GameSession
from galmode.source import SourceError

from .models import LoadBody, PollBody, StreamStartBody, TokenBody

router = APIRouter(prefix="/player")


def _session(request: Request) -> GameSession:
    return request.app.state.session


@router.post("/load")
async def load(request: Request, body: LoadBody | None = None):
    """(Re)build the playlist from the host transcript."""
    session = _session(request)
    await session.load(new_game=body.new_game if body else False)
    return session.view()


@router.get("/frame")
async def get_frame(request: Request):
    """Current frame view (speaker, background, revealed text, flags)."""
    return _session(request).view()


# ── Navigation ───────────────────────────────────────────

@router.post("/advance")
async def advance(request: Request):
    """Click: finish the running reveal, otherwise go to the next frame."""
    session = _session(request)
    session.advance()
    return session.view()


@router.post("/next")
async def next_frame(request: Request):
    session = _session(request)
    session.next()
    return session.view()


@router.post("/prev")
async def prev_frame(request: Request):
    session = _session(request)
    session.prev()
    return session.view()


@router.post("/jump/{index}")
async def jump(index: int, request: Request):
    """Jump to a frame; out-of-range indices leave the position unchanged."""
    session = _session(request)
    session.jump_to(index)
    return session.view()


@router.post("/restart")
async def restart(request: Request):
    session = _session(request)
    session.restart()
    return session.view()


@router.post("/skip")
async def skip(request: Request):
    """Reveal the whole current frame now."""
    session = _session(request)
    session.skip()
    return session.view()


# ── Story input ──────────────────────────────────────────

@router.get("/choices")
async def get_choices(request: Request):
    """Choices offered at the end of the story (empty before the end)."""
    return _session(request).choices


@router.post("/choices/{choice_id}")
async def select_choice(choice_id: int, request: Request):
    """Send an offered choice to the host and start streaming the reply."""
    session = _session(request)
    choice = next((c for c in session.choices if c.id == choice_id), None)
    if choice is None:
        raise HTTPException(404, "Choice not found")
    try:
        await session.select_choice(choice)
    except SourceError as e:
        raise HTTPException(502, f"Host error: {e}")
    return session.view()


@router.post("/continue")
async def continue_story(request: Request):
    """Ask the host for the next reply without player input."""
    session = _session(request)
    try:
        await session.continue_story()
    except SourceError as e:
        raise HTTPException(502, f"Host error: {e}")
    return session.view()


# ── Host generation events ───────────────────────────────

@router.post("/stream/start")
async def stream_start(request: Request, body: StreamStartBody | None = None):
    session = _session(request)
    session.on_generation_start(body.message_index if body else None)
    return session.view()


@router.post("/stream/token")
async def stream_token(body: TokenBody, request: Request):
    session = _session(request)
    session.on_token_received(body.delta)
    return {"ok": True}


@router.post("/stream/end")
async def stream_end(request: Request):
    """Generation finished: run the final pass over the host's final text."""
    session = _session(request)
    result = await session.on_generation_end()
    return {"result": result, "frame": session.view()}


@router.post("/stream/stop")
async def stream_stop(request: Request):
    """Generation was stopped by the user: finalize with what the host kept."""
    session = _session(request)
    result = await session.on_generation_stopped()
    return {"result": result, "frame": session.view()}


@router.post("/stream/poll")
async def stream_poll(background_tasks: BackgroundTasks, request: Request, body: PollBody | None = None):
    """Follow a generation by polling the host (no push token events)."""
    session = _session(request)
    message_index = body.message_index if body else None
    session.on_generation_start(message_index)
    background_tasks.add_task(session.poll_generation, message_index)
    return session.view()
