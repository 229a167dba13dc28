import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from galmode import storage
from galmode.demo import demo_source
from galmode.playback import AsyncioScheduler, Scheduler
from galmode.render import ViewStateRenderer
from galmode.routes import router
from galmode.session import GameSession, PlayerSettings
from galmode.source import ContentSource, HttpContentSource

load_dotenv(Path(__file__).parent.parent / ".env")

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


def _content_source(config: dict) -> ContentSource:
    host_url = os.getenv("GALMODE_HOST_URL") or config.get("host_url", "")
    if host_url and not os.getenv("GALMODE_DEMO", ""):
        api_key = os.getenv("GALMODE_HOST_API_KEY") or config.get("host_api_key", "")
        return HttpContentSource(host_url, api_key)
    logger.info("No host configured; serving the demo story")
    return demo_source()


def create_app(
    data_dir: Path | None = None,
    source: ContentSource | None = None,
    scheduler: Scheduler | None = None,
) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    storage.init_storage(resolved)
    config = storage.get_config()

    app = FastAPI(title="galmode")
    app.state.session = GameSession(
        source or _content_source(config),
        ViewStateRenderer(),
        scheduler or AsyncioScheduler(),
        settings=PlayerSettings.from_config(config),
    )
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
