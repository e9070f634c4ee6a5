"""FastAPI app, CORS, and route registration."""
import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from prunify.config import LOG_LEVEL, ensure_data_dir

# Configure logging in the worker process (uvicorn --reload spawns a fresh one)
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(levelname)s: %(name)s: %(message)s",
)

from prunify.api.state import build_controller
from prunify.api.routes import playback, settings, spotify
from prunify.core.session import SessionController

__all__ = ["app", "create_app"]

logger = logging.getLogger(__name__)


def create_app(controller_factory: Callable[[], SessionController] = build_controller) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ensure_data_dir()
        controller = controller_factory()
        app.state.controller = controller
        await controller.start()
        logger.info("Session controller started (authorized=%s)", controller.state.authorized)

        yield

        await controller.shutdown()

    app = FastAPI(
        title="Prunify API",
        description="Local REST API for the Prunify Spotify controller",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(spotify.router, prefix="/api/spotify", tags=["spotify"])
    app.include_router(playback.router, prefix="/api/playback", tags=["playback"])
    app.include_router(settings.router, prefix="/api/settings", tags=["settings"])
    return app


app = create_app()
