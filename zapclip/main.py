"""
FastAPI application entrypoint for the clip service.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from zapclip.api.routes import router as api_router
from zapclip.core.config import get_settings
from zapclip.core.logging import configure_logging
from zapclip.dependencies import get_clip_acquisition_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Extended polls are best-effort and die with the process.
    if not get_clip_acquisition_service.cache_info().currsize:
        return
    pending = len(get_clip_acquisition_service().background_tasks)
    if pending:
        logger.warning("Shutting down with %d extended clip polls in flight", pending)


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Zapclip",
        version="0.1.0",
        description="Clip creation on behalf of connected Twitch broadcasters.",
        lifespan=_lifespan,
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
