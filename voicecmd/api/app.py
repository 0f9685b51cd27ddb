"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from ..errors import BackendUnavailable
from ..session import VoicePipeline
from ..settings import VoiceSettings, configure_logging, get_settings
from .routers import health, voice

LOGGER = logging.getLogger("voicecmd.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    pipeline: VoicePipeline = app.state.pipeline
    try:
        pipeline.initialize()
    except BackendUnavailable as exc:
        # Voice stays off; the rest of the host keeps serving.
        LOGGER.error("Voice recognition unavailable: %s", exc)
    yield
    pipeline.shutdown()


def create_app(
    settings: Optional[VoiceSettings] = None,
    pipeline: Optional[VoicePipeline] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(title="Voice Command Pipeline", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.pipeline = pipeline or VoicePipeline(settings)
    app.include_router(health.router)
    app.include_router(voice.router)
    return app
