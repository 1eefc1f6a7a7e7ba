"""
FastAPI Application Entry Point.

Creates and configures the FastAPI application for the voicegen proxy:
logging, CORS, exception handlers and routes.

Usage:
    # Run with uvicorn
    uvicorn voicegen.main:app --host 0.0.0.0 --port 8000

    # Or through the CLI
    voicegen serve --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voicegen import __version__
from voicegen.api.dependencies import get_settings, get_voice_service, reset_dependencies
from voicegen.api.errors import register_error_handlers
from voicegen.api.routes import router
from voicegen.core.config import Settings
from voicegen.core.logging import configure_logging, get_level_name, get_logger, info
from voicegen.history.store import GenerationStore
from voicegen.provider.elevenlabs import ElevenLabsAdapter
from voicegen.services.voice_service import VoiceService

_LOG = get_logger("voicegen.main")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[GenerationStore] = None,
    adapter: Optional[ElevenLabsAdapter] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    With no arguments the app uses the process-wide VoiceService built
    from config/settings.yaml. Passing settings, a store or an adapter
    builds a dedicated service for this app instead (used by tests and
    embedding code).

    Args:
        settings: Settings to use instead of the settings file.
        store: Generation store to use instead of the configured one.
        adapter: Provider adapter (e.g. with an httpx.MockTransport).

    Returns:
        FastAPI: Configured application instance.
    """
    configure_logging()

    app_settings = settings or get_settings()
    config = app_settings.get_service_config()

    service: Optional[VoiceService] = None
    if settings is not None or store is not None or adapter is not None:
        service = VoiceService.from_settings(app_settings, adapter=adapter, store=store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        info(_LOG, "startup", version=__version__, provider=config.provider.base_url,
             history=config.history.enabled, log_level=get_level_name())
        yield
        if service is not None:
            service.close()
        else:
            reset_dependencies()
        info(_LOG, "shutdown")

    app = FastAPI(title="voicegen", version=__version__, lifespan=lifespan)

    if service is not None:
        app.dependency_overrides[get_voice_service] = lambda: service
        app.state.voice_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Content-Disposition", "X-Request-Id", "X-Bytes"],
    )

    register_error_handlers(app)
    app.include_router(router)

    return app


# Global application instance for ASGI servers (uvicorn, gunicorn, etc.)
app = create_app()
