"""
FastAPI Dependency Injection Providers.

Shared resources for the route handlers, injected with Depends().

Architecture:
    1. get_settings() - Loads and caches the YAML settings (defaults if absent)
    2. get_voice_service() - Creates/returns the singleton VoiceService

    The VoiceService owns the provider adapter (one pooled httpx client)
    and the generation store, so every request sees the same history.

Overrides:
    create_app(store=..., adapter=...) swaps the service through
    app.dependency_overrides; tests use the same mechanism.

Usage in Route Handlers:
    @router.get("/api/voice-history")
    def voice_history(service: VoiceService = Depends(get_voice_service)):
        return service.list_history()

See Also:
    - core/config.py: Settings and load_settings()
    - services/voice_service.py: VoiceService and get_service()
    - main.py: create_app()
"""
from __future__ import annotations

from functools import lru_cache

from voicegen.core.config import Settings, load_settings
from voicegen.services.voice_service import VoiceService, get_service, reset_service


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    The path comes from VOICEGEN_SETTINGS (default config/settings.yaml).
    A missing file means built-in defaults.
    """
    return load_settings(missing_ok=True)


def get_voice_service() -> VoiceService:
    """Get the singleton VoiceService instance."""
    return get_service(get_settings())


def reset_dependencies() -> None:
    """Drop cached settings and the service singleton (tests only)."""
    get_settings.cache_clear()
    reset_service()
