"""
VoiceService - Voice Generation Pipeline.

The single place where a generation request is processed. The HTTP
endpoint and the history listing both go through this service.

Architecture:
    Body -> Validate -> Provider call -> Response
                                      -> Record (after the response)

Key Components:
    - Validator: Rejects bad input before the billable provider call
    - Provider adapter: Exactly one outbound synthesis call, no retry
    - Generation store: Best-effort history of completed generations

Outcomes (also the metrics label):
    completed        audio returned
    rejected         validation failed, provider not called
    failed_provider  provider answered with an error status
    failed_internal  anything else (network failure, bug)

Error Handling:
    - ValidationError: client input, 400
    - ProviderError: upstream status passed through
    - InternalError: generic 500, cause only in the logs

Example:
    >>> service = VoiceService(config, adapter, store)
    >>> result = service.generate(body, request_id="a1b2c3")
    >>> service.record(result.draft)
    >>> len(result.audio_bytes)
    48213
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from voicegen import __version__
from voicegen.core.config import ServiceConfig, Settings
from voicegen.core.logging import debug, fail, get_logger, info, success, warn
from voicegen.core.metrics import metrics
from voicegen.history.store import (
    GenerationDraft,
    GenerationRecord,
    GenerationStore,
    InMemoryGenerationStore,
    NullGenerationStore,
    RecordFilter,
)
from voicegen.provider.elevenlabs import ElevenLabsAdapter
from voicegen.services.errors import (
    ErrorCode,
    InternalError,
    ProviderError,
    ValidationError,
    VoiceGenError,
)
from voicegen.services.models import SynthesisRequest
from voicegen.services.validators import validate_generation_request
from voicegen.utils.timeit import timeit

_LOG = get_logger("voicegen.service")


@dataclass
class GenerationResult:
    """
    Result of a successful generation.

    Attributes:
        audio_bytes: Provider audio, unmodified.
        content_type: Provider media type.
        filename: Download name, voice_<epoch-millis>.mp3.
        draft: What to record once the response is on its way.
        request_id: Request ID for tracing.
        total_seconds: Validation plus provider time.
    """
    audio_bytes: bytes
    content_type: str
    filename: str
    draft: GenerationDraft
    request_id: str
    total_seconds: float


def download_filename(now: Optional[float] = None) -> str:
    """Attachment name for generated audio, e.g. voice_1718000000000.mp3."""
    millis = int((time.time() if now is None else now) * 1000)
    return f"voice_{millis}.mp3"


def build_store(config: ServiceConfig) -> GenerationStore:
    """Create the record store selected by the history config section."""
    if not config.history.enabled:
        return NullGenerationStore()
    return InMemoryGenerationStore(max_records=config.history.max_records or None)


class VoiceService:
    """
    Generation pipeline: validate, synthesize, record.

    Holds no per-request state; one instance serves all requests.

    Usage:
        service = VoiceService.from_settings(load_settings(missing_ok=True))
        result = service.generate(body, request_id="req-123")
        service.record(result.draft)
    """

    def __init__(
        self,
        config: ServiceConfig,
        adapter: ElevenLabsAdapter,
        store: GenerationStore,
    ):
        self._config = config
        self._adapter = adapter
        self._store = store
        self._preview_chars = config.logging.script_preview_chars
        metrics.set_history_records(len(store))

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        adapter: Optional[ElevenLabsAdapter] = None,
        store: Optional[GenerationStore] = None,
    ) -> "VoiceService":
        """Build the service and its collaborators from settings."""
        config = settings.get_service_config()
        return cls(
            config=config,
            adapter=adapter or ElevenLabsAdapter.from_config(config.provider),
            store=store if store is not None else build_store(config),
        )

    @property
    def config(self) -> ServiceConfig:
        return self._config

    @property
    def adapter(self) -> ElevenLabsAdapter:
        return self._adapter

    @property
    def store(self) -> GenerationStore:
        return self._store

    # =========================================================================
    # Pipeline
    # =========================================================================

    def validate(self, body: Any) -> SynthesisRequest:
        """Validate a decoded body against the configured limits."""
        return validate_generation_request(body, max_script_chars=self._config.limits.max_script_chars)

    def generate(self, body: Any, request_id: str) -> GenerationResult:
        """
        Process one generation request.

        Args:
            body: Decoded JSON body.
            request_id: Unique ID for request tracing.

        Returns:
            GenerationResult. The caller records result.draft afterwards.

        Raises:
            ValidationError: Input rejected; the provider was not called.
            ProviderError: Provider answered with a non-2xx status.
            InternalError: Anything else.
        """
        with timeit("request_total") as total_t:
            try:
                request = self.validate(body)
            except ValidationError as e:
                info(_LOG, "rejected", code=e.code, field=e.field)
                metrics.record_request("rejected", duration=total_t.seconds)
                raise

            info(_LOG, "request", **request.describe())
            if self._preview_chars > 0:
                debug(_LOG, "script_preview", preview=request.script[:self._preview_chars])

            try:
                audio = self._adapter.synthesize(request)
            except ProviderError as e:
                warn(_LOG, "provider_rejected", status_code=e.upstream_status)
                metrics.record_request("failed_provider", duration=total_t.seconds)
                raise
            except VoiceGenError:
                metrics.record_request("failed_internal", duration=total_t.seconds)
                raise
            except httpx.HTTPError as e:
                fail(_LOG, "provider_call_failed", error_type=type(e).__name__, error=str(e))
                metrics.record_request("failed_internal", duration=total_t.seconds)
                raise InternalError()
            except Exception as e:
                fail(_LOG, "request_failed", exc_info=True, error_type=type(e).__name__)
                metrics.record_request("failed_internal", duration=total_t.seconds)
                raise InternalError()

        total_s = total_t.seconds
        success(_LOG, "done", bytes=len(audio.audio_bytes), seconds=round(total_s, 3))
        metrics.record_request("completed", duration=total_s, audio_bytes=len(audio.audio_bytes))

        return GenerationResult(
            audio_bytes=audio.audio_bytes,
            content_type=audio.content_type,
            filename=download_filename(),
            draft=GenerationDraft.from_request(request),
            request_id=request_id,
            total_seconds=total_s,
        )

    def record(self, draft: GenerationDraft) -> Optional[GenerationRecord]:
        """
        Append a generation record, best effort.

        A store failure is logged and swallowed: the caller already has its
        audio and must not see an error for this.

        Returns:
            The stored record, or None if the store failed.
        """
        try:
            record = self._store.append(draft)
        except Exception as e:
            fail(_LOG, "history_append_failed", exc_info=True, error_type=type(e).__name__)
            return None
        metrics.set_history_records(len(self._store))
        debug(_LOG, "history_recorded", record_id=record.id)
        return record

    # =========================================================================
    # History and health
    # =========================================================================

    def list_history(
        self,
        limit: Optional[int] = None,
        voice_id: Optional[str] = None,
    ) -> List[GenerationRecord]:
        """
        Newest records first, never more than the configured display limit.

        Args:
            limit: Optional lower cap, clamped to 1..display_limit.
            voice_id: Only records for this voice.
        """
        cap = self._config.history.display_limit
        if limit is not None:
            cap = max(1, min(limit, cap))
        record_filter = RecordFilter(voice_id=voice_id) if voice_id else None
        return self._store.list(record_filter, limit=cap)

    def get_health_info(self) -> Dict[str, Any]:
        """Service status for /health."""
        return {
            "status": "ok",
            "version": __version__,
            "provider": self._config.provider.base_url,
            "history": {
                "enabled": not isinstance(self._store, NullGenerationStore),
                "records": len(self._store),
            },
        }

    def close(self) -> None:
        self._adapter.close()


# =============================================================================
# Global Service Singleton
# =============================================================================

_service: Optional[VoiceService] = None
_service_lock = threading.Lock()


def get_service(settings: Settings) -> VoiceService:
    """
    Get or create the global VoiceService instance.

    Thread-safe lazy singleton.
    """
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = VoiceService.from_settings(settings)
    return _service


def reset_service() -> None:
    """Close and drop the global service. Used by tests."""
    global _service
    with _service_lock:
        if _service is not None:
            _service.close()
        _service = None


__all__ = [
    "ErrorCode",
    "VoiceGenError",
    "ValidationError",
    "ProviderError",
    "InternalError",
    "GenerationResult",
    "VoiceService",
    "build_store",
    "download_filename",
    "get_service",
    "reset_service",
]
