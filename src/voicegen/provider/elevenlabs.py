"""
ElevenLabs Provider Adapter.

Translates a validated SynthesisRequest into the provider's wire format,
makes exactly one HTTP call, and returns either the raw audio bytes or a
ProviderError carrying the upstream status and body text.

Wire Format:
    POST {base_url}/v1/text-to-speech/{voice_id}/stream
    Headers:
        xi-api-key: <credential>
        Content-Type: application/json
        Accept: audio/mpeg
    Body (JSON with non-ASCII characters escaped):
        {
            "text": "<script>",
            "model_id": "eleven_flash_v2_5",
            "voice_settings": {
                "stability": 0.5,            # stability / 100
                "similarity_boost": 0.75,    # similarity / 100
                "style": 0.0,                # always 0.0
                "style_exaggeration": 0.0,   # styleExaggeration / 100
                "speed": 1.0                 # passed through unscaled
            }
        }

Note on "style":
    The provider's own style parameter is always sent as 0.0, while the
    user's style dial travels as style_exaggeration. This mirrors the
    behavior clients already depend on and is kept as-is.

Failure Semantics:
    - No retry and no backoff: one call per synthesize()
    - Non-2xx status -> ProviderError(status, body_text), body not parsed
    - Transport failures (DNS, connect, timeout) -> httpx.HTTPError propagates

Example:
    >>> with ElevenLabsAdapter(base_url="https://api.elevenlabs.io") as adapter:
    ...     result = adapter.synthesize(request)
    >>> len(result.audio_bytes)
    48213
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from voicegen.core.config import Defaults
from voicegen.core.logging import debug, get_logger, verbose, warn
from voicegen.core.metrics import metrics
from voicegen.services.errors import ProviderError
from voicegen.services.models import SynthesisRequest
from voicegen.utils.timeit import timeit

_LOG = get_logger("voicegen.provider")

# Fixed provider "style" value; the user dial maps to style_exaggeration
FIXED_STYLE = 0.0


@dataclass(frozen=True)
class AudioResult:
    """
    Successful synthesis output.

    Attributes:
        audio_bytes: Audio exactly as returned by the provider.
        content_type: Provider-declared media type (e.g. "audio/mpeg").
    """
    audio_bytes: bytes
    content_type: str


def _percent_to_fraction(value: float) -> float:
    return value / 100


def build_payload(request: SynthesisRequest) -> Dict[str, Any]:
    """
    Build the provider JSON body for a validated request.

    Percent dials become fractions in [0, 1]; speed is passed unchanged.

    Args:
        request: Validated request.

    Returns:
        JSON-serializable dict (contains no credential).

    Example:
        >>> build_payload(req)["voice_settings"]["stability"]   # stability=50
        0.5
    """
    settings = request.settings
    return {
        "text": request.script,
        "model_id": request.model.value,
        "voice_settings": {
            "stability": _percent_to_fraction(settings.stability),
            "similarity_boost": _percent_to_fraction(settings.similarity),
            "style": FIXED_STYLE,
            "style_exaggeration": _percent_to_fraction(settings.style_exaggeration),
            "speed": settings.speed,
        },
    }


def synthesis_path(voice_id: str) -> str:
    """URL path for a voice; the id is quoted so it stays one path segment."""
    return f"/v1/text-to-speech/{quote(voice_id, safe='', errors='surrogatepass')}/stream"


class ElevenLabsAdapter:
    """
    Thin synchronous client for the ElevenLabs text-to-speech endpoint.

    Stateless per call: the credential comes with each request and is only
    placed in the outgoing header. The underlying httpx.Client is created
    lazily and reused for connection pooling.

    Attributes:
        base_url: Provider root URL.
        default_content_type: Media type assumed when the provider omits it.
    """

    def __init__(
        self,
        base_url: str = Defaults.PROVIDER_BASE_URL,
        timeout_s: float = Defaults.PROVIDER_TIMEOUT_S,
        connect_timeout_s: float = Defaults.PROVIDER_CONNECT_TIMEOUT_S,
        default_content_type: str = Defaults.PROVIDER_CONTENT_TYPE,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Args:
            base_url: Provider root URL.
            timeout_s: Read/write/pool timeout. Keep it generous, there is no retry.
            connect_timeout_s: TCP/TLS connect timeout.
            default_content_type: Fallback media type for the audio.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self.default_content_type = default_content_type
        self._timeout = httpx.Timeout(timeout_s, connect=connect_timeout_s)
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @classmethod
    def from_config(cls, config, transport: Optional[httpx.BaseTransport] = None) -> "ElevenLabsAdapter":
        """Create an adapter from a ProviderConfig section."""
        return cls(
            base_url=config.base_url,
            timeout_s=config.timeout_s,
            connect_timeout_s=config.connect_timeout_s,
            default_content_type=config.default_content_type,
            transport=transport,
        )

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close pooled connections. The adapter can be used again afterwards."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "ElevenLabsAdapter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def synthesize(self, request: SynthesisRequest) -> AudioResult:
        """
        Synthesize speech for a validated request.

        Makes exactly one outbound call.

        Args:
            request: Validated SynthesisRequest.

        Returns:
            AudioResult with the provider bytes and content type.

        Raises:
            ProviderError: Provider answered with a non-2xx status.
            httpx.HTTPError: The call could not complete (network, timeout).
        """
        payload = build_payload(request)
        headers = {
            "xi-api-key": request.credential.get_secret_value(),
            "Content-Type": "application/json",
            "Accept": self.default_content_type,
        }
        debug(_LOG, "provider_payload", voice_settings=payload["voice_settings"], model_id=payload["model_id"])

        try:
            with timeit("provider") as t:
                response = self._get_client().post(
                    synthesis_path(request.voice_id),
                    content=json.dumps(payload),
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            metrics.record_provider_call(None, t.seconds)
            warn(_LOG, "provider_unreachable", error_type=type(exc).__name__, seconds=round(t.seconds, 3))
            raise
        metrics.record_provider_call(response.status_code, t.seconds)

        if not response.is_success:
            body = response.text
            warn(
                _LOG, "provider_error",
                status_code=response.status_code,
                body_chars=len(body),
                seconds=round(t.seconds, 3),
            )
            raise ProviderError(response.status_code, body)

        content_type = response.headers.get("content-type") or self.default_content_type
        verbose(
            _LOG, "provider_ok",
            status_code=response.status_code,
            bytes=len(response.content),
            content_type=content_type,
            seconds=round(t.seconds, 3),
        )
        return AudioResult(audio_bytes=response.content, content_type=content_type)
