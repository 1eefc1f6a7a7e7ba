"""
API Request/Response Schemas.

Pydantic models describing the HTTP API. They drive the OpenAPI document
and the typed responses of the read-only endpoints.

The generation endpoint does not let pydantic validate its body: the
validator in voicegen.services.validators produces the specific error
codes (MISSING_FIELD, SCRIPT_TOO_LONG, ...) callers rely on, so the body
is parsed as plain JSON and handed over. EXAMPLE_REQUEST documents it.

Models:
    VoiceSettingsOut: The four dials, camelCase on the wire
    GenerationRecordOut: One entry of GET /api/voice-history
    HealthResponse: Body of GET /health
    ErrorResponse: Standard error body

Example Request:
    {
        "script": "Hello there.",
        "apiKey": "sk_...",
        "voiceId": "21m00Tcm4TlvDq8ikWAM",
        "model": "eleven_flash_v2_5",
        "settings": {"stability": 50, "similarity": 75,
                     "styleExaggeration": 0, "speed": 1.0}
    }
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from voicegen.services.models import (
    DEFAULT_MODEL,
    PERCENT_MAX,
    PERCENT_MIN,
    SPEED_MAX,
    SPEED_MIN,
    VoiceModel,
)

EXAMPLE_REQUEST: Dict[str, Any] = {
    "script": "Hello there.",
    "apiKey": "sk_...",
    "voiceId": "21m00Tcm4TlvDq8ikWAM",
    "model": DEFAULT_MODEL.value,
    "settings": {"stability": 50, "similarity": 75, "styleExaggeration": 0, "speed": 1.0},
}


class VoiceSettingsOut(BaseModel):
    """Voice-shaping dials with their wire names."""
    model_config = ConfigDict(populate_by_name=True)

    stability: float = Field(50, ge=PERCENT_MIN, le=PERCENT_MAX, description="Percent, 0-100")
    similarity: float = Field(65, ge=PERCENT_MIN, le=PERCENT_MAX, description="Percent, 0-100")
    style_exaggeration: float = Field(
        0, ge=PERCENT_MIN, le=PERCENT_MAX, alias="styleExaggeration", description="Percent, 0-100"
    )
    speed: float = Field(0.85, ge=SPEED_MIN, le=SPEED_MAX, description="Multiplier, 0.25-2.0")


class GenerationRecordOut(BaseModel):
    """One history entry. Never carries the credential or the audio."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    script: str
    voice_id: str = Field(..., alias="voiceId")
    model: VoiceModel
    settings: VoiceSettingsOut
    created_at: datetime = Field(..., alias="createdAt")
    audio_url: Optional[str] = Field(None, alias="audioUrl")


class HistoryStatus(BaseModel):
    enabled: bool
    records: int


class HealthResponse(BaseModel):
    """Body of GET /health."""
    status: str = Field(..., description='"ok" when the process serves requests')
    version: str
    provider: str = Field(..., description="Provider base URL")
    history: HistoryStatus


class ErrorResponse(BaseModel):
    """
    Standard error body.

    field is set for validation errors, details for provider errors and
    request_id for internal errors.
    """
    ok: bool = False
    error: str
    message: str
    field: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    request_id: Optional[str] = None
