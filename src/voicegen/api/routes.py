"""
Voice Generation API Routes.

Endpoints:
    POST    /api/generate-voice   - Validate, synthesize once, return audio
    OPTIONS /api/generate-voice   - Preflight, 200 with empty body
    GET     /api/voice-history    - Recent generations, newest first
    OPTIONS /api/voice-history    - Preflight, 200 with empty body
    GET     /health               - Liveness and basic status
    GET     /metrics              - Prometheus metrics

Any other method on these paths answers 405 METHOD_NOT_ALLOWED
(see api/errors.py).

Request Flow (generate-voice):
    1. Assign a request ID for tracing
    2. Validate the body (400 on the first violated rule)
    3. Call the provider exactly once
    4. Return the audio bytes as a download
    5. Record the generation in a background task, after the response

Error Handling:
    {
        "ok": false,
        "error": "<ERROR_CODE>",
        "message": "<human readable message>",
        "field": "<offending field, validation only>"
    }

    Status codes:
        - Validation errors -> 400
        - PROVIDER_ERROR -> the provider's own status (e.g. 401, 422)
        - INTERNAL_ERROR -> 500 (with request_id, no details)

Example Usage:
    curl -X POST http://localhost:8000/api/generate-voice \\
        -H "Content-Type: application/json" \\
        -d '{"script": "Hello!", "apiKey": "...", "voiceId": "21m00Tcm4TlvDq8ikWAM",
             "model": "eleven_flash_v2_5",
             "settings": {"stability": 50, "similarity": 75,
                          "styleExaggeration": 0, "speed": 1.0}}' \\
        --output voice.mp3
"""
from __future__ import annotations

import uuid
from typing import Any, List, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query, Request, Response

from voicegen.api.dependencies import get_voice_service
from voicegen.api.errors import internal_error_response, voicegen_error_response
from voicegen.api.schemas import EXAMPLE_REQUEST, ErrorResponse, GenerationRecordOut, HealthResponse
from voicegen.core.logging import fail, get_logger, set_request_id
from voicegen.core.metrics import metrics
from voicegen.services.voice_service import ValidationError, VoiceGenError, VoiceService

router = APIRouter()

_LOG = get_logger("voicegen.api")

GENERATE_PATH = "/api/generate-voice"
HISTORY_PATH = "/api/voice-history"


def _new_request_id(request: Request) -> str:
    rid = str(uuid.uuid4())[:12]
    set_request_id(rid)
    request.state.request_id = rid
    return rid


@router.options(GENERATE_PATH, include_in_schema=False)
@router.options(HISTORY_PATH, include_in_schema=False)
def preflight():
    """Preflight short-circuit: 200, empty body, no validation."""
    return Response(status_code=200)


@router.post(
    GENERATE_PATH,
    response_class=Response,
    responses={
        200: {"content": {"audio/mpeg": {}}, "description": "Generated audio"},
        400: {"model": ErrorResponse, "description": "Invalid request"},
        500: {"model": ErrorResponse, "description": "Internal error"},
    },
)
def generate_voice(
    request: Request,
    background_tasks: BackgroundTasks,
    body: Any = Body(None, examples=[EXAMPLE_REQUEST]),
    service: VoiceService = Depends(get_voice_service),
):
    """
    Generate speech from a script.

    The body is validated before anything is sent to the provider. On
    success the provider's bytes are returned unchanged as an attachment.

    Returns:
        Response: Audio bytes with headers:
            - Content-Disposition: attachment; filename="voice_<millis>.mp3"
            - X-Request-Id: Unique request identifier for tracing
            - X-Bytes: Size of the audio in bytes
    """
    rid = _new_request_id(request)

    try:
        result = service.generate(body, rid)
    except (ValidationError, VoiceGenError) as e:
        return voicegen_error_response(e, rid)
    except Exception as e:
        # Log internally, never expose details
        fail(_LOG, "generate_failed", exc_info=True, error_type=type(e).__name__)
        return internal_error_response(rid)

    # Runs after the response is sent; failures are logged only
    background_tasks.add_task(service.record, result.draft)

    headers = {
        "Content-Disposition": f'attachment; filename="{result.filename}"',
        "X-Request-Id": rid,
        "X-Bytes": str(len(result.audio_bytes)),
    }
    return Response(content=result.audio_bytes, media_type=result.content_type, headers=headers)


@router.get(HISTORY_PATH, response_model=List[GenerationRecordOut])
def voice_history(
    limit: Optional[int] = Query(None, description="Lower the number of records returned"),
    voice_id: Optional[str] = Query(None, alias="voiceId", description="Only records for this voice"),
    service: VoiceService = Depends(get_voice_service),
):
    """
    Recent generations, newest first.

    At most history.display_limit records (default 10). Empty when
    history is disabled.
    """
    records = service.list_history(limit=limit, voice_id=voice_id)
    return [record.to_dict() for record in records]


@router.get("/health", response_model=HealthResponse)
def health(service: VoiceService = Depends(get_voice_service)):
    """Health check for load balancers and probes."""
    return service.get_health_info()


@router.get("/metrics")
def prometheus_metrics():
    """Prometheus metrics in text exposition format."""
    content, content_type = metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)
