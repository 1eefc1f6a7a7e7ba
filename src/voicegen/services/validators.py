"""
Input Validation for Voice Generation Requests.

Validation happens before anything is sent to the provider:
    - Reject invalid requests before the (billable) provider call
    - Give clear, specific error messages
    - Never forward a partially valid request

Validation Rules:
    - script: Required, 1-10000 characters (UTF-16 code units, like browsers count)
    - apiKey: Required, non-empty string
    - voiceId: Required, non-empty string
    - model: One of the four VoiceModel values
    - settings: Required object with four dials
        stability, similarity, styleExaggeration: 0-100
        speed: 0.25-2.0

Check Order:
    1. Body is an object                  -> INVALID_BODY
    2. Every top-level field present      -> MISSING_FIELD
    3. Script length                      -> SCRIPT_TOO_LONG
    4. Model                              -> UNKNOWN_MODEL
    5. Each dial (present, numeric, bound) -> MISSING_FIELD / OUT_OF_RANGE

Error Handling:
    All validation functions raise ValidationError with:
        - message: Human-readable error description
        - code: Machine-readable error code (e.g., "SCRIPT_TOO_LONG")
        - field: Wire name of the offending field, when there is one

Usage:
    from voicegen.services.validators import (
        validate_generation_request,
        ValidationError,
    )

    try:
        request = validate_generation_request(body)
    except ValidationError as e:
        return error_response(e.code, e.message)
"""
from __future__ import annotations

import math
from typing import Any, Mapping, Optional

from pydantic import SecretStr

from voicegen.services.models import (
    MAX_SCRIPT_CHARS,
    PERCENT_MAX,
    PERCENT_MIN,
    SPEED_MAX,
    SPEED_MIN,
    SynthesisRequest,
    VoiceModel,
    VoiceSettings,
)

REQUIRED_FIELDS = ("script", "apiKey", "voiceId", "model", "settings")

# wire name -> (attribute name, min, max)
DIAL_BOUNDS = {
    "stability": ("stability", PERCENT_MIN, PERCENT_MAX),
    "similarity": ("similarity", PERCENT_MIN, PERCENT_MAX),
    "styleExaggeration": ("style_exaggeration", PERCENT_MIN, PERCENT_MAX),
    "speed": ("speed", SPEED_MIN, SPEED_MAX),
}


class ValidationError(Exception):
    """
    Exception raised when input validation fails.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code for programmatic handling.
        field: Offending field (wire name), or None.

    Example:
        >>> raise ValidationError("Missing required field: script", "MISSING_FIELD", "script")
    """

    def __init__(self, message: str, code: str = "VALIDATION_ERROR", field: Optional[str] = None):
        self.message = message
        self.code = code
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to the standard error body used by the API."""
        result = {"ok": False, "error": self.code, "message": self.message}
        if self.field:
            result["field"] = self.field
        return result


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, Mapping)) and len(value) == 0:
        return True
    return False


def script_length(script: str) -> int:
    """
    Length of a script in UTF-16 code units.

    Browser clients count characters this way, so the server limit agrees
    with the counter the user sees (an emoji counts as 2).
    """
    return len(script.encode("utf-16-le", "surrogatepass")) // 2


def validate_script(script: Any, max_length: int = MAX_SCRIPT_CHARS) -> str:
    """
    Validate the script text.

    The script is not trimmed: whitespace is part of what gets spoken.

    Args:
        script: Candidate script.
        max_length: Maximum allowed length in UTF-16 code units.

    Returns:
        The script, unchanged.

    Raises:
        ValidationError: MISSING_FIELD or SCRIPT_TOO_LONG.
    """
    if not isinstance(script, str) or not script:
        raise ValidationError("Missing required field: script", "MISSING_FIELD", "script")

    length = script_length(script)
    if length > max_length:
        raise ValidationError(
            f"Script exceeds {max_length:,} character limit ({length:,} > {max_length:,})",
            "SCRIPT_TOO_LONG",
            "script",
        )
    return script


def validate_credential(api_key: Any) -> SecretStr:
    """
    Validate the provider API key and wrap it as a secret.

    Raises:
        ValidationError: MISSING_FIELD if absent, empty or not a string.
    """
    if not isinstance(api_key, str) or not api_key:
        raise ValidationError("Missing required field: apiKey", "MISSING_FIELD", "apiKey")
    return SecretStr(api_key)


def validate_voice_id(voice_id: Any) -> str:
    """
    Validate the provider voice identifier.

    Raises:
        ValidationError: MISSING_FIELD if absent, empty or not a string.
    """
    if not isinstance(voice_id, str) or not voice_id:
        raise ValidationError("Missing required field: voiceId", "MISSING_FIELD", "voiceId")
    return voice_id


def validate_model(model: Any) -> VoiceModel:
    """
    Validate the model identifier against the supported set.

    Raises:
        ValidationError: MISSING_FIELD if absent, UNKNOWN_MODEL otherwise.
    """
    if _is_blank(model):
        raise ValidationError("Missing required field: model", "MISSING_FIELD", "model")
    try:
        return VoiceModel(model)
    except ValueError:
        allowed = ", ".join(m.value for m in VoiceModel)
        raise ValidationError(
            f"Unknown model {model!r}; expected one of: {allowed}",
            "UNKNOWN_MODEL",
            "model",
        )


def validate_dial(name: str, value: Any, min_value: float, max_value: float) -> float:
    """
    Validate one numeric dial against its inclusive bounds.

    Args:
        name: Field name used in error messages.
        value: Candidate value.
        min_value: Inclusive lower bound.
        max_value: Inclusive upper bound.

    Returns:
        The value (int or float, unchanged).

    Raises:
        ValidationError: OUT_OF_RANGE for non-numbers, NaN, or out-of-bound values.
    """
    # bool is an int subclass; True is not a stability of 1
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number", "OUT_OF_RANGE", name)

    if (isinstance(value, float) and math.isnan(value)) or not (min_value <= value <= max_value):
        raise ValidationError(
            f"{name} must be between {min_value} and {max_value}, got {value}",
            "OUT_OF_RANGE",
            name,
        )
    return value


def validate_voice_settings(settings: Any) -> VoiceSettings:
    """
    Validate the settings object and its four dials.

    Raises:
        ValidationError: MISSING_FIELD if settings or a dial is absent,
            OUT_OF_RANGE if a dial is outside its bound.
    """
    if not isinstance(settings, Mapping) or not settings:
        raise ValidationError("Missing required field: settings", "MISSING_FIELD", "settings")

    values = {}
    for wire_name, (attr, low, high) in DIAL_BOUNDS.items():
        field_name = f"settings.{wire_name}"
        if settings.get(wire_name) is None:
            raise ValidationError(f"Missing required field: {field_name}", "MISSING_FIELD", field_name)
        values[attr] = validate_dial(field_name, settings[wire_name], low, high)

    return VoiceSettings(**values)


def validate_generation_request(
    candidate: Any,
    max_script_chars: int = MAX_SCRIPT_CHARS,
) -> SynthesisRequest:
    """
    Validate a raw generation request body.

    Pure and deterministic: no I/O, no logging of field values.

    Args:
        candidate: Decoded JSON body (expected to be an object).
        max_script_chars: Script limit (configurable, default 10000).

    Returns:
        Immutable SynthesisRequest.

    Raises:
        ValidationError: With the specific code of the first violated rule.
    """
    if not isinstance(candidate, Mapping):
        raise ValidationError("Request body must be a JSON object", "INVALID_BODY")

    for name in REQUIRED_FIELDS:
        if _is_blank(candidate.get(name)):
            raise ValidationError(f"Missing required field: {name}", "MISSING_FIELD", name)

    script = validate_script(candidate["script"], max_length=max_script_chars)
    credential = validate_credential(candidate["apiKey"])
    voice_id = validate_voice_id(candidate["voiceId"])
    model = validate_model(candidate["model"])
    settings = validate_voice_settings(candidate["settings"])

    return SynthesisRequest(
        script=script,
        credential=credential,
        voice_id=voice_id,
        model=model,
        settings=settings,
    )
