"""
Error Codes and Exceptions for the Generation Pipeline.

Taxonomy:
    ValidationError (validators.py)  client-caused, 400, never retried
    ProviderError                    upstream-caused, status passed through
    InternalError                    unexpected local fault, generic 500

Every error carries a machine-readable code and serializes to the
standard API error body:
    {"ok": false, "error": "<CODE>", "message": "...", "details": {...}}
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from voicegen.services.validators import ValidationError

# Status used when the provider answers with something that is not an
# HTTP error status (e.g. an unexpected redirect)
BAD_GATEWAY = 502


class ErrorCode:
    """
    Standardized error codes for API responses.
    """
    INVALID_BODY = "INVALID_BODY"               # Body not a JSON object
    INVALID_QUERY = "INVALID_QUERY"             # Bad query parameter
    MISSING_FIELD = "MISSING_FIELD"             # Required field absent/empty
    SCRIPT_TOO_LONG = "SCRIPT_TOO_LONG"         # Script over the limit
    OUT_OF_RANGE = "OUT_OF_RANGE"               # Dial outside its bound
    UNKNOWN_MODEL = "UNKNOWN_MODEL"             # Model not supported
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"   # Wrong HTTP method
    NOT_FOUND = "NOT_FOUND"                     # Unknown path
    PROVIDER_ERROR = "PROVIDER_ERROR"           # Upstream returned an error
    INTERNAL_ERROR = "INTERNAL_ERROR"           # Unexpected error


class VoiceGenError(Exception):
    """
    Base exception for pipeline errors.

    Attributes:
        message: Human-readable error message.
        code: Error code from ErrorCode.
        details: Optional dictionary with additional context.
    """
    status_code = 500

    def __init__(self, message: str, code: str = ErrorCode.INTERNAL_ERROR, details: Optional[Dict] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to standardized error response dict for API."""
        result: Dict[str, Any] = {
            "ok": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class ProviderError(VoiceGenError):
    """
    The provider answered with a non-success status.

    The body is kept as opaque text; it is never parsed.

    Attributes:
        upstream_status: HTTP status returned by the provider.
        body: Response body text, verbatim.
    """

    def __init__(self, upstream_status: int, body: str):
        self.upstream_status = upstream_status
        self.body = body
        super().__init__(
            f"ElevenLabs API Error: {upstream_status} - {body}",
            ErrorCode.PROVIDER_ERROR,
            {"status_code": upstream_status},
        )

    @property
    def status_code(self) -> int:  # type: ignore[override]
        """Status to answer the caller with (mirrors upstream errors)."""
        if 400 <= self.upstream_status <= 599:
            return self.upstream_status
        return BAD_GATEWAY


class InternalError(VoiceGenError):
    """Unexpected local failure. The message never carries the cause."""

    def __init__(self, message: str = "Internal server error", details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.INTERNAL_ERROR, details)


__all__ = [
    "ErrorCode",
    "VoiceGenError",
    "ValidationError",
    "ProviderError",
    "InternalError",
]
