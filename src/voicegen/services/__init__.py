"""
voicegen Services Layer.

Business logic between the HTTP API and the provider adapter.

Components:
    - models.py: Validated request types (VoiceModel, VoiceSettings, SynthesisRequest)
    - validators.py: Request validation with specific error codes
    - errors.py: Error codes and exception hierarchy
    - voice_service.py: VoiceService (validate -> synthesize -> record)

voice_service is not re-exported here because it depends on
voicegen.provider, which itself imports from this package.
"""
from .errors import ErrorCode, InternalError, ProviderError, VoiceGenError
from .models import SynthesisRequest, VoiceModel, VoiceSettings
from .validators import ValidationError, validate_generation_request

__all__ = [
    "ErrorCode",
    "InternalError",
    "ProviderError",
    "VoiceGenError",
    "ValidationError",
    "SynthesisRequest",
    "VoiceModel",
    "VoiceSettings",
    "validate_generation_request",
]
