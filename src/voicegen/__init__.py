"""
voicegen: Validating proxy and CLI for a hosted text-to-speech provider.

A small FastAPI service that accepts a script, an API credential, a voice
identifier, a model choice and four voice-shaping dials, validates them,
forwards exactly one synthesis call to the provider (ElevenLabs API) and
returns the audio bytes unchanged.

Key Features:
    - Strict request validation with specific error codes
    - Provider adapter that scales percent dials to provider fractions
    - Proxy endpoint with CORS preflight handling (/api/generate-voice)
    - In-memory generation history (/api/voice-history)
    - Structured logging with credential redaction
    - Prometheus metrics (/metrics)
    - Command-line client with a local profile (recent voices, export/import)

Example Usage:
    >>> from voicegen.services.validators import validate_generation_request
    >>> from voicegen.provider import ElevenLabsAdapter
    >>>
    >>> request = validate_generation_request({
    ...     "script": "Hello there",
    ...     "apiKey": "sk-...",
    ...     "voiceId": "21m00Tcm4TlvDq8ikWAM",
    ...     "model": "eleven_flash_v2_5",
    ...     "settings": {"stability": 50, "similarity": 75,
    ...                  "styleExaggeration": 0, "speed": 1.0},
    ... })
    >>> with ElevenLabsAdapter() as adapter:
    ...     audio = adapter.synthesize(request)
    >>> with open("voice.mp3", "wb") as f:
    ...     f.write(audio.audio_bytes)
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
