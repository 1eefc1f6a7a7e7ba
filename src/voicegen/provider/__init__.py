"""
Provider adapters for voicegen.

    - elevenlabs.py: ElevenLabs text-to-speech adapter (httpx)
"""
from .elevenlabs import AudioResult, ElevenLabsAdapter, build_payload

__all__ = ["AudioResult", "ElevenLabsAdapter", "build_payload"]
