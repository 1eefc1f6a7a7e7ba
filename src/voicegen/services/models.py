"""
Validated Request Model for Voice Generation.

These immutable types are what the validator produces and what the
provider adapter consumes. They are provider-agnostic: percent dials keep
their 0-100 scale here and are converted to provider fractions only in
voicegen.provider.

Types:
    VoiceModel: The four supported provider model identifiers
    VoiceSettings: Four bounded voice-shaping dials
    SynthesisRequest: A fully validated generation request

Bounds:
    stability, similarity, style_exaggeration: [0, 100] percent
    speed: [0.25, 2.0] multiplier
    script: 1-10000 characters
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from pydantic import SecretStr

PERCENT_MIN = 0
PERCENT_MAX = 100
SPEED_MIN = 0.25
SPEED_MAX = 2.0
MAX_SCRIPT_CHARS = 10000


class VoiceModel(str, Enum):
    """
    Provider model identifiers accepted by the proxy.

    Values are sent verbatim as model_id to the provider.
    """
    MULTILINGUAL_V2 = "eleven_multilingual_v2"
    FLASH_V2_5 = "eleven_flash_v2_5"
    V3 = "eleven_v3"
    TURBO_V2_5 = "eleven_turbo_v2_5"

    @property
    def label(self) -> str:
        """Human-readable name shown by clients."""
        return _MODEL_LABELS[self]


_MODEL_LABELS = {
    VoiceModel.MULTILINGUAL_V2: "Eleven Multilingual V2",
    VoiceModel.FLASH_V2_5: "Eleven Flash V2.5 (Fast)",
    VoiceModel.V3: "Eleven V3 (Premium)",
    VoiceModel.TURBO_V2_5: "Eleven Turbo V2.5 (Fastest)",
}

DEFAULT_MODEL = VoiceModel.FLASH_V2_5


def displayable_text(text: str) -> str:
    """Replace unpaired surrogates with U+FFFD so the text can be UTF-8 encoded."""
    return text.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "replace")


@dataclass(frozen=True)
class VoiceSettings:
    """
    Voice-shaping dials in client units.

    Attributes:
        stability: Percent, 0-100.
        similarity: Percent, 0-100.
        style_exaggeration: Percent, 0-100.
        speed: Speaking rate multiplier, 0.25-2.0.
    """
    stability: float = 50
    similarity: float = 65
    style_exaggeration: float = 0
    speed: float = 0.85

    def to_wire(self) -> Dict[str, float]:
        """Serialize with the camelCase names used on the HTTP API."""
        return {
            "stability": self.stability,
            "similarity": self.similarity,
            "styleExaggeration": self.style_exaggeration,
            "speed": self.speed,
        }


@dataclass(frozen=True)
class SynthesisRequest:
    """
    A generation request that passed every validation check.

    Only validate_generation_request() should build these. The credential
    is a SecretStr so it never shows up in repr() or in log fields.

    Attributes:
        script: Text to speak (1-10000 characters).
        credential: Provider API key.
        voice_id: Provider voice identifier.
        model: Provider model.
        settings: Voice-shaping dials.
    """
    script: str
    credential: SecretStr = field(repr=False)
    voice_id: str
    model: VoiceModel
    settings: VoiceSettings

    def describe(self) -> Dict[str, Any]:
        """Loggable summary: no credential and no script text."""
        return {
            "chars": len(self.script),
            "voice_id": self.voice_id,
            "model": self.model.value,
            **self.settings.to_wire(),
        }
