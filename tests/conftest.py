"""Shared fixtures: request bodies and a fake provider."""
from __future__ import annotations

import copy
import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from voicegen.core.config import Settings
from voicegen.history.store import InMemoryGenerationStore
from voicegen.provider.elevenlabs import ElevenLabsAdapter

PROVIDER_URL = "https://provider.test"
SECRET_KEY = "sk-test-0123456789abcdef"

VALID_BODY: Dict[str, Any] = {
    "script": "Hello there, this is a test.",
    "apiKey": SECRET_KEY,
    "voiceId": "21m00Tcm4TlvDq8ikWAM",
    "model": "eleven_flash_v2_5",
    "settings": {"stability": 50, "similarity": 75, "styleExaggeration": 0, "speed": 1.0},
}


def make_body(**overrides: Any) -> Dict[str, Any]:
    """VALID_BODY with top-level fields replaced (settings merged)."""
    body = copy.deepcopy(VALID_BODY)
    settings = overrides.pop("settings", None)
    body.update(overrides)
    if settings is not None:
        body["settings"].update(settings)
    return body


class FakeProvider:
    """
    httpx handler standing in for the provider.

    Records every request; answers with `status`, `content` and
    `content_type`, or raises `error` if set.
    """

    def __init__(
        self,
        status: int = 200,
        content: bytes = b"ID3" + bytes(997),
        content_type: Optional[str] = "audio/mpeg",
        error: Optional[Callable[[httpx.Request], Exception]] = None,
    ):
        self.status = status
        self.content = content
        self.content_type = content_type
        self.error = error
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error(request)
        headers = {"content-type": self.content_type} if self.content_type else {}
        return httpx.Response(self.status, content=self.content, headers=headers)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)

    def adapter(self) -> ElevenLabsAdapter:
        return ElevenLabsAdapter(base_url=PROVIDER_URL, transport=httpx.MockTransport(self))


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def store() -> InMemoryGenerationStore:
    return InMemoryGenerationStore()


@pytest.fixture
def settings() -> Settings:
    return Settings(raw={"provider": {"base_url": PROVIDER_URL}})
