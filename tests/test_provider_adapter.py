"""
Tests for the ElevenLabs provider adapter.

The provider is replaced by an httpx.MockTransport, so these tests check
the exact request that would go over the wire.
"""
from __future__ import annotations

import httpx
import pytest

from voicegen.core.metrics import metrics
from voicegen.provider.elevenlabs import ElevenLabsAdapter, build_payload, synthesis_path
from voicegen.services.errors import ProviderError
from voicegen.services.validators import validate_generation_request

from conftest import PROVIDER_URL, SECRET_KEY, FakeProvider, make_body


def _request(**overrides):
    return validate_generation_request(make_body(**overrides))


def _provider_calls(status: str) -> float:
    return metrics._registry.get_sample_value(
        "voicegen_provider_calls_total", {"status_code": status}
    ) or 0.0


class TestBuildPayload:
    """Tests for build_payload()."""

    def test_percent_dials_become_fractions(self):
        payload = build_payload(_request(settings={"stability": 50, "similarity": 75, "styleExaggeration": 20}))
        vs = payload["voice_settings"]
        assert vs["stability"] == pytest.approx(0.5)
        assert vs["similarity_boost"] == pytest.approx(0.75)
        assert vs["style_exaggeration"] == pytest.approx(0.2)

    def test_style_is_always_zero(self):
        """The user dial travels as style_exaggeration; style stays 0.0."""
        payload = build_payload(_request(settings={"styleExaggeration": 100}))
        assert payload["voice_settings"]["style"] == 0.0
        assert payload["voice_settings"]["style_exaggeration"] == pytest.approx(1.0)

    def test_speed_passed_unscaled(self):
        payload = build_payload(_request(settings={"speed": 0.85}))
        assert payload["voice_settings"]["speed"] == 0.85

    def test_text_and_model(self):
        payload = build_payload(_request(script="Hi  there ", model="eleven_v3"))
        assert payload["text"] == "Hi  there "
        assert payload["model_id"] == "eleven_v3"

    def test_no_credential_in_payload(self):
        assert SECRET_KEY not in str(build_payload(_request()))

    def test_bounds_map_to_unit_interval(self):
        low = build_payload(_request(settings={"stability": 0, "similarity": 0}))
        high = build_payload(_request(settings={"stability": 100, "similarity": 100}))
        assert low["voice_settings"]["stability"] == 0.0
        assert high["voice_settings"]["similarity_boost"] == 1.0


class TestSynthesisPath:
    def test_plain_voice_id(self):
        assert synthesis_path("21m00Tcm4TlvDq8ikWAM") == "/v1/text-to-speech/21m00Tcm4TlvDq8ikWAM/stream"

    def test_voice_id_is_one_segment(self):
        """Slashes and spaces in a voice id cannot change the route."""
        path = synthesis_path("a/b c")
        assert path == "/v1/text-to-speech/a%2Fb%20c/stream"

    def test_unpaired_surrogate_is_percent_encoded(self):
        assert synthesis_path("v\ud800") == "/v1/text-to-speech/v%ED%A0%80/stream"


class TestSynthesize:
    """Tests for ElevenLabsAdapter.synthesize()."""

    def test_success_returns_bytes_unchanged(self, provider: FakeProvider):
        with provider.adapter() as adapter:
            result = adapter.synthesize(_request())
        assert result.audio_bytes == provider.content
        assert result.content_type == "audio/mpeg"
        assert provider.calls == 1

    def test_request_shape(self, provider: FakeProvider):
        with provider.adapter() as adapter:
            adapter.synthesize(_request(voiceId="voice123"))

        sent = provider.requests[0]
        assert sent.method == "POST"
        assert str(sent.url) == f"{PROVIDER_URL}/v1/text-to-speech/voice123/stream"
        assert sent.headers["xi-api-key"] == SECRET_KEY
        assert sent.headers["content-type"] == "application/json"
        body = provider.last_json()
        assert body["model_id"] == "eleven_flash_v2_5"
        assert set(body["voice_settings"]) == {
            "stability", "similarity_boost", "style", "style_exaggeration", "speed",
        }

    def test_body_is_ascii_json(self, provider: FakeProvider):
        """Non-ASCII and unpaired surrogate text reaches the provider intact."""
        script = "Caf\u00e9 \U0001F600 \ud800"
        with provider.adapter() as adapter:
            adapter.synthesize(_request(script=script))

        sent = provider.requests[0].content
        assert sent.isascii()
        assert provider.last_json()["text"] == script

    def test_missing_content_type_falls_back(self):
        fake = FakeProvider(content_type=None)
        with fake.adapter() as adapter:
            result = adapter.synthesize(_request())
        assert result.content_type == "audio/mpeg"

    def test_provider_content_type_kept(self):
        fake = FakeProvider(content_type="audio/wav")
        with fake.adapter() as adapter:
            assert adapter.synthesize(_request()).content_type == "audio/wav"

    @pytest.mark.parametrize("status", [400, 401, 422, 429, 500, 503])
    def test_error_status_raises_provider_error(self, status):
        fake = FakeProvider(status=status, content=b'{"detail": "invalid voice"}', content_type="application/json")
        with fake.adapter() as adapter:
            with pytest.raises(ProviderError) as exc_info:
                adapter.synthesize(_request())

        err = exc_info.value
        assert err.upstream_status == status
        assert err.status_code == status
        assert err.body == '{"detail": "invalid voice"}'
        assert err.message == f'ElevenLabs API Error: {status} - {{"detail": "invalid voice"}}'
        assert fake.calls == 1

    def test_no_retry_on_server_error(self):
        fake = FakeProvider(status=503, content=b"busy")
        with fake.adapter() as adapter:
            with pytest.raises(ProviderError):
                adapter.synthesize(_request())
        assert fake.calls == 1

    def test_redirect_status_maps_to_bad_gateway(self):
        fake = FakeProvider(status=302, content=b"")
        with fake.adapter() as adapter:
            with pytest.raises(ProviderError) as exc_info:
                adapter.synthesize(_request())
        assert exc_info.value.status_code == 502

    def test_transport_error_propagates(self):
        fake = FakeProvider(error=lambda req: httpx.ConnectError("refused", request=req))
        with fake.adapter() as adapter:
            with pytest.raises(httpx.ConnectError):
                adapter.synthesize(_request())
        assert fake.calls == 1

    def test_adapter_reusable_after_close(self, provider: FakeProvider):
        adapter = provider.adapter()
        adapter.synthesize(_request())
        adapter.close()
        adapter.synthesize(_request())
        adapter.close()
        assert provider.calls == 2


class TestProviderMetrics:
    def test_calls_counted_by_status(self):
        before_ok = _provider_calls("200")
        before_err = _provider_calls("401")
        before_none = _provider_calls("none")

        with FakeProvider().adapter() as adapter:
            adapter.synthesize(_request())
        with FakeProvider(status=401, content=b"bad key").adapter() as adapter:
            with pytest.raises(ProviderError):
                adapter.synthesize(_request())
        broken = FakeProvider(error=lambda req: httpx.ReadTimeout("slow", request=req))
        with broken.adapter() as adapter:
            with pytest.raises(httpx.ReadTimeout):
                adapter.synthesize(_request())

        assert _provider_calls("200") == before_ok + 1
        assert _provider_calls("401") == before_err + 1
        assert _provider_calls("none") == before_none + 1


class TestFromConfig:
    def test_from_config(self):
        from voicegen.core.config import ProviderConfig

        config = ProviderConfig(base_url="https://example.test/", default_content_type="audio/ogg")
        adapter = ElevenLabsAdapter.from_config(config)
        assert adapter.base_url == "https://example.test"
        assert adapter.default_content_type == "audio/ogg"
