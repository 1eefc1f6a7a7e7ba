"""
Tests for the error taxonomy and its HTTP mapping.

Tests cover:
- ErrorCode constants
- VoiceGenError / ProviderError / InternalError serialization
- voicegen_error_response() status mapping
"""
from __future__ import annotations

import json

import pytest

from voicegen.api.errors import error_body, internal_error_response, voicegen_error_response
from voicegen.services.errors import ErrorCode, InternalError, ProviderError, VoiceGenError
from voicegen.services.validators import ValidationError


class TestErrorCodes:
    def test_codes_are_their_names(self):
        for name in ("INVALID_BODY", "MISSING_FIELD", "SCRIPT_TOO_LONG", "OUT_OF_RANGE",
                     "UNKNOWN_MODEL", "METHOD_NOT_ALLOWED", "PROVIDER_ERROR", "INTERNAL_ERROR"):
            assert getattr(ErrorCode, name) == name


class TestExceptions:
    def test_voicegen_error_to_dict(self):
        err = VoiceGenError("Something failed", ErrorCode.INTERNAL_ERROR, {"stage": "x"})
        assert err.to_dict() == {
            "ok": False,
            "error": "INTERNAL_ERROR",
            "message": "Something failed",
            "details": {"stage": "x"},
        }

    def test_no_details_key_when_empty(self):
        assert "details" not in VoiceGenError("x").to_dict()

    def test_provider_error(self):
        err = ProviderError(401, '{"detail": "invalid_api_key"}')
        assert err.code == ErrorCode.PROVIDER_ERROR
        assert err.status_code == 401
        assert err.message == 'ElevenLabs API Error: 401 - {"detail": "invalid_api_key"}'
        assert err.to_dict()["details"] == {"status_code": 401}

    @pytest.mark.parametrize("upstream,expected", [(400, 400), (599, 599), (302, 502), (200, 502)])
    def test_provider_status_mapping(self, upstream, expected):
        assert ProviderError(upstream, "").status_code == expected

    def test_internal_error_is_generic(self):
        err = InternalError()
        assert err.status_code == 500
        assert err.message == "Internal server error"
        assert isinstance(err, VoiceGenError)


class TestErrorResponses:
    def test_error_body_drops_none(self):
        assert error_body("X", "msg", field=None, request_id="r1") == {
            "ok": False, "error": "X", "message": "msg", "request_id": "r1",
        }

    def test_validation_error_is_400(self):
        response = voicegen_error_response(ValidationError("bad", "OUT_OF_RANGE", "settings.speed"))
        assert response.status_code == 400
        assert json.loads(response.body) == {
            "ok": False, "error": "OUT_OF_RANGE", "message": "bad", "field": "settings.speed",
        }

    def test_provider_error_keeps_status(self):
        response = voicegen_error_response(ProviderError(429, "slow down"), "rid")
        assert response.status_code == 429
        assert json.loads(response.body)["message"] == "ElevenLabs API Error: 429 - slow down"

    def test_other_errors_are_generic_500(self):
        response = voicegen_error_response(InternalError("db password wrong"), "rid-7")
        body = json.loads(response.body)
        assert response.status_code == 500
        assert body == {"ok": False, "error": "INTERNAL_ERROR", "message": "Internal server error",
                        "request_id": "rid-7"}

    def test_internal_error_response(self):
        assert internal_error_response().status_code == 500
