"""Tests for the error taxonomy and settings loading."""

import json

import pytest

from backend.core.config import REQUIRED_ENV_VARS, load_settings
from backend.core.errors import (
    STATUS_CODES,
    BadRequest,
    ConfigurationError,
    ErrorKind,
    Unauthenticated,
    UpstreamError,
    relay_error_response,
)

FULL_ENV = {
    "OPENAI_API_KEY": "sk-test",
    "SUPABASE_URL": "https://demo-project.supabase.co/",
    "SUPABASE_ANON_KEY": "anon",
}


class TestStatusTable:

    def test_every_kind_has_a_status(self):
        assert set(STATUS_CODES) == set(ErrorKind)

    @pytest.mark.parametrize("exc, status", [
        (Unauthenticated("no token"), 401),
        (BadRequest("no field"), 400),
        (UpstreamError("timeout"), 500),
        (ConfigurationError("OPENAI_API_KEY missing"), 500),
    ])
    def test_status_comes_from_kind(self, exc, status):
        assert exc.status_code == status

    def test_configuration_message_is_generic(self):
        response = relay_error_response(ConfigurationError("OPENAI_API_KEY missing"))
        assert response.status_code == 500
        assert json.loads(response.body) == {"error": "Server configuration error"}

    def test_envelope_has_cors(self):
        response = relay_error_response(BadRequest("Missing text"))
        assert json.loads(response.body) == {"error": "Missing text"}
        assert response.headers["access-control-allow-origin"] == "*"


class TestLoadSettings:

    def test_loads_required_and_defaults(self):
        settings = load_settings(FULL_ENV)
        assert settings.openai_api_key == "sk-test"
        assert settings.supabase_url == "https://demo-project.supabase.co"
        assert settings.supabase_service_role_key is None
        assert settings.transcription_model == "whisper-1"
        assert settings.form_extraction_max_tokens == 2000
        assert settings.proxy_model == "gpt-4o"

    def test_optional_overrides(self):
        settings = load_settings({
            **FULL_ENV,
            "SUPABASE_SERVICE_ROLE_KEY": "service",
            "OAI_PROXY_MODEL": "gpt-4o-mini",
            "FORM_EXTRACTION_MAX_TOKENS": "1500",
        })
        assert settings.supabase_service_role_key == "service"
        assert settings.proxy_model == "gpt-4o-mini"
        assert settings.form_extraction_max_tokens == 1500

    @pytest.mark.parametrize("missing", REQUIRED_ENV_VARS)
    def test_missing_required_fails_fast(self, missing):
        env = {k: v for k, v in FULL_ENV.items() if k != missing}
        with pytest.raises(ConfigurationError) as exc:
            load_settings(env)
        assert missing in exc.value.message
        assert exc.value.public_message == "Server configuration error"

    def test_blank_value_counts_as_missing(self):
        with pytest.raises(ConfigurationError):
            load_settings({**FULL_ENV, "OPENAI_API_KEY": "  "})

    def test_reads_process_environment(self, monkeypatch):
        for key, value in FULL_ENV.items():
            monkeypatch.setenv(key, value)
        assert load_settings().supabase_anon_key == "anon"
