"""Tests for settings and error wording."""
import pytest

from chatrelay.config import DEFAULT_HISTORY_PATH, Settings
from chatrelay.errors import (
    AUTH_MESSAGE,
    QUOTA_HELP,
    QUOTA_MESSAGE,
    UpstreamError,
    describe_upstream_error,
    error_hint,
    status_message,
)

from conftest import FakeUpstreamError

ENV_VARS = (
    "LLM_PROVIDER", "GOOGLE_GEMINI_API_KEY", "GEMINI_API_KEY", "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY", "GEMINI_MODEL", "CHAT_RESPONSE_MODE", "CHAT_HOST",
    "CHAT_PORT", "CHAT_SERVER_URL", "CHAT_HISTORY_PATH", "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:

    def test_defaults(self, clean_env):
        settings = Settings.from_env()
        assert settings.provider == "gemini"
        assert settings.api_key is None
        assert settings.resolved_model == "gemini-2.5-flash"
        assert settings.response_mode == "stream"
        assert settings.server_url == "http://127.0.0.1:8000"
        assert settings.history_path == DEFAULT_HISTORY_PATH

    def test_gemini_key_lookup_order(self, clean_env):
        clean_env.setenv("GEMINI_API_KEY", "second")
        assert Settings.from_env().api_key == "second"
        clean_env.setenv("GOOGLE_GEMINI_API_KEY", "first")
        assert Settings.from_env().api_key == "first"

    def test_claude_alias_and_overrides(self, clean_env):
        clean_env.setenv("LLM_PROVIDER", "Claude")
        clean_env.setenv("ANTHROPIC_API_KEY", "key")
        clean_env.setenv("CHAT_RESPONSE_MODE", "JSON")
        clean_env.setenv("CHAT_PORT", "9000")

        settings = Settings.from_env()

        assert settings.provider == "anthropic"
        assert settings.api_key == "key"
        assert settings.response_mode == "json"
        assert settings.server_url == "http://127.0.0.1:9000"

    def test_invalid_mode_is_rejected(self, clean_env):
        clean_env.setenv("CHAT_RESPONSE_MODE", "carrier-pigeon")
        with pytest.raises(ValueError):
            Settings.from_env()


class TestErrors:

    def test_status_message(self):
        assert status_message(429) == QUOTA_MESSAGE
        assert status_message(418) == "HTTP error! status: 418"

    @pytest.mark.parametrize("message", [QUOTA_MESSAGE, "HTTP 429", "Rate limit hit"])
    def test_quota_hint(self, message):
        assert error_hint(message) == QUOTA_HELP

    def test_no_hint_for_other_errors(self):
        assert error_hint("Authentication failed") is None
        assert error_hint(None) is None

    def test_describe_upstream_error(self):
        assert describe_upstream_error(FakeUpstreamError("denied", 401)).args[0] == AUTH_MESSAGE

        class GenaiLikeError(Exception):
            code = 429

        described = describe_upstream_error(GenaiLikeError("exhausted"))
        assert described.status_code == 429
        assert str(described) == QUOTA_MESSAGE

        plain = describe_upstream_error(RuntimeError("socket closed"))
        assert plain.status_code is None
        assert str(plain) == "socket closed"

    def test_upstream_error_passes_through(self):
        error = UpstreamError("already wrapped", 500)
        assert describe_upstream_error(error) is error
