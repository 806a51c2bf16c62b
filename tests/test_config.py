"""Tests for settings and startup configuration checks."""

import pytest

from finora.config import ConfigurationError, Settings, settings
from finora.main import app, lifespan


class TestSettings:
    """Tests for Settings parsing."""

    def test_defaults(self):
        config = Settings(_env_file=None, GEMINI_API_KEY="key")

        assert config.app_name == "FINORA"
        assert config.session_cookie_name == "finora_session"
        assert config.gemini_model == "gemini-3.1-pro-preview"

    def test_allowed_origins_from_comma_string(self):
        config = Settings(_env_file=None, ALLOWED_ORIGINS="http://a.test, http://b.test")
        assert config.allowed_origins == ["http://a.test", "http://b.test"]

    def test_require_key_strips_whitespace(self):
        config = Settings(_env_file=None, GEMINI_API_KEY="  abc  ")
        assert config.require_gemini_api_key() == "abc"

    @pytest.mark.parametrize("key", [None, "", "   "])
    def test_require_key_missing(self, monkeypatch, key):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        config = Settings(_env_file=None, GEMINI_API_KEY=key)

        with pytest.raises(ConfigurationError):
            config.require_gemini_api_key()


class TestStartup:
    """Tests for the application lifespan."""

    @pytest.mark.asyncio
    async def test_refuses_to_start_without_key(self, monkeypatch):
        monkeypatch.setattr(settings, "gemini_api_key", None)

        with pytest.raises(ConfigurationError):
            async with lifespan(app):
                pass
