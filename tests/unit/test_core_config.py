"""Tests for application settings validation."""

import pytest
from pydantic import ValidationError

from hh_vibe.core.config import Settings

_PRODUCTION = "production"


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestAllowedOrigins:
    def test_default_is_local_frontend(self):
        assert make_settings().allowed_origins == ["http://localhost:3000"]

    def test_rejects_wildcard(self):
        with pytest.raises(ValidationError, match="must not contain"):
            make_settings(allowed_origins=["https://hh-vibe.ru", "*"])


class TestProductionProviderKey:
    """Production refuses to start without a key for the selected provider."""

    def test_missing_key_allowed_in_development(self):
        s = make_settings(environment="development", llm_provider="gemini", google_api_key="")
        assert s.google_api_key == ""

    def test_missing_key_rejected_in_production(self):
        with pytest.raises(ValidationError) as exc_info:
            make_settings(environment=_PRODUCTION, llm_provider="claude", anthropic_api_key="")

        errors = exc_info.value.errors()
        assert len(errors) == 1
        assert "ANTHROPIC_API_KEY must be set in production" in str(errors[0]["msg"])

    def test_key_of_other_provider_does_not_count(self):
        with pytest.raises(ValidationError):
            make_settings(
                environment=_PRODUCTION,
                llm_provider="gemini",
                google_api_key="",
                openai_api_key="sk-test",
            )

    def test_unknown_provider_rejected_in_production(self):
        with pytest.raises(ValidationError, match="Unknown LLM_PROVIDER"):
            make_settings(environment=_PRODUCTION, llm_provider="yandexgpt")

    def test_configured_key_accepted(self):
        s = make_settings(environment=_PRODUCTION, llm_provider="openai", openai_api_key="sk")
        assert s.llm_provider == "openai"


class TestFieldNormalization:
    def test_base_url_trailing_slash_dropped(self):
        assert make_settings(base_url="https://vibe.test/").base_url == "https://vibe.test"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError, match="HH_TIMEOUT_SECONDS"):
            make_settings(hh_timeout_seconds=0)
