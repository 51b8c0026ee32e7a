import pytest

from interview_pilot.core.config import DEFAULT_NIM_BASE_URL, load_settings
from interview_pilot.errors import ConfigurationError


@pytest.mark.parametrize("missing", ["DATABASE_URL", "JWT_SECRET", "NVIDIA_NIM_API_KEY"])
def test_required_settings(monkeypatch: pytest.MonkeyPatch, missing):
    monkeypatch.delenv(missing, raising=False)

    with pytest.raises(ConfigurationError, match=missing):
        load_settings()


def test_defaults():
    settings = load_settings()

    assert settings.llm_base_url == DEFAULT_NIM_BASE_URL
    assert settings.jwt_expires_days == 30
    assert settings.streak_timezone == "UTC"
    assert settings.cors_allow_origins == ("http://localhost:3000", "http://127.0.0.1:3000")
    assert not settings.google_enabled
    assert not settings.email_configured
    assert not settings.rate_limit_enabled


def test_legacy_key_name_and_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("NVIDIA_NIM_API_KEY")
    monkeypatch.setenv("NVIDIA_API_KEY", "legacy-key")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.example, ,https://b.example")
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "5")
    monkeypatch.setenv("JWT_EXPIRES_DAYS", "not-a-number")
    monkeypatch.setenv("RESEND_API_KEY", "re_key")
    monkeypatch.setenv("RESEND_FROM_EMAIL", "pilot@example.com")

    settings = load_settings()

    assert settings.llm_api_key == "legacy-key"
    assert settings.cors_allow_origins == ("https://a.example", "https://b.example")
    assert settings.rate_limit_max_requests == 20
    assert settings.jwt_expires_days == 30
    assert settings.email_configured
