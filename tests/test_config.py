"""Tests for settings loaded from the environment."""

from marketing_plan.config import DEFAULT_MODEL, Settings


def test_defaults(monkeypatch):
    for var in (
        "DATABASE_URL", "ANTHROPIC_API_KEY", "ANTHROPIC_MODEL", "LLM_RETRY_BUDGET",
        "RESEND_API_KEY", "CORS_ORIGINS", "LOG_LEVEL", "APP_BASE_URL",
    ):
        monkeypatch.delenv(var, raising=False)

    settings = Settings.from_env()

    assert settings.database_url == ""
    assert settings.anthropic_api_key is None
    assert settings.model_id == DEFAULT_MODEL
    assert settings.retry_budget == 2
    assert settings.retry_base_delay_ms == 1000
    assert settings.resend_api_key is None
    assert settings.cors_origins == ["*"]
    assert settings.log_level == "INFO"


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/plans")
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "x.db"))
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    monkeypatch.setenv("LLM_RETRY_BUDGET", "4")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com")
    monkeypatch.setenv("APP_BASE_URL", "https://plans.example.com/")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.database_url.startswith("postgresql")
    assert settings.sqlite_path == tmp_path / "x.db"
    assert settings.anthropic_api_key == "sk-test"
    assert settings.retry_budget == 4
    assert settings.cors_origins == ["https://a.example.com", "https://b.example.com"]
    assert settings.app_base_url == "https://plans.example.com"
    assert settings.log_level == "DEBUG"
