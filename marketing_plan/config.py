"""Service configuration.

All environment variables are read here, once, at process start.
Everything else receives a Settings instance (or values taken from it).
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_SQLITE_PATH = Path(__file__).parent / "marketing_plans.db"
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"


class Settings(BaseModel):
    """Runtime settings, built from the environment by from_env()."""

    # Database URL: postgres://... for Postgres, or empty for SQLite
    database_url: str = ""
    sqlite_path: Path = DEFAULT_SQLITE_PATH

    anthropic_api_key: Optional[str] = None
    model_id: str = DEFAULT_MODEL

    retry_budget: int = Field(default=2, ge=0)
    retry_base_delay_ms: int = Field(default=1000, ge=0)

    resend_api_key: Optional[str] = None
    email_from: str = "MarketingPlan.ai <noreply@marketingplan.ai>"
    app_base_url: str = "http://localhost:3000"

    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.environ
        origins = env.get("CORS_ORIGINS", "*")
        return cls(
            database_url=env.get("DATABASE_URL", ""),
            sqlite_path=Path(env.get("SQLITE_PATH", str(DEFAULT_SQLITE_PATH))),
            anthropic_api_key=env.get("ANTHROPIC_API_KEY") or None,
            model_id=env.get("ANTHROPIC_MODEL", DEFAULT_MODEL),
            retry_budget=int(env.get("LLM_RETRY_BUDGET", "2")),
            retry_base_delay_ms=int(env.get("LLM_RETRY_BASE_DELAY_MS", "1000")),
            resend_api_key=env.get("RESEND_API_KEY") or None,
            email_from=env.get("EMAIL_FROM", cls.model_fields["email_from"].default),
            app_base_url=env.get("APP_BASE_URL", "http://localhost:3000").rstrip("/"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
