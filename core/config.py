"""Application configuration with environment-specific profiles.

Supports dev, test, staging, and production environments via APP_ENV.
All values can be overridden by environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    """Immutable application settings resolved from environment."""

    database_url: str
    app_env: str = "dev"
    log_level: str = "INFO"
    db_isolation_level: str = "SERIALIZABLE"
    db_echo: bool = False

    # Plan spans
    yearly_plan_weeks: int = 52
    template_plan_weeks: int = 3

    # Classification defaults applied by every plan-building path
    auto_create_default_period: bool = True
    default_period_name: str = "Base Period"
    default_period_color: str = "#3b82f6"

    # HTTP surface
    caller_header_name: str = "X-User-ID"
    request_id_header_name: str = "X-Request-ID"
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:5173"])

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
    },
    "test": {
        "log_level": "WARNING",
    },
    "staging": {
        "log_level": "INFO",
    },
    "production": {
        "log_level": "WARNING",
        "auto_create_default_period": False,
    },
}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def get_database_url() -> str:
    """Resolve database URL from env var or local default.

    Resolution order:
    1. DATABASE_URL environment variable
    2. Local default for common dev setups
    """
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url
    return "postgresql+psycopg2://localhost:5432/trainplan"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides."""
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])
    cors_raw = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    return Settings(
        database_url=get_database_url(),
        app_env=app_env,
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        db_isolation_level=os.getenv("DB_ISOLATION_LEVEL", "SERIALIZABLE"),
        db_echo=_env_bool("DB_ECHO", False),
        yearly_plan_weeks=int(os.getenv("YEARLY_PLAN_WEEKS", "52")),
        template_plan_weeks=int(os.getenv("TEMPLATE_PLAN_WEEKS", "3")),
        auto_create_default_period=_env_bool(
            "AUTO_CREATE_DEFAULT_PERIOD", profile.get("auto_create_default_period", True)
        ),
        default_period_name=os.getenv("DEFAULT_PERIOD_NAME", "Base Period"),
        default_period_color=os.getenv("DEFAULT_PERIOD_COLOR", "#3b82f6"),
        caller_header_name=os.getenv("CALLER_HEADER_NAME", "X-User-ID"),
        request_id_header_name=os.getenv("REQUEST_ID_HEADER_NAME", "X-Request-ID"),
        cors_origins=[o.strip() for o in cors_raw.split(",") if o.strip()],
    )
