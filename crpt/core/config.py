"""Client configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_crpt_settings() -> "CrptSettings":
    """Build remote API settings from environment.

    Static type checkers treat fields as constructor arguments, which is not
    how BaseSettings is meant to be used, hence the type ignore.
    """

    return CrptSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class CrptSettings(BaseSettings):
    """Document-registration API client configuration."""

    base_url: str = Field(
        "https://ismp.crpt.ru/api/v3",
        description="Base URL of the document-registration API",
    )
    request_limit: int = Field(
        1,
        description="Maximum number of outbound calls per window",
        ge=1,
    )
    window_seconds: float = Field(
        1.0,
        description="Length of the fixed rate limit window in seconds",
        gt=0,
    )
    request_timeout_seconds: float = Field(
        10.0,
        description="Overall budget (admission + transport) for a single call",
        gt=0,
    )
    transport: str = Field(
        "httpx",
        description="Transport implementation used for outbound calls",
    )
    log_body_max_chars: int = Field(
        2000,
        description="Response bodies longer than this are truncated in dispatch logs",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="CRPT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        0,
        description="Rotate the log file at this size (0 disables rotation)",
    )
    backup_count: int = Field(3, description="Number of rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate request correlation ids",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    crpt: CrptSettings = Field(default_factory=_build_crpt_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Nested settings are created via default_factory so env loading works.
settings = Settings()
