"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Environments where limits are relaxed unless explicitly overridden
LENIENT_ENVIRONMENTS = {"development", "testing"}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_rate_limit_settings() -> "RateLimitSettings":
    return RateLimitSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    site_url: str | None = Field(
        None,
        description="Public base URL of the site (localhost implies relaxed limits)",
    )
    ci: bool = Field(
        False,
        validation_alias=AliasChoices("CI", "APP_CI"),
        description="Set by CI runners; implies relaxed limits",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Request-admission limiter configuration.

    The presence of ``redis_url`` selects the distributed backend; without it
    every process counts on its own in-memory store.
    """

    enabled: bool = Field(
        True,
        description="Enable request-admission rate limiting",
    )
    redis_url: str | None = Field(
        None,
        description="Redis connection URL (credentials may be embedded)",
    )
    redis_timeout_seconds: float = Field(
        2.0,
        description="Socket timeout applied to every Redis call",
        gt=0,
    )
    key_prefix: str = Field(
        "admission",
        description="Namespace prepended to every Redis bucket key",
    )
    relaxed: bool | None = Field(
        None,
        description="Force relaxed limits on/off; unset means derive from environment",
    )
    relaxed_multiplier: int = Field(
        10,
        description="Factor applied to max requests when limits are relaxed",
        ge=1,
    )
    sweep_interval_seconds: int = Field(
        60,
        description="Minimum interval between in-memory eviction sweeps",
        ge=1,
    )
    sweep_threshold: int = Field(
        1000,
        description="In-memory entry count above which a sweep may run",
        ge=0,
    )
    trusted_edge_header: str = Field(
        "CF-Connecting-IP",
        description="Header set by the trusted CDN/edge carrying the client IP",
    )
    fail_closed_actions: str | None = Field(
        None,
        description="Comma-separated actions denied (not allowed) when the backend errors",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(0, description="Rotate file after this size (0 disables)", ge=0)
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read/propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @property
    def is_lenient_environment(self) -> bool:
        """Whether this process runs somewhere limits should be relaxed."""

        if self.app_env.lower() in LENIENT_ENVIRONMENTS or self.app.ci:
            return True
        return bool(self.app.site_url and "localhost" in self.app.site_url)


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
