"""Application configuration using Pydantic Settings.

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

# Map environments to their respective .env files (relative to PROJECT_ROOT)
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


# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file and not os.getenv("TESTING"):
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    post_max_chars: int = Field(
        255,
        description="Maximum post content length in characters",
        ge=1,
        le=255,
    )
    page_size: int = Field(
        100,
        description="Maximum number of posts returned by a listing call",
        ge=1,
        le=100,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-user rate limiting on post creation",
    )
    rate_limit_requests: int = Field(
        3,
        description="Maximum number of posts allowed per window (per user)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Sliding window length in seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class DatabaseSettings(BaseSettings):
    """Relational store configuration."""

    url: str = Field(
        "sqlite+aiosqlite:///./posts.db",
        description="SQLAlchemy async database URL",
    )
    echo: bool = Field(
        False,
        description="Log every SQL statement (development only)",
    )
    create_tables: bool = Field(
        True,
        description="Create missing tables on startup",
    )

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        case_sensitive=False,
    )


class IdentitySettings(BaseSettings):
    """Identity directory (user management service) configuration."""

    provider: str = Field(
        "clerk",
        description="Directory adapter: 'clerk' (HTTP Backend API) or 'memory'",
    )
    base_url: str = Field(
        "https://api.clerk.com",
        description="Base URL of the user management Backend API",
    )
    secret_key: str | None = Field(
        None,
        description="Backend API secret key (required for the 'clerk' provider)",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="IDENTITY_",
        case_sensitive=False,
    )


class AuthSettings(BaseSettings):
    """Session token verification settings."""

    jwt_key: str | None = Field(
        None,
        description="Secret or PEM public key used to verify session tokens",
    )
    jwt_algorithm: str = Field(
        "RS256",
        description="Signature algorithm of session tokens",
    )
    jwt_issuer: str | None = Field(
        None,
        description="Expected 'iss' claim (skipped when unset)",
    )
    jwt_audience: str | None = Field(
        None,
        description="Expected 'aud' claim (skipped when unset)",
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Rate limiter storage backend settings."""

    backend: str = Field(
        "memory",
        description="Limiter storage: 'memory' (per-process) or 'redis' (shared)",
    )
    redis_url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL for the shared limiter",
    )
    prefix: str = Field(
        "posts:ratelimit",
        description="Key prefix used in Redis to avoid collisions",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10_000_000,
        description="Rotate the log file at this size (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if a setting is malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    identity: IdentitySettings = Field(default_factory=IdentitySettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
