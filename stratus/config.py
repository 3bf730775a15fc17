"""Stratus centralized configuration management.

Uses pydantic-settings to load configuration from environment variables
and .env files with validation.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from stratus.constants import (
    DEFAULT_ERROR_THRESHOLD,
    DEFAULT_RECEIVE_WAIT,
    DEFAULT_SCAN_WORKERS,
    DEFAULT_SHUTDOWN_TIMEOUT,
    MAX_TRACKED_SCANS,
)


class Settings(BaseSettings):
    """Stratus application settings.

    All settings can be overridden via environment variables
    prefixed with STRATUS_.

    Example:
        STRATUS_DATABASE_URL=postgresql+psycopg2://stratus@db/stratus
        STRATUS_CONSUMER_CONCURRENCY=8
    """

    model_config = SettingsConfigDict(
        env_prefix="STRATUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = Field(
        default="sqlite:///stratus.db",
        description="SQLAlchemy database URL"
    )
    db_pool_size: int = Field(default=8, ge=1, description="Connection pool size")
    db_max_overflow: int = Field(default=56, ge=0, description="Connections allowed beyond the pool")

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API server bind address")
    api_port: int = Field(default=9095, description="API server port")

    # Consumer
    queue_url: str = Field(default="", description="SQS queue URL carrying discovery events")
    aws_region: Optional[str] = Field(default=None, description="Region for the SQS client")
    consumer_concurrency: int = Field(default=1, ge=1, description="Concurrent message handlers")
    consumer_wait_seconds: int = Field(
        default=DEFAULT_RECEIVE_WAIT, ge=0, le=20,
        description="SQS long-poll wait in seconds"
    )
    shutdown_timeout: float = Field(
        default=DEFAULT_SHUTDOWN_TIMEOUT, gt=0,
        description="Seconds to wait for in-flight handlers on shutdown"
    )

    # Onboarding
    scan_workers: int = Field(default=DEFAULT_SCAN_WORKERS, ge=1, description="Concurrent scans")
    scan_error_threshold: float = Field(
        default=DEFAULT_ERROR_THRESHOLD, ge=0, le=1,
        description="Instance error rate above which a scan fails"
    )
    max_tracked_scans: int = Field(default=MAX_TRACKED_SCANS, ge=1, description="Scan summaries kept in memory")

    # Notifications
    email_endpoint: str = Field(default="", description="Email relay endpoint (skipped if empty)")
    slack_endpoint: str = Field(default="", description="Slack webhook URL (skipped if empty)")
    notify_timeout: float = Field(default=10.0, gt=0, description="Notification HTTP timeout in seconds")

    # Error reporting
    sentry_dsn: str = Field(default="", description="Sentry DSN (error reporting disabled if empty)")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance loaded from environment
    """
    return Settings()
