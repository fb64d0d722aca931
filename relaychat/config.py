"""
Application Configuration

Pydantic-based settings management using environment variables.
Supports nested configuration, validation, and caching.

Usage:
    from relaychat.config import get_settings

    settings = get_settings()
    print(settings.webhook.url)
    print(settings.storage.path)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WebhookSettings(BaseSettings):
    """Remote agent webhook configuration."""

    url: str | None = Field(
        None,
        description="Webhook endpoint that receives chatInput/sessionId payloads",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        le=600,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="WEBHOOK_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("url", mode="before")
    @classmethod
    def normalize_url(cls, v: str | None) -> str | None:
        """Treat empty strings as missing."""
        if isinstance(v, str):
            v = v.strip()
        if v == "":
            return None
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        """Validate webhook URL scheme."""
        if v is None:
            return v
        parsed = urlparse(v)
        if parsed.scheme.lower() not in {"http", "https"}:
            raise ValueError("WEBHOOK_URL must use http or https scheme.")
        if not parsed.hostname:
            raise ValueError("WEBHOOK_URL must include a host.")
        return v


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    path: Path = Field(
        default=Path.home() / ".relaychat" / "storage.json",
        description="File backing the local key-value store",
    )
    chats_key: str = Field(
        default="relaychat-chats",
        min_length=1,
        description="Storage key holding the serialized session list",
    )
    active_chat_key: str = Field(
        default="relaychat-active-chat",
        min_length=1,
        description="Storage key holding the active session id",
    )
    max_title_length: int = Field(
        default=50,
        gt=0,
        le=500,
        description="Maximum characters taken from the first message for a title",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("path")
    @classmethod
    def expand_path(cls, v: Path) -> Path:
        """Expand ~ in the storage path."""
        return v.expanduser()


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application log level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Log timestamp format",
    )
    file: Path | None = Field(
        default=None,
        description="Optional log file path (None = stderr only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    def configure(self, console: bool = True) -> None:
        """
        Configure Python logging with these settings.

        Args:
            console: Also log to stderr. With console=False only the log
                file (if any) receives records.
        """
        handlers: list[logging.Handler] = [logging.StreamHandler()] if console else []

        if self.file:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=getattr(logging, self.level),
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,  # Override any existing configuration
        )


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    Settings are nested by domain (webhook, storage, logging).

    Environment Variables:
        APP_NAME: Application name shown in the CLI
        DEBUG: Log at debug level, as if --verbose were given
        WEBHOOK_*: Remote agent configuration (see WebhookSettings)
        STORAGE_*: Local persistence configuration (see StorageSettings)
        LOG_*: Logging configuration (see LoggingSettings)

    Example:
        >>> settings = get_settings()
        >>> settings.storage.max_title_length
        50
    """

    app_name: str = Field(
        default="RelayChat",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    webhook: WebhookSettings = Field(default_factory=WebhookSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def model_post_init(self, __context) -> None:
        """Log configuration on initialization."""
        logger = logging.getLogger(__name__)
        logger.debug(
            f"Settings loaded for {self.app_name}",
            extra={
                "debug": self.debug,
                "webhook_configured": self.webhook.url is not None,
                "storage_path": str(self.storage.path),
            },
        )


_DOTENV_PATH = Path.cwd() / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("RELAYCHAT_ENV_SOURCE", "dotenv").lower()
    if env_source not in {"dotenv", "envfile", "file"}:
        return
    if _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses functools.lru_cache to ensure settings are loaded only once.

    Returns:
        Settings: Singleton settings instance
    """
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
