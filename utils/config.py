"""
Configuration Utility - Environment Variables Management

Centralized configuration loading from the environment and KEY=value files
(.env or config.ini) using pydantic-settings. Settings are loaded once at
process entry and passed explicitly to each component.

Usage:
    from utils.config import load_settings

    settings = load_settings()
    client = ListmonkClient.from_settings(settings)
"""

import os
from pathlib import Path

from pydantic import EmailStr, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.errors import ConfigError

CONFIG_FILE_ENV = "BACKUP_CONFIG_FILE"
DEFAULT_ENV_FILES = (".env", "config.ini")


class Settings(BaseSettings):
    """Immutable application settings."""

    # Listmonk API
    LISTMONK_URL: str
    LISTMONK_USER: str
    LISTMONK_PASS: str
    API_TIMEOUT: float = Field(default=30, gt=0)
    API_MAX_RETRIES: int = Field(default=3, ge=1)

    # Media downloads
    DOWNLOAD_TIMEOUT: float = Field(default=60, gt=0)
    DOWNLOAD_USER_AGENT: str = Field(default="Mozilla/5.0 (compatible; ListmonkBackup/1.0)")

    # Report email
    MAIL_TO: EmailStr
    MAIL_FROM: EmailStr
    MAIL_SUBJECT: str = Field(default="Listmonk Backup Report")

    # SMTP (implicit TLS)
    SMTP_HOST: str
    SMTP_PORT: int = Field(default=465, gt=0, lt=65536)
    SMTP_USER: str
    SMTP_PASS: str
    SMTP_TIMEOUT: float = Field(default=30, gt=0)

    # File System Paths
    BACKUP_DIR: str = Field(default="backup")
    MEDIA_DIR: str = Field(default="backup/media")
    REPORTS_DIR: str = Field(default="reports")
    BACKUP_RETENTION_DAYS: int = Field(default=30, ge=0)

    # Scheduler Configuration
    BACKUP_SCHEDULE_CRON: str = Field(default="0 2 * * *")
    RUN_ONCE: bool = Field(default=True)

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="text")

    model_config = SettingsConfigDict(
        env_file=DEFAULT_ENV_FILES,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    @field_validator("LISTMONK_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("LISTMONK_URL must not be empty")
        return v

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "json"):
            raise ValueError("LOG_FORMAT must be 'text' or 'json'")
        return v


def load_settings(env_file: str | Path | None = None) -> Settings:
    """Load and validate settings.

    Args:
        env_file: Explicit KEY=value file. Falls back to $BACKUP_CONFIG_FILE,
            then to .env / config.ini in the working directory.

    Returns:
        Frozen Settings instance

    Raises:
        ConfigError: If an explicit config file is unreadable or a required
            key is missing or invalid
    """
    if env_file is None:
        env_file = os.getenv(CONFIG_FILE_ENV) or None

    try:
        if env_file is None:
            return Settings()

        path = Path(env_file)
        if not path.is_file():
            raise ConfigError(f"Could not load config file: {path}")
        return Settings(_env_file=path)

    except ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc'])} ({err['type']})" for err in e.errors(include_input=False)
        ]
        raise ConfigError(f"Invalid configuration: {', '.join(problems)}") from None
