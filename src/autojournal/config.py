"""
AutoJournal Configuration.

Centralized configuration management using Pydantic Settings.
Loads configuration from environment variables.
"""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_xdg_state_dir() -> str:
    """
    Get XDG-compliant state directory for AutoJournal logs.

    Follows XDG Base Directory Specification:
    - Uses $XDG_STATE_HOME/autojournal if XDG_STATE_HOME is set
    - Falls back to $HOME/.local/state/autojournal if not set
    - Returns relative path ./logs if HOME not available (dev/testing)

    Returns:
        str: Path to state/logs directory
    """
    xdg_state_home = os.getenv("XDG_STATE_HOME")
    if xdg_state_home:
        return str(Path(xdg_state_home) / "autojournal" / "logs")

    home = os.getenv("HOME")
    if home:
        return str(Path(home) / ".local" / "state" / "autojournal" / "logs")

    return "./logs"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    postgres_db: str = "autojournal"
    postgres_user: str = "autojournal"
    postgres_password: str = "autojournal_dev_password"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    database_url_override: str = ""  # e.g. sqlite:///./autojournal.db
    db_pool_size: int = 5
    db_pool_max_overflow: int = 5
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800

    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # OpenAI (optional narrative enhancement)
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 800
    openai_timeout_s: float = 60.0

    # Scheduler
    scheduler_interval_minutes: int = 30  # How often the driver ticks
    due_window_minutes: int = 30  # Subscriptions due earlier than this are stale
    journal_bypass_activity_check: bool = False  # Generate even with no activity
    journal_ai_enabled: bool = False  # Enhance drafts with OpenAI when a key is set
    schedule_tz_strategy: str = "zoneinfo"  # zoneinfo or offset_estimate
    auto_generated_tag: str = "auto-generated"

    # Application
    environment: str = "development"

    # Logging
    log_level: str = "INFO"
    log_dir: str = ""  # XDG-compliant log directory (defaults to XDG state dir if empty)
    log_format: str = "standard"  # standard or json
    log_console_enabled: bool = True
    log_file_enabled: bool = True
    log_max_bytes: int = 10_485_760  # 10MB per log file
    log_backup_count: int = 5

    @property
    def log_directory(self) -> Path:
        """Get the log directory path, using XDG default if not specified."""
        if self.log_dir:
            return Path(self.log_dir).expanduser()
        return Path(get_xdg_state_dir())


# Global settings instance
settings = Settings()
