"""
Configuration management for Smart Organizer.

Uses pydantic-settings to load configuration from environment variables
and .env files.
"""

import tempfile
from functools import lru_cache
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # API Configuration
    api_port: int = 8000
    log_level: str = "INFO"
    api_title: str = "Smart Organizer API"
    api_version: str = "1.0.0"

    # Inbox Configuration
    inbox_dir: Path = Path("~/Downloads")
    ledger_path: Path = Path(tempfile.gettempdir()) / "SmartOrganizer_rename_history.json"

    # Monitor Configuration
    scan_interval: float = 60.0  # seconds
    settle_seconds: float = 5.0
    watch_events: bool = True
    debounce_seconds: float = 2.0
    monitor_on_startup: bool = True

    # Worker Configuration
    organizer_workers: int = 4

    # Analyzer Configuration
    ocr_language: str = "eng"
    spacy_model: str = "en_core_web_sm"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def get_inbox_dir(self) -> Path:
        """Return the monitored inbox as an absolute path."""
        return self.inbox_dir.expanduser().absolute()

    def get_ledger_path(self) -> Path:
        """Return the ledger file location as an absolute path."""
        return self.ledger_path.expanduser().absolute()


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
