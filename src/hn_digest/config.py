# ABOUTME: Centralized configuration using Pydantic Settings.
# ABOUTME: Loads all settings from environment variables and .env file.

from functools import lru_cache
from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Hacker News source
    hn_api_base: str = "https://hacker-news.firebaseio.com/v0"
    request_timeout: float = 10.0
    user_agent: str = "hn-digest/0.1 (+https://news.ycombinator.com)"
    candidate_limit: int = 100
    stories_per_mode: int = 20

    # Comment traversal bounds
    comment_max_depth: int = 2
    comment_root_limit: int = 20
    comment_child_limit: int = 5

    # Enrichment
    anthropic_api_key: SecretStr | None = None
    translator_model: str = "claude-haiku-4-5-20251001"
    target_language: str = "Simplified Chinese"
    comment_translate_limit: int = 20
    enrichment_delay: float = 0.1
    abstract_length: int = 200

    # Database
    db_path: Path = Path("./hn_digest.db")
    retention_days: int = 7

    # Scheduled refresh (0 disables the background loop)
    fetch_interval_hours: float = 3.0

    # Static export
    export_path: Path = Path("./output/posts.json")

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Logging
    log_level: str = "INFO"

    @property
    def database_url(self) -> str:
        """Build async SQLite connection URL."""
        return f"sqlite+aiosqlite:///{self.db_path}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
