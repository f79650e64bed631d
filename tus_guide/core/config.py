"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database (SQLite file by default, postgresql://... also works)
    database_url: str = "sqlite:///./tus_guide.db"
    db_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Search
    period_window_size: int = 4

    # Rate limiting (per client IP)
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 30
    rate_limit_window_seconds: float = 60.0
    # Only enable behind a proxy that sets X-Forwarded-For / X-Real-IP
    trust_forwarded_for: bool = False

    # HTTP caching
    facets_cache_seconds: int = 3600
    search_cache_seconds: int = 60

    # Bulk import
    import_batch_size: int = 100

    # App
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
