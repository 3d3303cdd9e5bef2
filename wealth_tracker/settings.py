"""Application settings for wealth_tracker."""
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    APP_NAME: str = "wealth_tracker"
    LOG_LEVEL: str = "INFO"

    HOST: str = "0.0.0.0"
    PORT: int = 3001

    DB_PATH: str = "./data/wealth_tracker.db"

    # Upstream asset feed
    STOCKS_API_URL: str = "https://woxa-stocks-test-data.yuttanar.workers.dev"
    FEED_TIMEOUT_SEC: float = 5.0
    FEED_RETRIES: int = 1

    ASSET_CACHE_TTL_SEC: int = 300
    SEARCH_DEFAULT_LIMIT: int = 20

    # CORS (CSV list, e.g. "http://localhost:3000,https://app.example.com")
    CORS_ALLOW_ORIGINS: Optional[str] = None
    # Local frontends on any port are allowed unless overridden
    CORS_ALLOW_ORIGIN_REGEX: Optional[str] = r"https?://localhost(:\d+)?"
    CORS_ALLOW_CREDENTIALS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def validate_limits(self) -> None:
        if self.ASSET_CACHE_TTL_SEC <= 0:
            raise ValueError("ASSET_CACHE_TTL_SEC must be positive")
        if self.FEED_TIMEOUT_SEC <= 0:
            raise ValueError("FEED_TIMEOUT_SEC must be positive")
        if self.FEED_RETRIES < 0:
            raise ValueError("FEED_RETRIES must not be negative")
        if self.SEARCH_DEFAULT_LIMIT <= 0:
            raise ValueError("SEARCH_DEFAULT_LIMIT must be positive")

    def cors_origin_list(self) -> Optional[List[str]]:
        if not self.CORS_ALLOW_ORIGINS:
            return None
        return [s.strip() for s in str(self.CORS_ALLOW_ORIGINS).split(",") if s.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    settings.validate_limits()
    return settings


settings = get_settings()
