from __future__ import annotations

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db: str = Field(default="resolution_dates", alias="MONGODB_DB")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    platform: str = Field(default="polymarket", alias="PLATFORM")

    polymarket_gamma_base_url: str = Field(
        default="https://gamma-api.polymarket.com", alias="POLYMARKET_GAMMA_BASE_URL"
    )
    kalshi_base_url: str = Field(default="https://api.elections.kalshi.com/trade-api/v2", alias="KALSHI_BASE_URL")
    http_timeout_seconds: int = Field(default=15, alias="HTTP_TIMEOUT_SECONDS")
    sync_limit: int = Field(default=1000, alias="SYNC_LIMIT")

    batch_size: int = Field(default=1000, alias="BATCH_SIZE")
    polymarket_min_confidence: float = Field(default=0.6, alias="POLYMARKET_MIN_CONFIDENCE")
    kalshi_acceptance_confidence: float = Field(default=0.6, alias="KALSHI_ACCEPTANCE_CONFIDENCE")
    kalshi_storage_confidence: float = Field(default=0.5, alias="KALSHI_STORAGE_CONFIDENCE")
    fallback_confidence: float = Field(default=0.5, alias="FALLBACK_CONFIDENCE")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
