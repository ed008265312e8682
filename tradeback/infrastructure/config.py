"""Environment configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, PostgresDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Storage
    storage_backend: Literal["memory", "postgres"] = Field(
        default="memory",
        alias="STORAGE_BACKEND",
        description="Where journal records are kept",
    )
    database_url: PostgresDsn | None = Field(
        default=None,
        alias="DATABASE_URL",
        description="PostgreSQL connection string (postgres backend only)",
    )
    database_pool_size: int = Field(default=5, alias="DATABASE_POOL_SIZE")

    # Trade validation
    lot_size: int = Field(default=100, gt=0, alias="LOT_SIZE")
    enforce_lot_size: bool = Field(
        default=False,
        alias="ENFORCE_LOT_SIZE",
        description="Reject quantities that are not whole lots",
    )
    reject_oversell: bool = Field(
        default=True,
        alias="REJECT_OVERSELL",
        description="Reject SELLs larger than the held quantity",
    )
    reject_insufficient_cash: bool = Field(
        default=True,
        alias="REJECT_INSUFFICIENT_CASH",
        description="Reject BUYs whose amount exceeds the cash balance",
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(message)s",
        alias="LOG_FORMAT",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
