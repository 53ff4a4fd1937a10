"""Application configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from ``MOODBOARD_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="MOODBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    # Press feedback before a random pick, in seconds
    random_press_delay: float = Field(0.11, ge=0.0)

    # Directory the mood images are resolved against; None skips the check
    asset_root: Path | None = None

    # CLI
    base_url: str = "http://localhost:8000"


@lru_cache
def get_settings() -> Settings:
    return Settings()
