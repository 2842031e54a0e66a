"""
Configuration management for Swipe Nexus.
Uses pydantic-settings for environment variable parsing.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Storage
    database_url: str = Field(
        default="sqlite:///swipe_nexus.db",
        description="SQLAlchemy URL of the key-value store holding progress"
    )
    storage_namespace: str = Field(
        default="swipeNexus",
        description="Prefix for every persisted key"
    )

    # Logging / debug
    log_level: str = Field(default="INFO")
    debug_mode: bool = Field(
        default=False,
        description="Echo SQL and show the debug overlay"
    )

    # Gameplay
    default_level_id: int = Field(
        default=1,
        description="Level started when none is given on the command line"
    )
    grid_width: int = Field(default=5)
    grid_height: int = Field(default=8)
    shield_duration_ms: int = Field(
        default=5000,
        description="Wall-clock lifetime of a shield pickup"
    )
    rng_seed: int | None = Field(
        default=None,
        description="Seed for obstacle generation. None means nondeterministic"
    )

    # Display
    fps: int = Field(default=60)
    cell_size: int = Field(
        default=64,
        description="Pixel size of one grid cell"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    """
    return Settings()
