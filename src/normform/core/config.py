"""Configuration management.

Uses pydantic-settings for type-safe configuration from environment variables.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden via environment variables.
    Prefix: NORMFORM_
    """

    model_config = SettingsConfigDict(
        env_prefix="NORMFORM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Datasets
    datasets_path: Path = Field(
        default=Path("datasets"),
        description="Directory containing dataset documents (JSON or YAML)",
    )

    # Validation
    missing_table_tolerance: int = Field(
        default=2,
        ge=0,
        description=(
            "Column-level errors a name-matched user table may have while still "
            "counting as present for a solution table"
        ),
    )

    # Preview
    preview_row_limit: int = Field(
        default=20,
        ge=1,
        description="Maximum rows printed per table by the CLI preview",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")  # 'json' or 'console'


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
