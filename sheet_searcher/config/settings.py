"""Application settings and configuration management."""

from functools import lru_cache
from typing import List

from pydantic import Field, ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    app_name: str = Field(default="Sheet Searcher")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    workers: int = Field(default=1)

    # Search Configuration
    default_fuzziness: float = Field(default=0.2, ge=0.0, le=1.0)
    min_match_char_length: int = Field(default=2, ge=1)
    ignore_diacritics: bool = Field(default=True)
    extended_search: bool = Field(default=True)  # 'exact =equal ^prefix suffix$ !not
    max_query_length: int = Field(default=200)

    # Ingestion
    drop_leading_column: bool = Field(default=True)  # first column is a row index in most sheets
    max_upload_size_mb: int = Field(default=25)

    # Preferences
    preferences_path: str = Field(default=".sheet_searcher_prefs.json")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173", "http://localhost:8000"]
    )

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra environment variables
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
