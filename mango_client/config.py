"""Client settings using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MANGO_",
        case_sensitive=False,
    )

    # ==========================================================================
    # Application
    # ==========================================================================
    app_name: str = "LLMango Client"
    app_version: str = "0.1.0"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ==========================================================================
    # LLMango backend
    # ==========================================================================
    api_base_url: str = "http://localhost:8080/mango/api"
    api_timeout_seconds: float = 30.0
    api_key: str = Field(default="")

    # ==========================================================================
    # Model catalog (OpenRouter)
    # ==========================================================================
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    model_catalog_stale_hours: int = 24

    # ==========================================================================
    # Local persistence
    # ==========================================================================
    blob_store_url: str = Field(default="sqlite:///./mango_cache.db")
    model_catalog_blob_key: str = "openrouter_models"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
