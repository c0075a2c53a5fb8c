"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Usage:
    from polyglot.config import settings

    # Access settings
    db_url = settings.POSTGRES_URL
    languages = settings.SUPPORTED_LANGUAGES
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict


# ISO 639-1 codes and the locale variants accepted for image text and lessons
DEFAULT_SUPPORTED_LANGUAGES: list[str] = [
    "en", "es", "fr", "de", "it", "pt", "ru", "zh", "ja", "ko", "ar", "he",
    "en-US", "en-GB", "es-ES", "es-MX", "fr-FR", "de-DE", "it-IT", "pt-BR",
    "pt-PT", "ru-RU", "zh-CN", "zh-TW", "ja-JP", "ko-KR", "ar-SA", "he-IL",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Polyglot Content"
    DEBUG: bool = False

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "polyglot"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "polyglot"

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Content
    SUPPORTED_LANGUAGES: list[str] = DEFAULT_SUPPORTED_LANGUAGES

    def is_language_supported(self, language_code: str) -> bool:
        """Check whether a language code is in the configured list."""
        return language_code in self.SUPPORTED_LANGUAGES


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
