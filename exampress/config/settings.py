"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Provider used when a request names none. "openai" takes the endpoint,
    # key and model a request leaves out from the openai_* settings below.
    default_provider: str = "gemini"

    # Gemini (default provider)
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    gemini_image_model: str = "gemini-2.0-flash-exp-image-generation"
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    max_output_tokens: int = 8192
    request_timeout_seconds: int = 300

    # Sampling temperatures per task
    format_temperature: float = 0.3
    parse_temperature: float = 0.3
    generation_temperature: float = 0.4

    # OpenAI-compatible endpoints (defaults shown to users; requests supply their own key)
    openai_default_base_url: str = "https://api.openai.com/v1"
    openai_default_model: str = "gpt-4o-mini"
    openai_api_key: str | None = None
    openai_temperature: float = 0.3
    openai_max_tokens: int = 8000

    # Pipeline
    max_source_chars: int = 20000
    image_jitter_seconds: float = 0.5

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
