"""
Gemini Models - Request/Response types for Gemini API.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from exampress.config import Settings


class GeminiConfig(BaseModel):
    """Configuration for Gemini client."""

    api_key: str | None = None
    model: str = Field(default="gemini-2.5-flash")
    image_model: str = Field(default="gemini-2.0-flash-exp-image-generation")
    api_base: str = Field(default="https://generativelanguage.googleapis.com/v1beta")
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=8192)
    timeout_seconds: int = Field(default=300)

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings: Settings) -> GeminiConfig:
        """Build client configuration from application settings."""
        return cls(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            image_model=settings.gemini_image_model,
            api_base=settings.gemini_api_base,
            temperature=settings.format_temperature,
            max_output_tokens=settings.max_output_tokens,
            timeout_seconds=settings.request_timeout_seconds,
        )


class GeminiResponse(BaseModel):
    """Generic Gemini API response."""

    text: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
