"""
OpenAI-Compatible Models - Configuration and response types.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class OpenAIConfig(BaseModel):
    """Per-request configuration for an OpenAI-compatible endpoint."""

    base_url: str
    api_key: str
    model: str
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=8000)
    timeout_seconds: int = Field(default=300)

    model_config = {"frozen": True}

    @property
    def endpoint(self) -> str:
        """Chat completions URL."""
        return f"{self.base_url.rstrip('/')}/chat/completions"


class ChatCompletionResponse(BaseModel):
    """Result of a chat completion call."""

    text: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    finish_reason: str | None = None
