"""
Providers - Adapters from the client libraries onto the provider contracts.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

from exampress.adapters.gemini import GeminiClient, GeminiConfig
from exampress.adapters.openai import ChatCompletionClient
from exampress.config import Settings

from .contracts import JSONProvider
from .models import ProviderConfig, ProviderKind

logger = logging.getLogger(__name__)

__all__ = ["GeminiJSONProvider", "ChatCompletionJSONProvider", "build_provider"]


class GeminiJSONProvider:
    """Streaming, schema-constrained provider backed by Gemini."""

    name = ProviderKind.GEMINI.value

    def __init__(self, client: GeminiClient, temperature: float | None = None) -> None:
        self._client = client
        self._temperature = temperature

    async def stream_json(self, prompt: str, schema: dict[str, Any]) -> AsyncIterator[str]:
        async for fragment in self._client.stream_generate(
            prompt,
            temperature=self._temperature,
            response_schema=schema,
        ):
            yield fragment


class ChatCompletionJSONProvider:
    """Single-shot JSON-mode provider for OpenAI-compatible endpoints."""

    name = ProviderKind.OPENAI.value

    def __init__(self, client: ChatCompletionClient) -> None:
        self._client = client

    async def complete_json(self, user_message: str, system_message: str | None = None) -> str:
        messages = []
        if system_message:
            messages.append({"role": "system", "content": system_message})
        messages.append({"role": "user", "content": user_message})

        response = await self._client.complete(messages, json_mode=True)
        return response.text


def build_provider(
    config: ProviderConfig,
    settings: Settings,
    gemini_client: GeminiClient | None = None,
    temperature: float | None = None,
) -> JSONProvider:
    """
    Choose the provider variant for a request.

    Args:
        config: Validated provider selection
        settings: Application settings
        gemini_client: Shared Gemini client; created from settings if None
        temperature: Sampling temperature for the default provider

    Returns:
        A streaming provider for Gemini, a chat provider otherwise
    """
    if config.provider == ProviderKind.OPENAI:
        openai_config = config.to_openai_config(settings)
        logger.debug("Using OpenAI-compatible provider: %s", openai_config.endpoint)
        return ChatCompletionJSONProvider(ChatCompletionClient(openai_config))

    client = gemini_client or GeminiClient(GeminiConfig.from_settings(settings))
    return GeminiJSONProvider(client, temperature=temperature)
