"""
Chat Completion Client - OpenAI-compatible HTTP endpoints.

Used when a request selects a custom provider (OpenAI, DeepSeek, a local
gateway, ...). Only the /chat/completions route is required.
"""

from __future__ import annotations

import logging

import httpx

from exampress.config import ProviderError, RateLimitError

from .models import ChatCompletionResponse, OpenAIConfig

logger = logging.getLogger(__name__)

__all__ = ["ChatCompletionClient"]


class ChatCompletionClient:
    """
    Minimal OpenAI-compatible chat completion client.

    Example:
        >>> client = ChatCompletionClient(OpenAIConfig(
        ...     base_url="https://api.deepseek.com/v1", api_key="sk-...", model="deepseek-chat"
        ... ))
        >>> response = await client.complete([{"role": "user", "content": "Hi"}])
    """

    def __init__(
        self,
        config: OpenAIConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize client.

        Args:
            config: Endpoint, key and model
            transport: Optional httpx transport (tests inject a mock)
        """
        self.config = config
        self._transport = transport

    async def complete(
        self,
        messages: list[dict[str, str]],
        json_mode: bool = False,
    ) -> ChatCompletionResponse:
        """
        Run one chat completion.

        Args:
            messages: Chat messages with role and content
            json_mode: Ask the endpoint for a JSON object response

        Returns:
            The first choice's message content

        Raises:
            ProviderError: Transport failure, non-2xx status or empty choices
            RateLimitError: Endpoint answered 429
        """
        body: dict = {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }
        if json_mode:
            body["response_format"] = {"type": "json_object"}

        logger.info("Chat completion: %s model=%s", self.config.endpoint, self.config.model)

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=float(self.config.timeout_seconds),
            ) as client:
                response = await client.post(
                    self.config.endpoint,
                    headers={
                        "Authorization": f"Bearer {self.config.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=body,
                )
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Custom provider request failed: {e}",
                {"endpoint": self.config.endpoint},
            ) from e

        if response.status_code == 429:
            raise RateLimitError(
                "Custom provider rate limit exceeded",
                {"endpoint": self.config.endpoint, "body": response.text[:200]},
            )

        if not response.is_success:
            logger.error("Custom provider error: %s %s", response.status_code, response.text[:200])
            raise ProviderError(
                f"Custom provider error: {response.status_code} {response.text[:200]}",
                {"endpoint": self.config.endpoint, "status": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                "Custom provider returned a non-JSON body",
                {"endpoint": self.config.endpoint, "body": response.text[:200]},
            ) from e

        choices = data.get("choices") or []
        if not choices:
            raise ProviderError(
                "Custom provider returned no choices",
                {"endpoint": self.config.endpoint},
            )

        usage = data.get("usage") or {}
        return ChatCompletionResponse(
            text=(choices[0].get("message") or {}).get("content") or "",
            model=data.get("model", self.config.model),
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            total_tokens=usage.get("total_tokens", 0),
            finish_reason=choices[0].get("finish_reason"),
        )
