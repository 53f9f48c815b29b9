"""
Gemini Client - Unified Google Gemini API client.

This is the SINGLE source of truth for all Gemini API interactions.

Features:
- Schema-constrained JSON generation (streamed or one-shot)
- Plain text streaming
- Image generation through the REST generateContent endpoint
- SDK and transport failures translated into ExamPress provider errors

No retries are performed here; callers fail fast.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import google.generativeai as genai
import httpx

from exampress.config import AIOutputNotJSONError, ProviderError, RateLimitError

from .models import GeminiConfig, GeminiResponse

logger = logging.getLogger(__name__)

__all__ = ["GeminiClient"]


def _translate_error(e: Exception) -> ProviderError:
    """Map an SDK exception onto the provider error taxonomy."""
    error_msg = str(e).lower()
    if "429" in error_msg or "quota" in error_msg or "rate limit" in error_msg:
        return RateLimitError(f"Gemini rate limit exceeded: {e}")
    return ProviderError(f"Gemini API error: {e}")


def _chunk_text(chunk: Any) -> str:
    """Text of a streamed chunk; safety-blocked or empty chunks carry none."""
    try:
        return chunk.text or ""
    except ValueError:
        return ""


class GeminiClient:
    """
    Unified Gemini API client.

    Example:
        >>> client = GeminiClient(GeminiConfig(api_key="..."))
        >>> async for fragment in client.stream_generate(prompt, response_schema=schema):
        ...     print(fragment, end="")

        >>> data = await client.generate_json(prompt, response_schema=schema)
    """

    def __init__(
        self,
        config: GeminiConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize Gemini client.

        Args:
            config: Client configuration. Uses defaults if None.
            transport: Optional httpx transport for the REST image endpoint
        """
        self.config = config or GeminiConfig()
        self._transport = transport

        if self.config.api_key:
            genai.configure(api_key=self.config.api_key)

        # Model instances keyed by generation config (lazy loaded)
        self._models: dict[str, genai.GenerativeModel] = {}

        logger.info(
            "GeminiClient initialized: model=%s, image_model=%s",
            self.config.model,
            self.config.image_model,
        )

    def _get_model(
        self,
        temperature: float | None = None,
        response_schema: dict[str, Any] | None = None,
    ) -> genai.GenerativeModel:
        """Get or create model instance for a generation config."""
        generation_config: dict[str, Any] = {
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_output_tokens": self.config.max_output_tokens,
        }
        if response_schema is not None:
            generation_config["response_mime_type"] = "application/json"
            generation_config["response_schema"] = response_schema

        key = json.dumps(generation_config, sort_keys=True, ensure_ascii=False)
        if key not in self._models:
            self._models[key] = genai.GenerativeModel(
                model_name=self.config.model,
                generation_config=generation_config,
            )
        return self._models[key]

    @staticmethod
    def _build_contents(prompt: str, system_instruction: str | None) -> list[dict[str, Any]]:
        contents = []
        if system_instruction:
            contents.append({"role": "user", "parts": [system_instruction]})
            contents.append({"role": "model", "parts": ["Understood."]})
        contents.append({"role": "user", "parts": [prompt]})
        return contents

    async def generate(
        self,
        prompt: str,
        system_instruction: str | None = None,
        temperature: float | None = None,
        response_schema: dict[str, Any] | None = None,
    ) -> GeminiResponse:
        """
        Generate a complete response in one call.

        Args:
            prompt: User prompt
            system_instruction: Optional system instruction
            temperature: Override configured temperature
            response_schema: Constrain output to JSON of this shape

        Returns:
            GeminiResponse with generated text

        Raises:
            ProviderError: API call failed
            RateLimitError: Quota or rate limit exceeded
        """
        model = self._get_model(temperature, response_schema)
        contents = self._build_contents(prompt, system_instruction)

        try:
            response = await asyncio.to_thread(
                model.generate_content,
                contents,
                request_options={"timeout": self.config.timeout_seconds},
            )
        except Exception as e:
            raise _translate_error(e) from e

        usage = getattr(response, "usage_metadata", None)
        prompt_tokens = getattr(usage, "prompt_token_count", 0) if usage else 0
        completion_tokens = getattr(usage, "candidates_token_count", 0) if usage else 0

        return GeminiResponse(
            text=_chunk_text(response),
            model=self.config.model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )

    async def generate_json(
        self,
        prompt: str,
        response_schema: dict[str, Any],
        system_instruction: str | None = None,
        temperature: float | None = None,
    ) -> dict[str, Any]:
        """
        Generate schema-constrained JSON in one call.

        Args:
            prompt: User prompt
            response_schema: Shape the model must emit
            system_instruction: Optional system instruction
            temperature: Override configured temperature

        Returns:
            Parsed JSON object

        Raises:
            AIOutputNotJSONError: Model output did not parse
        """
        response = await self.generate(
            prompt,
            system_instruction=system_instruction,
            temperature=temperature,
            response_schema=response_schema,
        )

        try:
            result = json.loads(response.text)
        except json.JSONDecodeError as e:
            raise AIOutputNotJSONError(
                "AI response was not valid JSON",
                {"excerpt": response.text[:200]},
            ) from e

        if not isinstance(result, dict):
            raise AIOutputNotJSONError(
                "AI response was not a JSON object", {"excerpt": response.text[:200]}
            )
        return result

    async def stream_generate(
        self,
        prompt: str,
        system_instruction: str | None = None,
        temperature: float | None = None,
        response_schema: dict[str, Any] | None = None,
    ) -> AsyncIterator[str]:
        """
        Stream generated text.

        The SDK iterator is blocking, so each chunk is pulled on a worker
        thread. Chunks without text are skipped.

        Args:
            prompt: User prompt
            system_instruction: Optional system instruction
            temperature: Override configured temperature
            response_schema: Constrain output to JSON of this shape

        Yields:
            Text fragments in arrival order

        Raises:
            ProviderError: API call failed, initially or mid-stream
        """
        model = self._get_model(temperature, response_schema)
        contents = self._build_contents(prompt, system_instruction)

        try:
            response = await asyncio.to_thread(
                model.generate_content,
                contents,
                stream=True,
                request_options={"timeout": self.config.timeout_seconds},
            )
            chunks = iter(response)
        except Exception as e:
            raise _translate_error(e) from e

        count = 0
        while True:
            try:
                chunk = await asyncio.to_thread(next, chunks, None)
            except Exception as e:
                raise _translate_error(e) from e
            if chunk is None:
                break

            text = _chunk_text(chunk)
            if text:
                count += 1
                yield text

        logger.debug("Gemini stream finished: %d fragments", count)

    async def stream_text(
        self,
        prompt: str,
        temperature: float | None = None,
    ) -> AsyncIterator[str]:
        """Stream unconstrained plain text."""
        async for text in self.stream_generate(prompt, temperature=temperature):
            yield text

    async def generate_image(self, prompt: str) -> str | None:
        """
        Generate an illustration for a question.

        Args:
            prompt: Visual description

        Returns:
            A data URL of the first returned image, or None if the model
            answered with text only

        Raises:
            ProviderError: API call failed or no API key configured
            RateLimitError: Quota exceeded
        """
        if not self.config.api_key:
            raise ProviderError("Gemini API key is not configured for image generation")

        url = f"{self.config.api_base.rstrip('/')}/models/{self.config.image_model}:generateContent"
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=float(self.config.timeout_seconds),
            ) as client:
                response = await client.post(
                    url,
                    headers={
                        "x-goog-api-key": self.config.api_key,
                        "Content-Type": "application/json",
                    },
                    json=body,
                )
        except httpx.HTTPError as e:
            raise ProviderError(f"Gemini image request failed: {e}") from e

        if response.status_code == 429:
            raise RateLimitError("Gemini image quota exceeded")

        if response.status_code != 200:
            logger.error("Gemini image error: %s %s", response.status_code, response.text[:200])
            raise ProviderError(
                f"Gemini image API error: {response.status_code}",
                {"status": response.status_code},
            )

        data = response.json()
        for candidate in data.get("candidates", []):
            for part in candidate.get("content", {}).get("parts", []):
                inline = part.get("inlineData")
                if inline and inline.get("data"):
                    mime_type = inline.get("mimeType", "image/png")
                    return f"data:{mime_type};base64,{inline['data']}"

        return None
