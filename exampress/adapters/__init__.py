"""
Adapters - External service integrations.

All external API calls are wrapped here to isolate domains from third-party changes.
"""

from .gemini import GeminiClient, GeminiConfig
from .openai import ChatCompletionClient, OpenAIConfig

__all__ = [
    # Default provider
    "GeminiClient",
    "GeminiConfig",
    # OpenAI-compatible endpoints
    "ChatCompletionClient",
    "OpenAIConfig",
]
