"""
OpenAI-Compatible Adapter - Chat completions against custom endpoints.
"""

from .client import ChatCompletionClient
from .models import ChatCompletionResponse, OpenAIConfig

__all__ = [
    "ChatCompletionClient",
    "ChatCompletionResponse",
    "OpenAIConfig",
]
