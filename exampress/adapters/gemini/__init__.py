"""
Gemini Adapter - Unified Google Gemini API client.

This is the ONLY place that calls the Gemini API.
All domains use this adapter for default-provider operations.
"""

from .client import GeminiClient
from .models import GeminiConfig, GeminiResponse

__all__ = [
    "GeminiClient",
    "GeminiConfig",
    "GeminiResponse",
]
