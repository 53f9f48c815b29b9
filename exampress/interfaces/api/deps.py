"""
API Dependencies - Dependency injection for FastAPI routes.

Provides singleton instances of the clients and services.
"""

from __future__ import annotations

from functools import lru_cache, partial

from exampress.adapters.gemini import GeminiClient, GeminiConfig
from exampress.config import get_settings
from exampress.domains.generation import ExamGenerator
from exampress.domains.orchestration import ExtractionPipeline, build_provider


@lru_cache
def get_gemini_client() -> GeminiClient:
    """Get Gemini client singleton."""
    return GeminiClient(GeminiConfig.from_settings(get_settings()))


@lru_cache
def get_pipeline() -> ExtractionPipeline:
    """Get extraction pipeline singleton."""
    settings = get_settings()
    factory = partial(build_provider, settings=settings, gemini_client=get_gemini_client())
    return ExtractionPipeline(settings, provider_factory=factory)


@lru_cache
def get_generator() -> ExamGenerator:
    """Get exam generator singleton."""
    return ExamGenerator(get_gemini_client(), get_settings())
