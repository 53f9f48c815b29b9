"""
Exam Generator - Topic-based exams, practice sets and topic rewriting.

All three use the default provider directly; per-request provider
overrides apply only to the extraction pipeline.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from exampress.domains.exam import EXAM_RESPONSE_SCHEMA, PRACTICE_RESPONSE_SCHEMA

from .contracts import ImageGenerator
from .images import attach_images
from .models import ExamRequest, PracticeRequest, TopicOptimizationRequest
from .prompts import build_exam_prompt, build_practice_prompt, build_topic_prompt

if TYPE_CHECKING:
    from exampress.adapters.gemini import GeminiClient
    from exampress.config import Settings

logger = logging.getLogger(__name__)

__all__ = ["ExamGenerator"]


class ExamGenerator:
    """
    Generate exam content from topic descriptions.

    Example:
        >>> generator = ExamGenerator(GeminiClient(config), settings)
        >>> exam = await generator.generate_exam(ExamRequest(
        ...     level="小学", gradeSpec="三年级", subject="数学", topicDescription="两位数加减法"
        ... ))
    """

    def __init__(
        self,
        client: GeminiClient,
        settings: Settings,
        image_generator: ImageGenerator | None = None,
    ) -> None:
        """
        Initialize generator.

        Args:
            client: Gemini client
            settings: Application settings
            image_generator: Illustration backend; defaults to the Gemini client
        """
        self._client = client
        self._settings = settings
        self._images = image_generator or client

    async def generate_exam(self, request: ExamRequest) -> dict[str, Any]:
        """
        Generate a complete exam.

        Args:
            request: Level, grade, subject, topics and difficulty

        Returns:
            Wire-format exam document
        """
        start_time = time.time()
        logger.info(
            "Generating exam: %s %s (%s)",
            request.grade_spec,
            request.subject,
            request.difficulty.value,
        )

        exam = await self._client.generate_json(
            build_exam_prompt(request),
            response_schema=EXAM_RESPONSE_SCHEMA,
            temperature=self._settings.generation_temperature,
        )

        logger.info("Exam generated in %.1fs", time.time() - start_time)
        return exam

    async def generate_practice(self, request: PracticeRequest) -> dict[str, Any]:
        """
        Generate a practice set and illustrate questions that ask for it.

        Args:
            request: Practice parameters

        Returns:
            Wire-format exam document, with imageUrl set where an image was produced
        """
        start_time = time.time()
        logger.info(
            "Generating practice: %s %s type=%s count=%d",
            request.grade_spec,
            request.subject,
            request.question_type,
            request.count,
        )

        practice = await self._client.generate_json(
            build_practice_prompt(request),
            response_schema=PRACTICE_RESPONSE_SCHEMA,
            temperature=self._settings.generation_temperature,
        )
        await attach_images(practice, self._images, self._settings.image_jitter_seconds)

        logger.info("Practice generated in %.1fs", time.time() - start_time)
        return practice

    async def optimize_topic(self, request: TopicOptimizationRequest) -> AsyncIterator[str]:
        """
        Stream a rewritten topic description.

        Yields:
            Plain text fragments
        """
        async for text in self._client.stream_text(build_topic_prompt(request)):
            yield text
