"""
Question Images - Side-channel illustration fan-out for practice sets.

Every question with a non-blank imagePrompt gets its own concurrent image
call, started after a small random delay to spread the burst. Failures
leave that question without an image; they never fail the set.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

from .contracts import ImageGenerator
from .prompts import IMAGE_STYLE_PREFIX

logger = logging.getLogger(__name__)

__all__ = ["attach_images", "questions_needing_images"]


def questions_needing_images(exam: dict[str, Any]) -> list[dict[str, Any]]:
    """Questions (as wire dicts) whose imagePrompt is non-blank, in document order."""
    found = []
    for section in exam.get("sections") or []:
        if not isinstance(section, dict):
            continue
        for question in section.get("questions") or []:
            if isinstance(question, dict) and str(question.get("imagePrompt") or "").strip():
                found.append(question)
    return found


async def attach_images(
    exam: dict[str, Any],
    image_generator: ImageGenerator,
    jitter_seconds: float = 0.5,
) -> int:
    """
    Generate illustrations and set ``imageUrl`` on the questions in place.

    Args:
        exam: Wire-format exam document (mutated)
        image_generator: Image backend
        jitter_seconds: Upper bound of the random start delay per call

    Returns:
        Number of questions that received an image
    """
    targets = questions_needing_images(exam)
    if not targets:
        return 0

    async def render(question: dict[str, Any]) -> str | None:
        await asyncio.sleep(random.uniform(0, jitter_seconds))
        return await image_generator.generate_image(IMAGE_STYLE_PREFIX + question["imagePrompt"])

    results = await asyncio.gather(*(render(q) for q in targets), return_exceptions=True)

    attached = 0
    for question, result in zip(targets, results):
        if isinstance(result, BaseException):
            logger.warning(
                "Image generation failed for question %s: %s", question.get("id"), result
            )
        elif result:
            question["imageUrl"] = result
            attached += 1

    logger.info("Attached %d/%d question images", attached, len(targets))
    return attached
