"""
Generation Routes - Topic-based exams, practice sets and topic rewriting.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from exampress.domains.generation import (
    ExamGenerator,
    ExamRequest,
    PracticeRequest,
    TopicOptimizationRequest,
)
from exampress.interfaces.api.deps import get_generator

router = APIRouter()


@router.post("/generate-exam")
async def generate_exam(
    request: ExamRequest,
    generator: ExamGenerator = Depends(get_generator),
) -> dict[str, Any]:
    """
    Generate a complete exam from a topic description.

    - **level** / **gradeSpec** / **subject**: Who the exam is for
    - **topicDescription**: Knowledge points to cover
    - **difficulty**: `easy`, `medium` or `hard`
    """
    return await generator.generate_exam(request)


@router.post("/generate-practice")
async def generate_practice(
    request: PracticeRequest,
    generator: ExamGenerator = Depends(get_generator),
) -> dict[str, Any]:
    """
    Generate a single-section practice set.

    Questions whose model output asked for an illustration get an
    `imageUrl` when image generation succeeds.
    """
    return await generator.generate_practice(request)


@router.post("/optimize-topic")
async def optimize_topic(
    request: TopicOptimizationRequest,
    generator: ExamGenerator = Depends(get_generator),
) -> StreamingResponse:
    """Stream a rewritten topic description as plain text."""
    return StreamingResponse(
        generator.optimize_topic(request),
        media_type="text/plain; charset=utf-8",
    )
