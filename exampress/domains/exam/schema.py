"""
Response Schema - Shape requested from schema-constrained generation.

Types use the upper-case OpenAPI subset accepted by Gemini's ``response_schema``.
"""

from __future__ import annotations

from typing import Any

from .models import QuestionType

__all__ = ["EXAM_RESPONSE_SCHEMA", "PRACTICE_RESPONSE_SCHEMA", "exam_response_schema"]


def exam_response_schema(
    image_prompt_description: str = "DEPRECATED. Do not use.",
    include_text_diagram: bool = True,
    section_title_description: str = (
        "Section title, WITHOUT numbering, e.g. '选择题' (NOT '一、选择题')"
    ),
) -> dict[str, Any]:
    """
    Build the exam document schema.

    Args:
        image_prompt_description: Guidance attached to the ``imagePrompt`` field
        include_text_diagram: Offer the ASCII ``textDiagram`` field
        section_title_description: Guidance attached to section titles

    Returns:
        Schema dict suitable for ``response_schema``
    """
    question_properties: dict[str, Any] = {
        "id": {"type": "INTEGER"},
        "number": {"type": "INTEGER"},
        "text": {"type": "STRING", "description": "The content of the question"},
        "type": {"type": "STRING", "enum": [t.value for t in QuestionType]},
        "score": {"type": "INTEGER"},
        "options": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "Options for multiple choice questions (A, B, C, D)",
        },
        "answerSpaceLines": {
            "type": "INTEGER",
            "description": "Recommended number of blank lines for answer. 0 for Choice/Judgment.",
        },
    }
    if include_text_diagram:
        question_properties["textDiagram"] = {
            "type": "STRING",
            "description": (
                "ASCII art or text-based visual representation of geometry/physics "
                "diagrams. Use this INSTEAD of imagePrompt."
            ),
        }
    question_properties["imagePrompt"] = {
        "type": "STRING",
        "description": image_prompt_description,
    }

    return {
        "type": "OBJECT",
        "properties": {
            "title": {"type": "STRING", "description": "Main title of the exam"},
            "subtitle": {
                "type": "STRING",
                "description": "Subtitle including grade and subject",
            },
            "subject": {"type": "STRING"},
            "grade": {"type": "STRING"},
            "durationMinutes": {"type": "INTEGER"},
            "totalScore": {"type": "INTEGER"},
            "sections": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "title": {"type": "STRING", "description": section_title_description},
                        "description": {
                            "type": "STRING",
                            "description": "Instructions for this section",
                        },
                        "totalScore": {"type": "INTEGER"},
                        "questions": {
                            "type": "ARRAY",
                            "items": {
                                "type": "OBJECT",
                                "properties": question_properties,
                                "required": ["id", "number", "text", "type", "score"],
                            },
                        },
                    },
                    "required": ["title", "questions", "totalScore"],
                },
            },
        },
        "required": ["title", "subject", "sections"],
    }


EXAM_RESPONSE_SCHEMA = exam_response_schema()

PRACTICE_RESPONSE_SCHEMA = exam_response_schema(
    image_prompt_description="Visual description for geometry/physics. EMPTY for text-only.",
    include_text_diagram=False,
    section_title_description="Section title, e.g. '专项练习'",
)
