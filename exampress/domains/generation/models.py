"""
Generation Models - Requests for topic-based exams, practice sets and topic rewriting.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Difficulty(str, Enum):
    """Exam difficulty."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def label(self) -> str:
        """Wording used in prompts."""
        return {"easy": "基础", "medium": "中等", "hard": "困难"}[self.value]


class ExamRequest(BaseModel):
    """Request for a complete exam on a set of topics."""

    level: str = Field(min_length=1, description="School level, e.g. 小学")
    grade_spec: str = Field(min_length=1, alias="gradeSpec")
    subject: str = Field(min_length=1)
    topic_description: str = Field(min_length=1, alias="topicDescription")
    difficulty: Difficulty = Difficulty.MEDIUM

    model_config = {"frozen": True, "populate_by_name": True}


class PracticeRequest(BaseModel):
    """Request for a single-section practice set."""

    level: str = Field(min_length=1)
    grade_spec: str = Field(min_length=1, alias="gradeSpec")
    subject: str = Field(min_length=1)
    question_type: str = Field(min_length=1, alias="questionType")
    topic_description: str = Field(min_length=1, alias="topicDescription")
    count: int = Field(default=10, ge=1, le=50)

    model_config = {"frozen": True, "populate_by_name": True}


class TopicOptimizationRequest(BaseModel):
    """Request to rewrite a teacher's rough topic description."""

    raw_input: str = Field(min_length=1, alias="rawInput")
    grade: str = ""
    subject: str = ""

    model_config = {"frozen": True, "populate_by_name": True}
