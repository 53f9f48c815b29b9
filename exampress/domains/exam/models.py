"""
Exam Models - The structured exam document produced by extraction and generation.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from .normalize import normalize_blank_text


class QuestionType(str, Enum):
    """Question categories the model may assign."""

    MULTIPLE_CHOICE = "multiple_choice"
    FILL_IN_BLANK = "fill_in_blank"
    SHORT_ANSWER = "short_answer"
    CALCULATION = "calculation"
    ESSAY = "essay"
    JUDGMENT = "judgment"

    @property
    def is_objective(self) -> bool:
        """Choice and judgment questions need no answer space."""
        return self in (QuestionType.MULTIPLE_CHOICE, QuestionType.JUDGMENT)


class Question(BaseModel):
    """A single numbered question."""

    id: int
    number: int
    text: str
    type: QuestionType
    score: int
    options: list[str] | None = None
    answer_space_lines: int | None = Field(default=None, alias="answerSpaceLines")
    text_diagram: str | None = Field(default=None, alias="textDiagram")
    image_prompt: str | None = Field(default=None, alias="imagePrompt")
    image_url: str | None = Field(default=None, alias="imageUrl")

    model_config = {"frozen": True, "populate_by_name": True, "extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def normalize_fill_in_blank(cls, data: Any) -> Any:
        """Widen blanks in fill-in-blank question text."""
        if isinstance(data, dict):
            kind = data.get("type")
            if isinstance(kind, QuestionType):
                kind = kind.value
            text = data.get("text")
            if kind == QuestionType.FILL_IN_BLANK.value and isinstance(text, str):
                data = {**data, "text": normalize_blank_text(text)}
        return data


class Section(BaseModel):
    """A titled group of questions, e.g. '选择题'."""

    title: str
    description: str | None = None
    total_score: int = Field(alias="totalScore")
    questions: list[Question]

    model_config = {"frozen": True, "populate_by_name": True, "extra": "ignore"}

    @property
    def question_score_sum(self) -> int:
        """Sum of contained question scores."""
        return sum(q.score for q in self.questions)


class ExamDocument(BaseModel):
    """Complete exam paper: header fields plus ordered sections."""

    title: str
    subtitle: str | None = None
    subject: str
    grade: str | None = None
    duration_minutes: int | None = Field(default=None, alias="durationMinutes")
    total_score: int | None = Field(default=None, alias="totalScore")
    sections: list[Section]

    model_config = {"frozen": True, "populate_by_name": True, "extra": "ignore"}

    def iter_questions(self) -> Iterator[Question]:
        """Yield every question in presentation order."""
        for section in self.sections:
            yield from section.questions

    @property
    def question_count(self) -> int:
        """Total number of questions."""
        return sum(len(s.questions) for s in self.sections)

    def consistency_issues(self) -> list[str]:
        """
        Check soft invariants of the document.

        Returns:
            List of human-readable issues (empty if consistent)
        """
        issues = []

        for section in self.sections:
            if section.total_score != section.question_score_sum:
                issues.append(
                    f"section '{section.title}': totalScore {section.total_score} "
                    f"!= sum of question scores {section.question_score_sum}"
                )

        ids = Counter(q.id for q in self.iter_questions())
        numbers = Counter(q.number for q in self.iter_questions())
        for value, count in sorted(ids.items()):
            if count > 1:
                issues.append(f"question id {value} used {count} times")
        for value, count in sorted(numbers.items()):
            if count > 1:
                issues.append(f"question number {value} used {count} times")

        for q in self.iter_questions():
            if q.type == QuestionType.MULTIPLE_CHOICE and not q.options:
                issues.append(f"question {q.number}: multiple_choice without options")
            if q.type != QuestionType.MULTIPLE_CHOICE and q.options:
                issues.append(f"question {q.number}: options on {q.type.value} question")
            if q.type.is_objective and q.answer_space_lines:
                issues.append(
                    f"question {q.number}: answer space on {q.type.value} question"
                )

        return issues

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
