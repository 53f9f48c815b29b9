"""
Exam Domain - The normalized exam document model.

This domain handles:
- Exam/section/question models
- Fill-in-blank normalization
- The schema requested from constrained generation
- Soft consistency checks
"""

from .models import ExamDocument, Question, QuestionType, Section
from .normalize import BLANK, normalize_blank_text, normalize_document_blanks
from .schema import EXAM_RESPONSE_SCHEMA, PRACTICE_RESPONSE_SCHEMA, exam_response_schema

__all__ = [
    # Models
    "ExamDocument",
    "Section",
    "Question",
    "QuestionType",
    # Normalization
    "BLANK",
    "normalize_blank_text",
    "normalize_document_blanks",
    # Schema
    "EXAM_RESPONSE_SCHEMA",
    "PRACTICE_RESPONSE_SCHEMA",
    "exam_response_schema",
]
