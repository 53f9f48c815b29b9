"""
Blank Normalization - Widen fill-in-blank placeholders so they can be handwritten in.
"""

from __future__ import annotations

import re
from typing import Any

__all__ = ["BLANK", "MIN_BLANK_WIDTH", "normalize_blank_text", "normalize_document_blanks"]

MIN_BLANK_WIDTH = 6
BLANK = "_" * 14

# Runs shorter than MIN_BLANK_WIDTH; longer runs are already wide enough.
_SHORT_UNDERSCORES = re.compile(r"(?<!_)_{2,%d}(?!_)" % (MIN_BLANK_WIDTH - 1))
# Empty half- or full-width parentheses, e.g. "( )", "（）", "(   ）".
_EMPTY_PARENS = re.compile(r"[(（]\s*[)）]")


def normalize_blank_text(text: str) -> str:
    """
    Replace narrow blanks with a fixed-width placeholder.

    Idempotent: the placeholder itself is wider than the threshold and
    a filled parenthesis no longer matches the empty-parenthesis rule.

    Example:
        >>> normalize_blank_text("answer is ( )")
        'answer is （ ______________ ）'
    """
    text = _SHORT_UNDERSCORES.sub(f" {BLANK} ", text)
    return _EMPTY_PARENS.sub(f"（ {BLANK} ）", text)


def normalize_document_blanks(document: dict[str, Any]) -> dict[str, Any]:
    """
    Apply normalize_blank_text to every fill-in-blank question of a wire document.

    Works on unvalidated model output: entries that are not shaped like
    sections or questions are passed through untouched. The input is not
    modified.
    """
    sections = document.get("sections")
    if not isinstance(sections, list):
        return document

    normalized = []
    for section in sections:
        questions = section.get("questions") if isinstance(section, dict) else None
        if not isinstance(questions, list):
            normalized.append(section)
            continue
        normalized.append({**section, "questions": [_normalize_question(q) for q in questions]})
    return {**document, "sections": normalized}


def _normalize_question(question: Any) -> Any:
    if not isinstance(question, dict) or question.get("type") != "fill_in_blank":
        return question
    text = question.get("text")
    if not isinstance(text, str):
        return question
    return {**question, "text": normalize_blank_text(text)}
