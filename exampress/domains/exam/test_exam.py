"""
Tests for exam document models, normalization and schema.
"""

from __future__ import annotations

from typing import Any

import pytest

from .models import ExamDocument, Question, QuestionType, Section
from .normalize import BLANK, normalize_blank_text, normalize_document_blanks
from .schema import EXAM_RESPONSE_SCHEMA, PRACTICE_RESPONSE_SCHEMA


@pytest.fixture
def exam_payload() -> dict[str, Any]:
    """Wire-format exam as the model would emit it."""
    return {
        "title": "期中考试",
        "subtitle": "小学三年级数学试卷",
        "subject": "数学",
        "grade": "三年级",
        "durationMinutes": 60,
        "totalScore": 10,
        "sections": [
            {
                "title": "选择题",
                "description": "选出正确答案",
                "totalScore": 4,
                "questions": [
                    {
                        "id": 1,
                        "number": 1,
                        "text": "What is 2+2?",
                        "type": "multiple_choice",
                        "score": 4,
                        "options": ["3", "4", "5"],
                        "answerSpaceLines": 0,
                    }
                ],
            },
            {
                "title": "填空题",
                "totalScore": 6,
                "questions": [
                    {
                        "id": 2,
                        "number": 2,
                        "text": "3 + 4 = ( )",
                        "type": "fill_in_blank",
                        "score": 6,
                    }
                ],
            },
        ],
    }


# --- Normalization Tests ---


def test_normalize_empty_parentheses() -> None:
    """Test empty parentheses become a wide full-width blank."""
    assert normalize_blank_text("answer is ( )") == "answer is （ ______________ ）"


def test_normalize_full_width_parentheses() -> None:
    """Test full-width and mixed parentheses are recognised."""
    assert normalize_blank_text("答案是（）") == f"答案是（ {BLANK} ）"
    assert normalize_blank_text("答案是(   ）") == f"答案是（ {BLANK} ）"


def test_normalize_short_underscores() -> None:
    """Test runs of 2-5 underscores are widened."""
    assert normalize_blank_text("5 + __ = 7") == f"5 +  {BLANK}  = 7"
    assert normalize_blank_text("a_____b") == f"a {BLANK} b"


def test_normalize_leaves_wide_blanks_unchanged() -> None:
    """Test text with 6+ underscores is left alone."""
    text = "The capital of France is ______."
    assert normalize_blank_text(text) == text


def test_normalize_leaves_single_underscore() -> None:
    """Test identifiers like snake_case are not blanks."""
    assert normalize_blank_text("x_1 + x_2") == "x_1 + x_2"


@pytest.mark.parametrize(
    "text",
    [
        "answer is ( )",
        "5 + __ = 7 and （）",
        "already ______________ wide",
        "no blanks here",
        "___ then ( ) then ________",
    ],
)
def test_normalize_is_idempotent(text: str) -> None:
    """Test normalizing twice equals normalizing once."""
    once = normalize_blank_text(text)
    assert normalize_blank_text(once) == once


def test_normalized_blanks_meet_minimum_width() -> None:
    """Test every produced blank is at least six underscores wide."""
    result = normalize_blank_text("a __ b ( ) c")
    runs = [run for run in result.split() if set(run) == {"_"}]
    assert runs
    assert all(len(run) >= 6 for run in runs)


def test_normalize_document_blanks_fill_in_blank_only() -> None:
    """Test only fill-in-blank question texts are rewritten."""
    document: dict[str, Any] = {
        "title": "T",
        "sections": [
            {
                "title": "A",
                "questions": [
                    {"text": "x = ( )", "type": "fill_in_blank"},
                    {"text": "x = ( )", "type": "short_answer"},
                ],
            }
        ],
    }

    result = normalize_document_blanks(document)

    questions = result["sections"][0]["questions"]
    assert questions[0]["text"] == f"x = （ {BLANK} ）"
    assert questions[1]["text"] == "x = ( )"
    assert document["sections"][0]["questions"][0]["text"] == "x = ( )"


def test_normalize_document_blanks_tolerates_odd_shapes() -> None:
    """Test malformed sections and questions pass through untouched."""
    document: dict[str, Any] = {
        "sections": [None, {"questions": "none"}, {"questions": [3, {"type": "fill_in_blank"}]}]
    }
    assert normalize_document_blanks(document) == document
    assert normalize_document_blanks({"title": "T"}) == {"title": "T"}


# --- Question Tests ---


def test_question_aliases() -> None:
    """Test camelCase wire keys populate snake_case fields."""
    question = Question.model_validate(
        {
            "id": 7,
            "number": 3,
            "text": "Draw it",
            "type": "essay",
            "score": 8,
            "answerSpaceLines": 6,
            "textDiagram": "/\\",
        }
    )
    assert question.answer_space_lines == 6
    assert question.text_diagram == "/\\"
    assert question.type == QuestionType.ESSAY


def test_question_fill_in_blank_is_normalized() -> None:
    """Test fill-in-blank text is widened on construction."""
    question = Question(id=1, number=1, text="1 + 1 = __", type="fill_in_blank", score=2)
    assert BLANK in question.text


def test_question_other_types_not_normalized() -> None:
    """Test only fill-in-blank questions are rewritten."""
    question = Question(id=1, number=1, text="对吗？( )", type="judgment", score=2)
    assert question.text == "对吗？( )"


def test_question_requires_id_and_number() -> None:
    """Test id and number are mandatory."""
    with pytest.raises(ValueError):
        Question.model_validate({"text": "x", "type": "essay", "score": 1})


def test_question_rejects_unknown_type() -> None:
    """Test type must be one of the six categories."""
    with pytest.raises(ValueError):
        Question(id=1, number=1, text="x", type="matching", score=1)


def test_question_is_immutable() -> None:
    """Test Question is frozen."""
    question = Question(id=1, number=1, text="x", type="essay", score=1)
    with pytest.raises(Exception):
        question.text = "changed"  # type: ignore


def test_question_type_objective() -> None:
    """Test objective question types."""
    assert QuestionType.MULTIPLE_CHOICE.is_objective
    assert QuestionType.JUDGMENT.is_objective
    assert not QuestionType.CALCULATION.is_objective


# --- ExamDocument Tests ---


def test_exam_document_from_wire(exam_payload: dict[str, Any]) -> None:
    """Test a full document parses with sections in order."""
    exam = ExamDocument.model_validate(exam_payload)
    assert exam.title == "期中考试"
    assert exam.duration_minutes == 60
    assert [s.title for s in exam.sections] == ["选择题", "填空题"]
    assert exam.question_count == 2
    assert exam.sections[0].questions[0].options == ["3", "4", "5"]


def test_exam_document_fill_in_blank_normalized(exam_payload: dict[str, Any]) -> None:
    """Test nested fill-in-blank questions get normalized."""
    exam = ExamDocument.model_validate(exam_payload)
    assert exam.sections[1].questions[0].text == f"3 + 4 = （ {BLANK} ）"


def test_exam_document_empty_section_allowed() -> None:
    """Test an explicitly empty question list is valid."""
    exam = ExamDocument(
        title="T",
        subject="S",
        sections=[Section(title="选择题", totalScore=0, questions=[])],
    )
    assert exam.sections[0].questions == []
    assert exam.consistency_issues() == []


def test_exam_document_requires_sections() -> None:
    """Test sections cannot be missing or null."""
    with pytest.raises(ValueError):
        ExamDocument.model_validate({"title": "T", "subject": "S"})
    with pytest.raises(ValueError):
        ExamDocument.model_validate({"title": "T", "subject": "S", "sections": None})


def test_section_score_sum_matches(exam_payload: dict[str, Any]) -> None:
    """Test section totals equal the sum of their question scores."""
    exam = ExamDocument.model_validate(exam_payload)
    for section in exam.sections:
        assert section.total_score == section.question_score_sum
    assert exam.consistency_issues() == []


def test_consistency_issues_reported(exam_payload: dict[str, Any]) -> None:
    """Test soft invariant violations are listed, not raised."""
    exam_payload["sections"][0]["totalScore"] = 99
    exam_payload["sections"][1]["questions"][0]["number"] = 1
    exam_payload["sections"][1]["questions"][0]["options"] = ["x"]
    exam = ExamDocument.model_validate(exam_payload)

    issues = exam.consistency_issues()
    assert any("totalScore 99" in issue for issue in issues)
    assert any("question number 1 used 2 times" in issue for issue in issues)
    assert any("options on fill_in_blank" in issue for issue in issues)


def test_consistency_flags_choice_without_options() -> None:
    """Test multiple choice questions must carry options."""
    exam = ExamDocument(
        title="T",
        subject="S",
        sections=[
            Section(
                title="选择题",
                totalScore=2,
                questions=[
                    Question(
                        id=1,
                        number=1,
                        text="?",
                        type="multiple_choice",
                        score=2,
                        answerSpaceLines=3,
                    )
                ],
            )
        ],
    )
    issues = exam.consistency_issues()
    assert "question 1: multiple_choice without options" in issues
    assert "question 1: answer space on multiple_choice question" in issues


def test_to_wire_uses_aliases(exam_payload: dict[str, Any]) -> None:
    """Test wire serialization uses camelCase and drops None."""
    wire = ExamDocument.model_validate(exam_payload).to_wire()
    assert wire["durationMinutes"] == 60
    assert wire["sections"][0]["totalScore"] == 4
    assert "description" not in wire["sections"][1]
    assert "imageUrl" not in wire["sections"][0]["questions"][0]


def test_unknown_keys_ignored(exam_payload: dict[str, Any]) -> None:
    """Test extra keys from the model are tolerated."""
    exam_payload["difficulty"] = "hard"
    exam = ExamDocument.model_validate(exam_payload)
    assert not hasattr(exam, "difficulty")


# --- Schema Tests ---


def test_exam_schema_required_fields() -> None:
    """Test the schema declares the required document keys."""
    assert EXAM_RESPONSE_SCHEMA["required"] == ["title", "subject", "sections"]
    section = EXAM_RESPONSE_SCHEMA["properties"]["sections"]["items"]
    assert section["required"] == ["title", "questions", "totalScore"]
    question = section["properties"]["questions"]["items"]
    assert question["required"] == ["id", "number", "text", "type", "score"]
    assert question["properties"]["type"]["enum"] == [t.value for t in QuestionType]


def test_practice_schema_has_no_text_diagram() -> None:
    """Test practice sets use image prompts instead of ASCII diagrams."""
    question = PRACTICE_RESPONSE_SCHEMA["properties"]["sections"]["items"]["properties"][
        "questions"
    ]["items"]
    assert "textDiagram" not in question["properties"]
    assert "imagePrompt" in question["properties"]
