"""Tests for the command-line interface."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from exampress import __version__
from exampress.config import ErrorCode, NoInputError
from exampress.domains.orchestration import CompleteEvent, ErrorEvent, FragmentEvent, PhaseEvent

from .main import app

runner = CliRunner()

EXAM = {"title": "Quiz", "subject": "Math", "sections": [{"title": "A", "questions": []}]}


def _pipeline_with(*events) -> MagicMock:
    async def run_file(document, overrides) -> AsyncIterator:
        for event in events:
            yield event

    pipeline = MagicMock()
    pipeline.run_file = run_file
    return pipeline


def test_version() -> None:
    """Test version output."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_format_missing_file(tmp_path: Path) -> None:
    """Test a missing file exits with an error."""
    result = runner.invoke(app, ["format", str(tmp_path / "missing.pdf")])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_format_writes_output(tmp_path: Path) -> None:
    """Test a completed run writes the document."""
    source = tmp_path / "exam.pdf"
    source.write_bytes(b"%PDF-1.4")
    target = tmp_path / "exam.json"
    pipeline = _pipeline_with(
        PhaseEvent(status="parsing", message="parsing"),
        FragmentEvent(chunk=json.dumps(EXAM)),
        CompleteEvent(data=EXAM),
    )

    with patch("exampress.interfaces.cli.main.ExtractionPipeline", return_value=pipeline):
        result = runner.invoke(app, ["format", str(source), "-o", str(target)])

    assert result.exit_code == 0
    assert json.loads(target.read_text(encoding="utf-8")) == EXAM


def test_format_error_event(tmp_path: Path) -> None:
    """Test an error event exits non-zero with its message."""
    source = tmp_path / "slides.ppt"
    source.write_bytes(b"\x00")
    pipeline = _pipeline_with(
        PhaseEvent(status="parsing", message="parsing"),
        ErrorEvent(message="Please save it as .pptx", code=ErrorCode.UNSUPPORTED_FORMAT.value),
    )

    with patch("exampress.interfaces.cli.main.ExtractionPipeline", return_value=pipeline):
        result = runner.invoke(app, ["format", str(source)])

    assert result.exit_code == 1
    assert "Please save it as .pptx" in result.output


def test_parse_text_from_stdin(tmp_path: Path) -> None:
    """Test text is read from stdin with '-'."""
    pipeline = MagicMock()
    pipeline.extract_text = AsyncMock(return_value=EXAM)
    target = tmp_path / "out.json"

    with patch("exampress.interfaces.cli.main.ExtractionPipeline", return_value=pipeline):
        result = runner.invoke(app, ["parse-text", "-", "-o", str(target)], input="1. 2+2=?")

    assert result.exit_code == 0
    assert pipeline.extract_text.await_args.args[0] == "1. 2+2=?"
    assert json.loads(target.read_text(encoding="utf-8")) == EXAM


def test_parse_text_error() -> None:
    """Test pipeline errors exit non-zero."""
    pipeline = MagicMock()
    pipeline.extract_text = AsyncMock(
        side_effect=NoInputError("No file or text content was provided")
    )

    with patch("exampress.interfaces.cli.main.ExtractionPipeline", return_value=pipeline):
        result = runner.invoke(app, ["parse-text", "-"], input="")

    assert result.exit_code == 1
    assert "No file or text content was provided" in result.output


def test_generate_rejects_bad_difficulty() -> None:
    """Test unknown difficulty values are rejected."""
    result = runner.invoke(
        app,
        ["generate", "-s", "数学", "-g", "三年级", "-t", "加法", "-d", "impossible"],
    )
    assert result.exit_code == 1
