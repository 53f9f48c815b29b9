"""
Extraction Pipeline - Uploaded document or pasted text to a structured exam.

Drives one job through received -> parsing -> analyzing -> formatting ->
generating* -> complete, publishing a progress event at every step. Any
failure ends the job with exactly one error event; nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from functools import partial
from typing import Any

from pydantic import ValidationError

from exampress.config import (
    AIOutputInvalidError,
    ErrorCode,
    ExamPressError,
    NoInputError,
    Settings,
)
from exampress.domains.exam import EXAM_RESPONSE_SCHEMA, ExamDocument, normalize_document_blanks
from exampress.domains.extraction import DocumentTextExtractor, SourceDocument, TextExtractor

from .aggregator import FragmentAggregator
from .contracts import JSONProvider, StreamingJSONProvider
from .events import CompleteEvent, ErrorEvent, FragmentEvent, PhaseEvent, ProgressEvent
from .models import PipelineRun, PipelineStage, ProviderOverrides
from .prompts import CHAT_SYSTEM_MESSAGE, build_format_prompt, build_parse_prompt
from .providers import build_provider

logger = logging.getLogger(__name__)

__all__ = ["ExtractionPipeline", "ProviderFactory"]

ProviderFactory = Callable[..., JSONProvider]

PARSING_MESSAGE = "正在解析文档内容..."
ANALYZING_MESSAGE = "AI 正在分析试卷结构..."
FORMATTING_MESSAGE = "正在生成标准排版..."
WAITING_MESSAGE = "正在等待模型返回完整结果..."
INTERNAL_ERROR_MESSAGE = "Formatting failed"


class ExtractionPipeline:
    """
    Structured-extraction orchestrator.

    Each call to run_file/run_text is an isolated job with its own state;
    the pipeline object itself holds only read-only configuration.

    Example:
        >>> pipeline = ExtractionPipeline(get_settings())
        >>> async for event in pipeline.run_file(SourceDocument(data=raw, filename="a.pdf")):
        ...     print(event.status)
    """

    def __init__(
        self,
        settings: Settings,
        extractor: TextExtractor | None = None,
        provider_factory: ProviderFactory | None = None,
        validate_output: bool = False,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            settings: Application settings
            extractor: Text extractor (defaults to DocumentTextExtractor)
            provider_factory: Called as ``factory(config, temperature=...)``
                to obtain a provider for a job
            validate_output: Validate the parsed output as an ExamDocument
        """
        self._settings = settings
        self._extractor = extractor or DocumentTextExtractor()
        self._provider_factory = provider_factory or partial(build_provider, settings=settings)
        self._validate_output = validate_output

    # --- Streaming entry points ---

    async def run_file(
        self,
        document: SourceDocument | None,
        overrides: ProviderOverrides | None = None,
    ) -> AsyncIterator[ProgressEvent]:
        """
        Run a job for an uploaded file.

        Args:
            document: Uploaded file, or None if nothing was sent
            overrides: Request provider fields

        Yields:
            Progress events ending in exactly one complete or error event
        """
        run = PipelineRun(source=document.label if document else "<none>")
        async for event in self._run(run, document=document, text=None, overrides=overrides):
            yield event

    async def run_text(
        self,
        text: str | None,
        overrides: ProviderOverrides | None = None,
    ) -> AsyncIterator[ProgressEvent]:
        """
        Run a job for pasted text. The parsing stage is skipped.

        Args:
            text: Pasted exam text
            overrides: Request provider fields

        Yields:
            Progress events ending in exactly one complete or error event
        """
        run = PipelineRun(source="<text>")
        async for event in self._run(run, document=None, text=text, overrides=overrides):
            yield event

    # --- Non-streaming entry points ---

    async def extract_file(
        self,
        document: SourceDocument | None,
        overrides: ProviderOverrides | None = None,
    ) -> dict[str, Any]:
        """
        Run a file job to completion.

        Returns:
            The parsed exam document

        Raises:
            ExamPressError: The error the job ended with
        """
        run = PipelineRun(source=document.label if document else "<none>")
        events = self._run(run, document=document, text=None, overrides=overrides)
        return await self._collect(run, events)

    async def extract_text(
        self,
        text: str | None,
        overrides: ProviderOverrides | None = None,
    ) -> dict[str, Any]:
        """
        Run a pasted-text job to completion.

        Returns:
            The parsed exam document

        Raises:
            ExamPressError: The error the job ended with
        """
        run = PipelineRun(source="<text>")
        events = self._run(run, document=None, text=text, overrides=overrides)
        return await self._collect(run, events)

    @staticmethod
    async def _collect(run: PipelineRun, events: AsyncIterator[ProgressEvent]) -> dict[str, Any]:
        async for _ in events:
            pass
        if run.error is not None:
            raise run.error
        assert run.result is not None
        return run.result

    # --- Job ---

    async def _run(
        self,
        run: PipelineRun,
        document: SourceDocument | None,
        text: str | None,
        overrides: ProviderOverrides | None,
    ) -> AsyncIterator[ProgressEvent]:
        from_file = document is not None
        try:
            if not from_file and not (text and text.strip()):
                raise NoInputError("No file or text content was provided")

            config = (overrides or ProviderOverrides()).resolve(self._settings)
            logger.info(
                "Job %s received: source=%s provider=%s",
                run.job_id,
                run.source,
                config.provider.value,
            )

            if from_file:
                run.advance(PipelineStage.PARSING)
                yield PhaseEvent(status="parsing", message=PARSING_MESSAGE)
                text = await asyncio.to_thread(self._extractor.extract, document)

            run.advance(PipelineStage.ANALYZING)
            yield PhaseEvent(status="analyzing", message=ANALYZING_MESSAGE)
            source = self._truncate(run, text or "")
            prompt = build_format_prompt(source) if from_file else build_parse_prompt(source)
            provider = self._provider_factory(config, temperature=self._temperature(from_file))

            run.advance(PipelineStage.FORMATTING)
            yield PhaseEvent(status="formatting", message=FORMATTING_MESSAGE)

            aggregator = FragmentAggregator()
            if isinstance(provider, StreamingJSONProvider):
                async for fragment in provider.stream_json(prompt, EXAM_RESPONSE_SCHEMA):
                    run.advance(PipelineStage.GENERATING)
                    aggregator.feed(fragment)
                    yield FragmentEvent(chunk=fragment)
            else:
                # no fragments on this path; keep the channel alive for the client
                yield PhaseEvent(status="formatting", message=WAITING_MESSAGE)
                aggregator.feed(await provider.complete_json(prompt, CHAT_SYSTEM_MESSAGE))

            data = self._finalize(run, aggregator.finish())

            run.result = data
            run.advance(PipelineStage.COMPLETE)
            logger.info(
                "Job %s complete: %d fragments in %.1fs",
                run.job_id,
                run.fragment_count,
                run.elapsed_seconds,
            )
            yield CompleteEvent(data=data)

        except ExamPressError as e:
            run.error = e
            run.advance(PipelineStage.ERROR)
            logger.warning("Job %s failed at %s: %s", run.job_id, run.history[-2].value, e)
            yield ErrorEvent(message=e.message, code=e.code.value)

        except Exception as e:
            logger.exception("Job %s crashed", run.job_id)
            run.error = ExamPressError(ErrorCode.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE)
            run.error.__cause__ = e
            if run.can_advance(PipelineStage.ERROR):
                run.advance(PipelineStage.ERROR)
            yield ErrorEvent(message=INTERNAL_ERROR_MESSAGE, code=ErrorCode.INTERNAL_ERROR.value)

    def _temperature(self, from_file: bool) -> float:
        if from_file:
            return self._settings.format_temperature
        return self._settings.parse_temperature

    def _truncate(self, run: PipelineRun, text: str) -> str:
        limit = self._settings.max_source_chars
        if len(text) > limit:
            logger.info("Job %s: source truncated from %d to %d chars", run.job_id, len(text), limit)
            return text[:limit]
        return text

    def _finalize(self, run: PipelineRun, value: Any) -> dict[str, Any]:
        if not isinstance(value, dict):
            raise AIOutputInvalidError(
                "AI output was not a JSON object",
                {"type": type(value).__name__},
            )

        if not self._validate_output:
            return normalize_document_blanks(value)

        try:
            document = ExamDocument.model_validate(value)
        except ValidationError as e:
            first = e.errors()[0]
            raise AIOutputInvalidError(
                "AI output does not match the exam document structure",
                {
                    "error_count": e.error_count(),
                    "first_error": f"{'.'.join(str(p) for p in first['loc'])}: {first['msg']}",
                },
            ) from e

        for issue in document.consistency_issues():
            logger.debug("Job %s: %s", run.job_id, issue)
        return document.to_wire()

