"""
Formatting Routes - Uploaded exams and pasted text to structured exam documents.

The upload endpoint streams ndjson progress events; errors arrive as the
final event of the stream with HTTP 200. The text endpoint answers once,
and its errors are rendered by ErrorHandlerMiddleware.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import Field

from exampress.domains.extraction import SourceDocument
from exampress.domains.orchestration import (
    NDJSON_MEDIA_TYPE,
    ExtractionPipeline,
    ProgressEvent,
    ProviderOverrides,
    encode_event,
)
from exampress.interfaces.api.deps import get_pipeline

router = APIRouter()

STREAM_HEADERS = {"Cache-Control": "no-cache, no-transform", "X-Accel-Buffering": "no"}


class ParseTextRequest(ProviderOverrides):
    """Pasted exam text plus optional provider fields."""

    text_content: str | None = Field(default=None, alias="textContent")


async def _ndjson(events: AsyncIterator[ProgressEvent]) -> AsyncIterator[bytes]:
    async for event in events:
        yield encode_event(event)


@router.post("/format-exam")
async def format_exam(
    file: UploadFile | None = File(None),
    provider: str | None = Form(None),
    openai_base_url: str | None = Form(None, alias="openaiBaseUrl"),
    openai_api_key: str | None = Form(None, alias="openaiApiKey"),
    openai_model: str | None = Form(None, alias="openaiModel"),
    pipeline: ExtractionPipeline = Depends(get_pipeline),
) -> StreamingResponse:
    """
    Format an uploaded exam file.

    Accepts PDF, DOCX and PPTX. The response is a stream of
    newline-delimited JSON events: parsing, analyzing, formatting,
    generating (one per model fragment) and finally complete or error.
    """
    document = None
    if file is not None:
        document = SourceDocument(
            data=await file.read(),
            filename=file.filename,
            content_type=file.content_type,
        )

    overrides = ProviderOverrides(
        provider=provider,
        openai_base_url=openai_base_url,
        openai_api_key=openai_api_key,
        openai_model=openai_model,
    )
    return StreamingResponse(
        _ndjson(pipeline.run_file(document, overrides)),
        media_type=NDJSON_MEDIA_TYPE,
        headers=STREAM_HEADERS,
    )


@router.post("/format-text")
async def format_text(
    request: ParseTextRequest,
    pipeline: ExtractionPipeline = Depends(get_pipeline),
) -> StreamingResponse:
    """Format pasted exam text, streaming progress events."""
    return StreamingResponse(
        _ndjson(pipeline.run_text(request.text_content, request)),
        media_type=NDJSON_MEDIA_TYPE,
        headers=STREAM_HEADERS,
    )


@router.post("/parse-text")
async def parse_text(
    request: ParseTextRequest,
    pipeline: ExtractionPipeline = Depends(get_pipeline),
) -> dict[str, Any]:
    """
    Parse pasted exam text into an exam document.

    - **textContent**: The exam text
    - **provider**: `gemini` (default) or `openai`
    - **openaiBaseUrl** / **openaiApiKey** / **openaiModel**: Required with `openai`
    """
    return await pipeline.extract_text(request.text_content, request)
