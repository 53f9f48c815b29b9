"""
Progress Channel - Pipeline events and their newline-delimited JSON wire format.

Each event is one JSON object on its own line. Readers buffer raw bytes,
parse every complete line and keep the trailing partial line until more
bytes arrive.
"""

from __future__ import annotations

import codecs
import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from exampress.config import ErrorCode

logger = logging.getLogger(__name__)

__all__ = [
    "PhaseEvent",
    "FragmentEvent",
    "CompleteEvent",
    "ErrorEvent",
    "ProgressEvent",
    "NDJSON_MEDIA_TYPE",
    "encode_event",
    "parse_event",
    "NDJSONDecoder",
    "aiter_events",
]

NDJSON_MEDIA_TYPE = "application/x-ndjson"


class PhaseEvent(BaseModel):
    """Human-readable phase marker."""

    status: Literal["parsing", "analyzing", "formatting"]
    message: str

    model_config = {"frozen": True}


class FragmentEvent(BaseModel):
    """One raw text fragment from a streaming provider."""

    status: Literal["generating"] = "generating"
    chunk: str

    model_config = {"frozen": True}


class CompleteEvent(BaseModel):
    """Terminal success event carrying the parsed document."""

    status: Literal["complete"] = "complete"
    data: dict[str, Any]

    model_config = {"frozen": True}


class ErrorEvent(BaseModel):
    """Terminal failure event."""

    status: Literal["error"] = "error"
    message: str
    code: str = ErrorCode.INTERNAL_ERROR.value

    model_config = {"frozen": True}


ProgressEvent = Annotated[
    Union[PhaseEvent, FragmentEvent, CompleteEvent, ErrorEvent],
    Field(discriminator="status"),
]

_event_adapter: TypeAdapter[ProgressEvent] = TypeAdapter(ProgressEvent)


def encode_event(event: ProgressEvent) -> bytes:
    """Serialize an event as one UTF-8 ndjson line."""
    return (event.model_dump_json() + "\n").encode("utf-8")


def parse_event(line: str | bytes) -> ProgressEvent:
    """
    Parse one ndjson line into an event.

    Raises:
        pydantic.ValidationError: Not JSON or not a known event shape
    """
    return _event_adapter.validate_json(line)


class NDJSONDecoder:
    """
    Incremental reassembler for the progress channel.

    Bytes may be split anywhere, including inside a multi-byte character.

    Example:
        >>> decoder = NDJSONDecoder()
        >>> decoder.feed(b'{"status":"parsing","mess')
        []
        >>> decoder.feed(b'age":"..."}\\n')
        [PhaseEvent(status='parsing', message='...')]
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""

    def feed(self, data: bytes) -> list[ProgressEvent]:
        """
        Add raw bytes and return every event completed by them.

        Blank lines are ignored. An unterminated trailing line is retained.
        """
        self._buffer += self._decoder.decode(data)
        *lines, self._buffer = self._buffer.split("\n")
        return [parse_event(line) for line in lines if line.strip()]

    @property
    def pending(self) -> str:
        """Text received after the last newline."""
        return self._buffer


async def aiter_events(stream: AsyncIterable[bytes]) -> AsyncIterator[ProgressEvent]:
    """
    Parse events from an async byte stream (e.g. ``httpx.Response.aiter_bytes()``).

    Args:
        stream: Raw response body chunks

    Yields:
        Events in wire order
    """
    decoder = NDJSONDecoder()
    async for data in stream:
        for event in decoder.feed(data):
            yield event

    if decoder.pending.strip():
        logger.warning("Progress stream ended with %d unterminated chars", len(decoder.pending))
