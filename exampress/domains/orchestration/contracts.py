"""
Orchestration Contracts - Provider interfaces used by the extraction pipeline.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, Protocol, Union, runtime_checkable


@runtime_checkable
class StreamingJSONProvider(Protocol):
    """
    Schema-constrained streaming generation.

    The returned iterator is finite and not restartable. Fragments are
    slices of one JSON document; only their full concatenation is
    guaranteed to parse.
    """

    def stream_json(self, prompt: str, schema: dict[str, Any]) -> AsyncIterator[str]:
        """
        Stream a JSON document conforming to schema.

        Args:
            prompt: Full task prompt
            schema: Response schema requested from the model

        Yields:
            Text fragments in arrival order
        """
        ...


@runtime_checkable
class ChatJSONProvider(Protocol):
    """Plain chat completion in JSON mode; one string, no fragments."""

    async def complete_json(self, user_message: str, system_message: str | None = None) -> str:
        """
        Run one completion.

        Args:
            user_message: Full task prompt
            system_message: Optional system instruction

        Returns:
            The whole model reply
        """
        ...


JSONProvider = Union[StreamingJSONProvider, ChatJSONProvider]
