"""
Fragment Aggregator - Reassembles streamed model output into one JSON value.

Fragments are buffered as they arrive; parsing is attempted exactly once,
after the stream has ended. Partial buffers are never parsed.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from exampress.config import AIOutputNotJSONError

logger = logging.getLogger(__name__)

__all__ = ["FragmentAggregator"]


class FragmentAggregator:
    """
    Concatenate fragments in arrival order and parse on finish.

    Example:
        >>> aggregator = FragmentAggregator()
        >>> aggregator.feed('{"title": ')
        >>> aggregator.feed('"Quiz"}')
        >>> aggregator.finish()
        {'title': 'Quiz'}
    """

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._finished = False

    def feed(self, fragment: str) -> None:
        """
        Append a fragment.

        Raises:
            RuntimeError: finish() was already called
        """
        if self._finished:
            raise RuntimeError("Cannot feed an aggregator after finish()")
        self._parts.append(fragment)

    @property
    def fragment_count(self) -> int:
        return len(self._parts)

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def finish(self) -> Any:
        """
        Mark the stream exhausted and parse the aggregated text.

        Returns:
            The parsed JSON value

        Raises:
            AIOutputNotJSONError: Aggregated text is not valid JSON
        """
        self._finished = True
        text = self.text
        logger.debug("Aggregated %d fragments, %d chars", self.fragment_count, len(text))

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise AIOutputNotJSONError(
                "AI output was not valid JSON",
                {"excerpt": text[:200], "length": len(text), "error": str(e)},
            ) from e
