"""
Extraction Contracts - Interfaces for extraction domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import SourceDocument


@runtime_checkable
class TextExtractor(Protocol):
    """
    Contract for turning uploaded bytes into plain text.

    Example:
        >>> class MyExtractor:
        ...     def extract(self, document: SourceDocument) -> str:
        ...         ...
        >>> assert isinstance(MyExtractor(), TextExtractor)
    """

    def extract(self, document: SourceDocument) -> str:
        """
        Extract plain text from a document.

        Args:
            document: Uploaded file bytes with declared type and name

        Returns:
            Non-empty plain text

        Raises:
            UnsupportedFormatError: File type not recognised (or legacy .ppt)
            ExtractionError: The format reader failed
            EmptyContentError: No usable text was found
        """
        ...
