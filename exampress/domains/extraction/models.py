"""
Extraction Models - Data types for extraction domain.
"""

from __future__ import annotations

from enum import Enum
from pathlib import PurePath

from pydantic import BaseModel


class DocumentKind(str, Enum):
    """File formats the extractor recognises."""

    PDF = "pdf"
    DOCX = "docx"
    PPTX = "pptx"
    PPT = "ppt"  # legacy binary PowerPoint, recognised only to be rejected


MIME_TYPES: dict[str, DocumentKind] = {
    "application/pdf": DocumentKind.PDF,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": DocumentKind.DOCX,
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": DocumentKind.PPTX,
    "application/vnd.ms-powerpoint": DocumentKind.PPT,
}

EXTENSIONS: dict[str, DocumentKind] = {
    ".pdf": DocumentKind.PDF,
    ".docx": DocumentKind.DOCX,
    ".pptx": DocumentKind.PPTX,
    ".ppt": DocumentKind.PPT,
}


class SourceDocument(BaseModel):
    """An uploaded file as received from the caller."""

    data: bytes
    filename: str | None = None
    content_type: str | None = None

    model_config = {"frozen": True}

    @property
    def extension(self) -> str:
        """Lower-cased file extension including the dot, or ''."""
        if not self.filename:
            return ""
        return PurePath(self.filename).suffix.lower()

    @property
    def size(self) -> int:
        """Size in bytes."""
        return len(self.data)

    @property
    def label(self) -> str:
        """Name used in logs and messages."""
        return self.filename or "<upload>"
