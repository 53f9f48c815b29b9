"""
Document Text Extractor - Plain text from PDF, Word and PowerPoint uploads.

The format is resolved from the declared MIME type, falling back to the
file extension. Each reader is a small synchronous function over the raw
bytes; library failures are wrapped so callers only see ExamPress errors.
"""

from __future__ import annotations

import io
import logging
import time

from docx import Document as open_docx
from docx.table import Table
from pptx import Presentation
from pypdf import PdfReader

from exampress.config import (
    EmptyContentError,
    ExamPressError,
    ExtractionError,
    UnsupportedFormatError,
)

from .models import EXTENSIONS, MIME_TYPES, DocumentKind, SourceDocument
from .slides import build_slide_tree, flatten_slide_tree

logger = logging.getLogger(__name__)

__all__ = ["DocumentTextExtractor", "detect_kind", "LEGACY_PPT_MESSAGE"]

LEGACY_PPT_MESSAGE = (
    "Legacy .ppt files are not supported. "
    "Please open the file in PowerPoint and save it as .pptx, then upload again."
)

EMPTY_CONTENT_MESSAGE = (
    "No readable text was found in the document. "
    "It may be a scanned image or an encrypted file."
)


def detect_kind(document: SourceDocument) -> DocumentKind:
    """
    Resolve the document format.

    Args:
        document: Uploaded document

    Returns:
        Detected kind

    Raises:
        UnsupportedFormatError: Neither MIME type nor extension is recognised
    """
    content_type = (document.content_type or "").split(";")[0].strip().lower()
    kind = MIME_TYPES.get(content_type) or EXTENSIONS.get(document.extension)
    if kind is None:
        raise UnsupportedFormatError(
            "Unsupported file format. Please upload a PDF, Word (.docx) "
            "or PowerPoint (.pptx) file.",
            {"content_type": document.content_type, "filename": document.filename},
        )
    return kind


def read_pdf(data: bytes) -> str:
    """Concatenate the text of every PDF page."""
    reader = PdfReader(io.BytesIO(data))
    if reader.is_encrypted and not reader.decrypt(""):
        # password protected, nothing to read
        return ""
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n".join(pages)


def read_docx(data: bytes) -> str:
    """Raw text of a Word document, paragraphs and tables in body order."""
    document = open_docx(io.BytesIO(data))
    lines: list[str] = []
    for block in document.iter_inner_content():
        if isinstance(block, Table):
            # the set keeps each element alive, so identity stays unique per cell
            seen: set = set()
            for row in block.rows:
                for cell in row.cells:
                    tc = cell._tc
                    if tc in seen:
                        continue
                    seen.add(tc)
                    lines.append(cell.text)
        else:
            lines.append(block.text)
    return "\n".join(lines)


def read_pptx(data: bytes) -> str:
    """Slide text in document order, speaker notes excluded."""
    presentation = Presentation(io.BytesIO(data))
    return flatten_slide_tree(build_slide_tree(presentation))


_READERS = {
    DocumentKind.PDF: read_pdf,
    DocumentKind.DOCX: read_docx,
    DocumentKind.PPTX: read_pptx,
}


class DocumentTextExtractor:
    """
    Extract plain text from uploaded documents.

    Example:
        >>> extractor = DocumentTextExtractor()
        >>> text = extractor.extract(SourceDocument(data=raw, filename="exam.pdf"))
    """

    def extract(self, document: SourceDocument) -> str:
        """
        Extract plain text from a document.

        Args:
            document: Uploaded document

        Returns:
            Extracted text with surrounding whitespace removed

        Raises:
            UnsupportedFormatError: Unknown format or legacy .ppt
            ExtractionError: The underlying reader failed
            EmptyContentError: Nothing but whitespace was extracted
        """
        kind = detect_kind(document)
        if kind == DocumentKind.PPT:
            raise UnsupportedFormatError(LEGACY_PPT_MESSAGE, {"filename": document.filename})

        start_time = time.time()
        logger.info("Extracting %s text: %s (%d bytes)", kind.value, document.label, document.size)

        try:
            text = _READERS[kind](document.data)
        except ExamPressError:
            raise
        except Exception as e:
            logger.warning("Failed to read %s: %s", document.label, e)
            raise ExtractionError(
                f"Failed to read {kind.value.upper()} file: {e}",
                {"filename": document.filename, "kind": kind.value},
            ) from e

        text = text.strip()
        if not text:
            raise EmptyContentError(EMPTY_CONTENT_MESSAGE, {"filename": document.filename})

        logger.info(
            "Extracted %d chars from %s in %.2fs",
            len(text),
            document.label,
            time.time() - start_time,
        )
        return text
