"""
Extraction Domain - Uploaded documents to plain text.

This domain handles:
- Format detection by MIME type and extension
- PDF, Word and PowerPoint text reading
- Slide tree flattening
"""

from .contracts import TextExtractor
from .extractor import LEGACY_PPT_MESSAGE, DocumentTextExtractor, detect_kind
from .models import DocumentKind, SourceDocument
from .slides import build_slide_tree, flatten_slide_tree

__all__ = [
    # Contracts
    "TextExtractor",
    # Models
    "DocumentKind",
    "SourceDocument",
    # Implementations
    "DocumentTextExtractor",
    "detect_kind",
    "LEGACY_PPT_MESSAGE",
    "build_slide_tree",
    "flatten_slide_tree",
]
