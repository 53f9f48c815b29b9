"""
ExamPress - Turn uploaded or pasted exam material into structured, printable exam papers.

Example:
    >>> from exampress.config import get_settings
    >>> from exampress.domains.orchestration import ExtractionPipeline
    >>> pipeline = ExtractionPipeline(get_settings())
    >>> async for event in pipeline.run_text("1. 2+2=? A. 3 B. 4"):
    ...     print(event.status)
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
