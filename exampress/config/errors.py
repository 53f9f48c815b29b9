"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from exampress.config.errors import EmptyContentError

    raise EmptyContentError("No readable text found in the uploaded file")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Input errors
    NO_INPUT = "NO_INPUT"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"

    # Extraction errors
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    EMPTY_CONTENT = "EMPTY_CONTENT"

    # Provider errors
    PROVIDER_CALL_FAILED = "PROVIDER_CALL_FAILED"
    PROVIDER_RATE_LIMITED = "PROVIDER_RATE_LIMITED"
    INCOMPLETE_CONFIGURATION = "INCOMPLETE_CONFIGURATION"

    # Model output errors
    AI_OUTPUT_NOT_JSON = "AI_OUTPUT_NOT_JSON"
    AI_OUTPUT_INVALID = "AI_OUTPUT_INVALID"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class ExamPressError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class NoInputError(ExamPressError):
    """Neither a file nor pasted text was supplied."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.NO_INPUT, message, details)


class UnsupportedFormatError(ExamPressError):
    """Uploaded file type is not one we can read."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.UNSUPPORTED_FORMAT, message, details)


class ExtractionError(ExamPressError):
    """A format reader failed on the uploaded bytes."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EXTRACTION_FAILED, message, details)


class EmptyContentError(ExamPressError):
    """Extraction succeeded but produced no usable text."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EMPTY_CONTENT, message, details)


class ProviderError(ExamPressError):
    """Network, auth or quota failure calling a model provider."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.PROVIDER_CALL_FAILED,
    ) -> None:
        super().__init__(code, message, details)


class RateLimitError(ProviderError):
    """Provider rejected the call with a rate limit / quota response."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details, code=ErrorCode.PROVIDER_RATE_LIMITED)


class IncompleteConfigurationError(ExamPressError):
    """Alternate provider selected without endpoint, key and model."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.INCOMPLETE_CONFIGURATION, message, details)


class AIOutputNotJSONError(ExamPressError):
    """Aggregated model output could not be parsed as JSON."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.AI_OUTPUT_NOT_JSON, message, details)


class AIOutputInvalidError(ExamPressError):
    """Model output parsed as JSON but does not fit the exam document model."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.AI_OUTPUT_INVALID, message, details)
