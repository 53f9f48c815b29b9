"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    AIOutputInvalidError,
    AIOutputNotJSONError,
    EmptyContentError,
    ErrorCode,
    ExamPressError,
    ExtractionError,
    IncompleteConfigurationError,
    NoInputError,
    ProviderError,
    RateLimitError,
    UnsupportedFormatError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "ExamPressError",
    "NoInputError",
    "UnsupportedFormatError",
    "ExtractionError",
    "EmptyContentError",
    "ProviderError",
    "RateLimitError",
    "IncompleteConfigurationError",
    "AIOutputNotJSONError",
    "AIOutputInvalidError",
]
