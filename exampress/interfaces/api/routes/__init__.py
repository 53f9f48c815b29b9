"""
API Routes.
"""

from . import formatting, generation, health

__all__ = ["health", "formatting", "generation"]
