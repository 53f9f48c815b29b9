"""
CLI Interface - Command-line tools for ExamPress.

Provides commands for:
- Formatting exam files and pasted text
- Topic-based exam generation
- Running the API server
"""

from .main import app, main

__all__ = ["app", "main"]
