"""
API Interface - FastAPI REST API.

Serves the exam formatting pipeline as an ndjson progress stream, plus
topic-based generation endpoints.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
