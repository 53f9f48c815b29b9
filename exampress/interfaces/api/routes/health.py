"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter

from exampress import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "exampress"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "ExamPress API",
        "version": __version__,
        "description": "Exam paper formatting and generation",
        "docs": "/docs",
    }
