"""
FastAPI Main Application - API entry point.

Run with: uvicorn exampress.interfaces.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from exampress import __version__
from exampress.config import get_settings

from .middleware import ErrorHandlerMiddleware, LatencyMiddleware, RequestIDMiddleware
from .routes import formatting, generation, health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting ExamPress API...")
    logger.info("  Default model: %s", settings.gemini_model)
    if not settings.gemini_api_key:
        logger.warning("  GEMINI_API_KEY is not set; only custom providers will work")

    yield

    logger.info("Shutting down ExamPress API...")


def create_app() -> FastAPI:
    """Create FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="ExamPress API",
        description="Turns exam papers into structured, print-ready exam documents",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters - first added = innermost)
    # 1. Error handling (catch exceptions from the routes)
    app.add_middleware(ErrorHandlerMiddleware)

    # 2. Latency tracking
    app.add_middleware(LatencyMiddleware)

    # 3. Request ID (outermost custom - runs first)
    app.add_middleware(RequestIDMiddleware)

    # 4. CORS (framework middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(formatting.router, prefix="/api", tags=["Formatting"])
    app.include_router(generation.router, prefix="/api", tags=["Generation"])

    return app


# Create app instance
app = create_app()
