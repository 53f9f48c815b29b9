"""
API Middleware - Request/response processing.

Provides:
- Request ID tracking
- Response latency measurement
- Error handling with taxonomy codes
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from exampress.config.errors import ErrorCode, ExamPressError

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach request ID for tracing across logs and responses."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


class LatencyMiddleware(BaseHTTPMiddleware):
    """Track and log request latency."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        # For streamed responses this is time to first byte
        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"

        request_id = getattr(request.state, "request_id", "unknown")
        logger.info(
            "%s %s status=%d latency_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )

        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convert ExamPressError exceptions to structured JSON responses."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except ExamPressError as e:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.warning(
                "ExamPressError: %s code=%s request_id=%s details=%s",
                e.message,
                e.code.value,
                request_id,
                e.details,
            )
            return JSONResponse(
                status_code=error_code_to_status(e.code),
                content={
                    "error": e.to_dict(),
                    "request_id": request_id,
                },
            )
        except Exception as e:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.exception("Unhandled error: %s request_id=%s", str(e), request_id)
            return JSONResponse(
                status_code=500,
                content={
                    "error": {
                        "code": ErrorCode.INTERNAL_ERROR.value,
                        "message": "Internal server error",
                        "details": {},
                    },
                    "request_id": request_id,
                },
            )


def error_code_to_status(code: ErrorCode) -> int:
    """Map error codes to HTTP status codes."""
    mapping = {
        # 400 Bad Request
        ErrorCode.NO_INPUT: 400,
        ErrorCode.UNSUPPORTED_FORMAT: 400,
        ErrorCode.INCOMPLETE_CONFIGURATION: 400,
        ErrorCode.VALIDATION_ERROR: 400,
        # 422 Unprocessable
        ErrorCode.EXTRACTION_FAILED: 422,
        ErrorCode.EMPTY_CONTENT: 422,
        # 429 Rate Limited
        ErrorCode.PROVIDER_RATE_LIMITED: 429,
        # 502 Bad Gateway
        ErrorCode.PROVIDER_CALL_FAILED: 502,
        ErrorCode.AI_OUTPUT_NOT_JSON: 502,
        ErrorCode.AI_OUTPUT_INVALID: 502,
    }
    return mapping.get(code, 500)
