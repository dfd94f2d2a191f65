"""
Global Error Handling

This module defines application-wide exception handlers for the indexing
service.

Design Goals
------------
- Never leak internal exception details to clients
- Always return deterministic, machine-readable error responses
- Keep the fatal failure classes (validation, embedding) distinguishable
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from fastapi import Request
from fastapi.responses import JSONResponse

from ..embeddings.embedder import EmbeddingError
from ..embeddings.models import QuestionValidationError

logger = logging.getLogger("qindex.errors")


def _error_response(status_code: int, error: str, detail: str) -> JSONResponse:
    payload: Dict[str, Any] = {
        "error": error,
        "detail": detail,
    }
    return JSONResponse(status_code=status_code, content=payload)


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def question_validation_exception_handler(
    request: Request,
    exc: QuestionValidationError,
) -> JSONResponse:
    """
    Malformed question input. Detected before any external call.
    """
    logger.info(
        "Rejected invalid question on %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )
    return _error_response(422, "invalid_question", str(exc))


async def embedding_exception_handler(
    request: Request,
    exc: EmbeddingError,
) -> JSONResponse:
    """
    The embedding provider failed; nothing was written to the index.

    The message carries only the failure class, never provider payloads.
    """
    logger.error(
        "Embedding failure during request %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )
    return _error_response(502, "embedding_failed", str(exc))


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.
    """

    # Log full traceback internally (never returned to client)
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    return _error_response(500, "internal_server_error", "Internal server error")
