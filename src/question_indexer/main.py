"""
Indexing Service Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures global exception handling, and provides a test-friendly application
factory.

Design Goals
------------
- Deterministic startup
- Fail-fast configuration validation
- Centralized router registration
- Global exception safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import contextlib
import logging
from fastapi import FastAPI

from .config import settings
from .core.errors import (
    embedding_exception_handler,
    question_validation_exception_handler,
    unhandled_exception_handler,
)
from .embeddings.embedder import EmbeddingError
from .embeddings.models import QuestionValidationError

from .api import (
    health_routes,
    question_routes,
)


logger = logging.getLogger("qindex.app")


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing."""


def validate_configuration() -> None:
    """
    Check that every secret the pipeline needs is present and non-empty.
    """
    missing = [
        name
        for name, secret in (
            ("OPENAI_API_KEY", settings.openai_api_key),
            ("PINECONE_API_KEY", settings.pinecone_api_key),
        )
        if not secret.get_secret_value().strip()
    ]
    if missing:
        raise ConfigurationError(
            f"Missing required configuration: {', '.join(missing)}"
        )

    if settings.index_concurrency < 1:
        raise ConfigurationError("INDEX_CONCURRENCY must be at least 1")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Fail-fast validation at application startup.

    This ensures that critical configuration is present before the first
    request is ever served.
    """
    logger.info("Starting question-indexer")
    validate_configuration()
    logger.info(
        "Configuration validated: index=%s, model=%s",
        settings.pinecone_index_name,
        settings.embedding_model,
    )
    yield
    logger.info("Shutting down question-indexer")


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    app = FastAPI(
        title="question-indexer",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(QuestionValidationError, question_validation_exception_handler)
    app.add_exception_handler(EmbeddingError, embedding_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(question_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
