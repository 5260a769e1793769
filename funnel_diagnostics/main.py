"""
FastAPI application entry point for the Funnel Diagnostics API.

This module is the host adapter around the diagnostic engine. It configures
logging and CORS, validates the engine configuration at start-up and
registers the API routers.

A metric registry that has drifted out of sync with the stage table is a
configuration error: validation fails loudly at start-up instead of on the
first request.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from funnel_diagnostics import __version__
from funnel_diagnostics.api import api_router
from funnel_diagnostics.core.config import get_settings
from funnel_diagnostics.services.registry import (
    RegistryConfigurationError,
    get_engine_config,
    validate_engine_config,
)

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Validate the engine configuration (raises on registry drift)
        - Log startup message

    On shutdown:
        - Log shutdown message
    """
    # Startup
    logger.info("Funnel Diagnostics API starting")
    try:
        validate_engine_config(get_engine_config())
    except RegistryConfigurationError as e:
        logger.error(f"Engine configuration invalid: {e}", exc_info=True)
        raise
    logger.info("Engine configuration validated")

    yield

    # Shutdown
    logger.info("Funnel Diagnostics API shutting down")


# Create FastAPI application
app = FastAPI(
    title="Funnel Diagnostics API",
    version=__version__,
    description=(
        "Deterministic sales funnel diagnostics: stage conversion status, "
        "sample-size gating, confidence scoring, bottleneck ranking with "
        "downstream impact, and recommended actions."
    ),
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": "Funnel Diagnostics API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "funnel_diagnostics.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
