"""
FastAPI application entry point for the Persona Retention API.

Configures logging and CORS, creates the dashboard session in the lifespan
and registers the API routers.

Run locally:
    uvicorn persona_retention.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from persona_retention import __version__
from persona_retention.api import api_router
from persona_retention.core.config import get_settings
from persona_retention.services.session import close_session, init_session

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for application startup and shutdown.

    On startup the dashboard session is created (seeded with the sample
    dataset unless PERSONA_LOAD_SAMPLE_ON_STARTUP=false). On shutdown it is
    dropped.
    """
    logger.info("Persona Retention API starting")
    init_session(get_settings())

    yield

    logger.info("Persona Retention API shutting down")
    close_session()


# Create FastAPI application
app = FastAPI(
    title="Persona Retention API",
    version=__version__,
    description=(
        "Classifies user feedback into behavioural personas and measures "
        "month-over-month retention per persona."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

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
        "name": "Persona Retention API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "persona_retention.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
