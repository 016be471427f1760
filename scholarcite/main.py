"""ScholarCite - FastAPI Application Entry Point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.v1.endpoints.citations import router as citations_router
from .api.v1.endpoints.compare import router as compare_router
from .api.v1.endpoints.sessions import router as sessions_router
from .core.config import settings
from .core.logging import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    logger.info(
        "scholarcite_starting",
        port=settings.API_PORT,
        model=settings.CITATION_LLM_MODEL,
        generation_enabled=bool(settings.OPENROUTER_API_KEY),
        log_level=settings.LOG_LEVEL,
    )

    yield

    logger.info("scholarcite_stopping")


# Create FastAPI app
app = FastAPI(
    title="ScholarCite API",
    description="Citation extraction, selective rendering and review for draft academic text",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get("/api/v1/health", tags=["Health"])
async def health_check() -> JSONResponse:
    """Health check endpoint.

    Returns:
        JSONResponse: Service health status
    """
    return JSONResponse(
        content={
            "status": "healthy",
            "service": "scholarcite",
            "version": __version__,
            "environment": "development" if settings.DEBUG else "production",
        }
    )


# Root endpoint
@app.get("/", tags=["Root"])
async def root() -> JSONResponse:
    """Root endpoint with service information.

    Returns:
        JSONResponse: Service information and available endpoints
    """
    return JSONResponse(
        content={
            "service": "ScholarCite API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/api/v1/health",
            "status": "ready",
        }
    )


# Include API routers
app.include_router(citations_router, prefix="/api")
app.include_router(sessions_router, prefix="/api")
app.include_router(compare_router, prefix="/api")
