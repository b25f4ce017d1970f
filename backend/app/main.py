"""
SEO Pulse Diagnostics

Main FastAPI application entry point.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import uvicorn

from .core.config import settings
from .core.log_config import configure_logging
from .api.reports import router as reports_router
from .api.sessions import router as sessions_router
from .services.session_store import session_store

logger = logging.getLogger("seo_pulse.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    configure_logging(settings.LOG_LEVEL)
    logger.info("Starting %s v%s (upstream %s)", settings.APP_NAME, settings.APP_VERSION, settings.UPSTREAM_BASE_URL)
    yield
    # Shutdown
    logger.info("Shutting down, waiting for in-flight action runs")
    await session_store.close()


app = FastAPI(
    title=settings.APP_NAME,
    description="""
    ## SEO Pulse Diagnostics

    Ingestion and remediation pipeline for diagnostic traffic reports.

    ### Core Capabilities:
    - **Report Parsing**: health checks, detected drops and root-cause hypotheses from raw report text
    - **Severity Classification**: severe / moderate / mild from the drop's z-score
    - **Interpretation**: plain-language reading and suggested next actions per drop
    - **Fix This**: per-anomaly remediation runs tracked for each viewer session
    """,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(reports_router, prefix=settings.API_PREFIX)
app.include_router(sessions_router, prefix=settings.API_PREFIX)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "sessions": session_store.count(),
    }


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
