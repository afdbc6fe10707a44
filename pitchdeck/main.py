"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.bootstrap import bootstrap_default_owner
from .core.config import settings
from .core.database import SessionLocal, close_db, init_db
from .core.exceptions import PitchdeckError
from .core.logging_config import configure_logging
from .api import (
    presentations_router,
    versions_router,
    analytics_router,
    templates_router,
    system_router,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    configure_logging()
    init_db()
    if settings.BOOTSTRAP_DEFAULT_OWNER:
        db = SessionLocal()
        try:
            bootstrap_default_owner(db)
        finally:
            db.close()
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} started")

    yield

    # Shutdown
    close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="API for shareable, token-gated sales presentations with engagement analytics.",
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PitchdeckError)
async def pitchdeck_exception_handler(request: Request, exc: PitchdeckError):
    """Map domain errors to their HTTP status."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Last-resort handler; the traceback goes to the log, not the client."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Include API routers
app.include_router(presentations_router)
app.include_router(versions_router)
app.include_router(analytics_router)
app.include_router(templates_router)
app.include_router(system_router)


@app.get("/", tags=["Root"])
async def root() -> dict:
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/system/health"
    }
