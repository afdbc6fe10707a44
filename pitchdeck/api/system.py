"""System endpoints for health checks."""

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/system", tags=["System"])


@router.get("/health", summary="Service health check")
async def health_check(db: Session = Depends(get_db)) -> dict:
    """Report service status and whether the presentation store answers."""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        database = "unavailable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "database": database,
        "timestamp": datetime.now(timezone.utc),
        "version": settings.APP_VERSION,
        "service": settings.APP_NAME,
    }
