"""Engagement tracking and analytics API endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..core.analytics_service import AnalyticsService
from ..core.database import get_db
from ..core.geolocation import geolocation_service
from ..core.session_tracker import SessionTracker
from .. import schemas

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.post("/track/view", response_model=schemas.SessionRecordResponse)
async def track_view(
    view: schemas.TrackViewRequest,
    request: Request,
    db: Session = Depends(get_db)
) -> schemas.SessionRecordResponse:
    """
    Record a view ping. The first ping of a session creates its record;
    every ping counts towards total views.
    """
    metadata = view.model_dump(exclude={"version_id", "session_id"})
    if not metadata.get("ip_address"):
        metadata["ip_address"] = geolocation_service.get_client_ip(request)
    if not metadata.get("user_agent"):
        metadata["user_agent"] = request.headers.get("user-agent")

    record = SessionTracker(db).record_view(view.version_id, view.session_id, metadata)
    return schemas.SessionRecordResponse.model_validate(record)


@router.post("/track/engagement", response_model=schemas.SessionRecordResponse)
async def track_engagement(
    update: schemas.TrackEngagementRequest,
    db: Session = Depends(get_db)
) -> schemas.SessionRecordResponse:
    """Apply time spent, scroll depth, sections viewed and clicks to a session."""
    record = SessionTracker(db).record_engagement(update)
    return schemas.SessionRecordResponse.model_validate(record)


@router.get("/presentation/{presentation_id}", response_model=schemas.PresentationAnalyticsResponse)
async def presentation_analytics(
    presentation_id: str,
    db: Session = Depends(get_db)
) -> schemas.PresentationAnalyticsResponse:
    """Rollup counters with device, location and section breakdowns."""
    return AnalyticsService(db).presentation_analytics(presentation_id)


@router.get("/version/{version_id}", response_model=schemas.VersionAnalyticsResponse)
async def version_analytics(
    version_id: str,
    db: Session = Depends(get_db)
) -> schemas.VersionAnalyticsResponse:
    """Per-version totals, averages and the most recent sessions."""
    return AnalyticsService(db).version_summary(version_id)
