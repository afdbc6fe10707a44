"""Analytics Service - rollups and breakdowns over view session records.

The breakdown functions are pure: they take session records (anything with
``device``, ``country``, ``time_spent``, ``scroll_depth`` and
``sections_viewed`` attributes) and return plain data.

Known coarseness, kept on purpose:

* Device breakdown matches "desktop", "mobile" and "tablet" as
  case-insensitive substrings of the device field. Each bucket is checked
  independently; a device matching none of them is not counted anywhere.
* Top sections attribute a session's total time evenly across the distinct
  sections it viewed. Time is not tracked per section, so ``avg_time`` is an
  approximation.
"""

import logging
import uuid
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from .. import crud
from ..crud.view_sessions import view_session_crud
from ..schemas import (
    DeviceBreakdown,
    LocationCount,
    PresentationAnalyticsResponse,
    SectionStat,
    SessionRecordResponse,
    VersionAnalyticsResponse,
)
from .config import settings
from .exceptions import NotFoundError

logger = logging.getLogger(__name__)

DEVICE_BUCKETS = ("desktop", "mobile", "tablet")


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def average_time_spent(sessions: Iterable) -> float:
    """Arithmetic mean of time_spent; 0 for an empty population."""
    return _mean([session.time_spent or 0.0 for session in sessions])


def average_scroll_depth(sessions: Iterable) -> float:
    """Arithmetic mean of scroll_depth; 0 for an empty population."""
    return _mean([session.scroll_depth or 0.0 for session in sessions])


def device_breakdown(sessions: Iterable) -> Dict[str, int]:
    counts = {bucket: 0 for bucket in DEVICE_BUCKETS}
    for session in sessions:
        device = (session.device or "").lower()
        for bucket in DEVICE_BUCKETS:
            if bucket in device:
                counts[bucket] += 1
    return counts


def location_ranking(sessions: Iterable, limit: Optional[int] = None) -> List[Dict[str, object]]:
    """Countries by session count, descending; ties keep first-seen order."""
    if limit is None:
        limit = settings.TOP_RANKING_LIMIT
    counts: Dict[str, int] = {}
    for session in sessions:
        if session.country:
            counts[session.country] = counts.get(session.country, 0) + 1

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [{"country": country, "count": count} for country, count in ranked[:limit]]


def top_sections(sessions: Iterable, limit: Optional[int] = None) -> List[Dict[str, object]]:
    """
    Sections by number of sessions that viewed them, descending.

    Each session's time_spent is split evenly across its distinct sections;
    a section's avg_time is the sum of its shares divided by its views.
    """
    if limit is None:
        limit = settings.TOP_RANKING_LIMIT
    views: Dict[str, int] = {}
    total_time: Dict[str, float] = {}

    for session in sessions:
        sections = list(dict.fromkeys(session.sections_viewed or []))
        if not sections:
            continue
        share = (session.time_spent or 0.0) / len(sections)
        for section_id in sections:
            views[section_id] = views.get(section_id, 0) + 1
            total_time[section_id] = total_time.get(section_id, 0.0) + share

    ranked = sorted(views.items(), key=lambda item: item[1], reverse=True)
    return [
        {"section_id": section_id, "views": count, "avg_time": total_time[section_id] / count}
        for section_id, count in ranked[:limit]
    ]


def recompute_average_time_spent(db: Session, version_id: uuid.UUID) -> float:
    """
    Recompute the presentation rollup's avg_time_spent from all session
    records of ``version_id`` and commit it.
    """
    version = crud.get_version(db, version_id)
    if not version:
        raise NotFoundError("Version not found")

    average = view_session_crud.average_time_spent_for_version(db, version_id)
    view_session_crud.set_average_time_spent(db, version.presentation_id, average)
    db.commit()
    logger.debug(f"Average time spent for presentation {version.presentation_id} is now {average:.2f}s")
    return average


class AnalyticsService:
    """On-demand analytics for presentations and versions."""

    def __init__(self, db: Session):
        self.db = db

    def presentation_analytics(self, presentation_id) -> PresentationAnalyticsResponse:
        """Stored rollup counters plus breakdowns computed from every session of the presentation."""
        presentation_uuid = crud.parse_uuid(presentation_id)
        presentation = crud.get_presentation(self.db, presentation_uuid) if presentation_uuid else None
        if not presentation:
            raise NotFoundError("Presentation not found")

        rollup = view_session_crud.get_rollup(self.db, presentation.id)
        sessions = view_session_crud.list_for_presentation(self.db, presentation.id)

        return PresentationAnalyticsResponse(
            total_views=rollup.total_views if rollup else 0,
            unique_viewers=rollup.unique_viewers if rollup else 0,
            avg_time_spent=rollup.avg_time_spent if rollup else 0.0,
            scroll_depth_avg=average_scroll_depth(sessions),
            top_sections=[SectionStat(**item) for item in top_sections(sessions)],
            device_breakdown=DeviceBreakdown(**device_breakdown(sessions)),
            location_data=[LocationCount(**item) for item in location_ranking(sessions)],
        )

    def version_summary(self, version_id) -> VersionAnalyticsResponse:
        """Per-version totals and averages plus the most recent raw session records."""
        version_uuid = crud.parse_uuid(version_id)
        version = crud.get_version(self.db, version_uuid) if version_uuid else None
        if not version:
            raise NotFoundError("Version not found")

        sessions = view_session_crud.list_for_version(self.db, version.id)
        recent = sessions[:settings.RECENT_SESSIONS_LIMIT]

        return VersionAnalyticsResponse(
            total_views=len(sessions),
            unique_sessions=len({session.session_id for session in sessions}),
            avg_time_spent=average_time_spent(sessions),
            avg_scroll_depth=average_scroll_depth(sessions),
            views=[SessionRecordResponse.model_validate(session) for session in recent],
        )
