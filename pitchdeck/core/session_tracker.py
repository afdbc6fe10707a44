"""Session Tracker - records views and engagement for presentation versions."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud
from ..crud.view_sessions import view_session_crud
from ..models import ViewSession
from ..schemas import TrackEngagementRequest
from .analytics_service import recompute_average_time_spent
from .config import settings
from .exceptions import ConflictError, NotFoundError, PitchdeckError
from .geolocation import GeolocationService, geolocation_service

logger = logging.getLogger(__name__)

ENGAGEMENT_WRITE_ATTEMPTS = 5


def detect_device_type(user_agent: Optional[str]) -> Optional[str]:
    """Detect device type from user agent."""
    if not user_agent:
        return None
    user_agent_lower = user_agent.lower()

    if any(mobile in user_agent_lower for mobile in ["mobile", "android", "iphone", "ipod"]):
        return "mobile"
    elif any(tablet in user_agent_lower for tablet in ["tablet", "ipad"]):
        return "tablet"
    else:
        return "desktop"


def detect_browser(user_agent: Optional[str]) -> Optional[str]:
    """Detect browser from user agent."""
    if not user_agent:
        return None
    user_agent_lower = user_agent.lower()

    # Edge and Opera carry "chrome" in their UA too
    if "edg/" in user_agent_lower or "edge" in user_agent_lower:
        return "edge"
    elif "opr/" in user_agent_lower or "opera" in user_agent_lower:
        return "opera"
    elif "chrome" in user_agent_lower or "crios" in user_agent_lower:
        return "chrome"
    elif "firefox" in user_agent_lower or "fxios" in user_agent_lower:
        return "firefox"
    elif "safari" in user_agent_lower:
        return "safari"
    else:
        return "other"


def merge_sections(existing: Optional[Iterable[str]], incoming: Iterable[str]) -> List[str]:
    """Order-preserving set union: existing ids first, then new ones as first seen."""
    merged = list(dict.fromkeys(existing or []))
    seen = set(merged)
    for section_id in incoming:
        if section_id not in seen:
            seen.add(section_id)
            merged.append(section_id)
    return merged


class SessionTracker:
    """Creates or resumes session records and applies engagement updates."""

    def __init__(self, db: Session, geolocation: Optional[GeolocationService] = None):
        self.db = db
        self.geolocation = geolocation or geolocation_service

    def record_view(self, version_id: Any, session_id: str, metadata: Optional[Dict[str, Any]] = None) -> ViewSession:
        """
        Register a view ping for (version, session).

        The first ping of a pair creates its record and counts a unique viewer;
        every ping, first or repeated, counts one view. Repeated pings only move
        last_ping forward.
        """
        version_uuid = crud.parse_uuid(version_id)
        version = crud.get_version(self.db, version_uuid) if version_uuid else None
        if not version:
            raise NotFoundError("Version not found")

        now = datetime.now(timezone.utc)
        created = False
        if self._find_existing(version.id, session_id) is None:
            client = self._enrich_metadata(metadata or {})
            created = view_session_crud.insert_if_absent(self.db, {
                "id": uuid.uuid4(),
                "version_id": version.id,
                "session_id": session_id,
                "time_spent": 0.0,
                "scroll_depth": 0.0,
                "sections_viewed": [],
                "clicks": [],
                "ip_address": client.get("ip_address"),
                "user_agent": client.get("user_agent"),
                "device": client.get("device"),
                "browser": client.get("browser"),
                "country": client.get("country"),
                "city": client.get("city"),
                "first_seen": now,
                "last_ping": now,
                "revision": 0,
            })

        if not created:
            view_session_crud.touch(self.db, version.id, session_id, now)

        view_session_crud.increment_counters(self.db, version.presentation_id, new_viewer=created)
        self.db.commit()

        if created:
            logger.info(f"New view session {session_id} for version {version.version_slug}")

        return view_session_crud.get_session(self.db, version.id, session_id)

    def record_engagement(self, update: TrackEngagementRequest) -> ViewSession:
        """
        Apply a partial engagement update to the session's record.

        time_spent and scroll_depth overwrite, sections_viewed is unioned, clicks
        are appended. The merged row is written only if no other update landed
        since it was read; otherwise the record is re-read and merged again, so
        concurrent updates keep each other's sections and clicks.
        """
        for attempt in range(1, ENGAGEMENT_WRITE_ATTEMPTS + 1):
            record = view_session_crud.get_latest_by_session_id(self.db, update.session_id, for_update=True)
            if not record:
                raise NotFoundError("Session not found")

            values = self._merge_engagement(record, update)
            if view_session_crud.apply_engagement(self.db, record.id, record.revision, values):
                break

            self.db.rollback()
            logger.info(f"Engagement for session {update.session_id} lost a race, retrying (attempt {attempt})")
        else:
            raise ConflictError(f"Session {update.session_id} is being updated concurrently")

        version_id = record.version_id
        self.db.commit()

        if update.time_spent is not None:
            self._refresh_average_time_spent(version_id)

        self.db.refresh(record)
        return record

    def _find_existing(self, version_id: uuid.UUID, session_id: str) -> Optional[ViewSession]:
        return view_session_crud.get_session(self.db, version_id, session_id)

    @staticmethod
    def _merge_engagement(record: ViewSession, update: TrackEngagementRequest) -> Dict[Any, Any]:
        values: Dict[Any, Any] = {ViewSession.last_ping: datetime.now(timezone.utc)}
        if update.time_spent is not None:
            values[ViewSession.time_spent] = update.time_spent
        if update.scroll_depth is not None:
            values[ViewSession.scroll_depth] = update.scroll_depth
        if update.sections_viewed:
            values[ViewSession.sections_viewed] = merge_sections(record.sections_viewed, update.sections_viewed)
        if update.clicks:
            values[ViewSession.clicks] = list(record.clicks or []) + [
                click.model_dump(by_alias=True) for click in update.clicks
            ]
        return values

    def _refresh_average_time_spent(self, version_id: uuid.UUID) -> None:
        # The engagement update is already committed; a failed rollup must not undo it.
        try:
            recompute_average_time_spent(self.db, version_id)
        except (SQLAlchemyError, PitchdeckError):
            self.db.rollback()
            logger.exception(f"Failed to recompute average time spent for version {version_id}")

    def _enrich_metadata(self, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """Fill device, browser and location the client did not send."""
        client = dict(metadata)
        user_agent = client.get("user_agent")
        if not client.get("device"):
            client["device"] = detect_device_type(user_agent)
        if not client.get("browser"):
            client["browser"] = detect_browser(user_agent)

        if settings.GEOLOCATION_ENABLED and not client.get("country") and client.get("ip_address"):
            location = self.geolocation.get_location_from_ip(client["ip_address"])
            client["country"] = location.get("country")
            client["city"] = client.get("city") or location.get("city")
        return client
