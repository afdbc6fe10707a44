"""CRUD operations for view session records and the analytics rollup."""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import PresentationAnalytics, PresentationVersion, ViewSession

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ViewSessionCRUD:
    """Storage primitives used by the session tracker and the aggregator.

    Methods that take part in a tracking write do not commit; the caller owns
    the transaction.
    """

    # ViewSession operations
    def insert_if_absent(self, db: Session, values: Dict[str, Any]) -> bool:
        """
        Insert a session record unless one already exists for
        (version_id, session_id). Returns True when a row was inserted.
        """
        dialect = db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is not None:
            stmt = insert(ViewSession.__table__).values(**values).on_conflict_do_nothing(
                index_elements=["version_id", "session_id"]
            )
            result = db.execute(stmt)
            return result.rowcount == 1

        # No native upsert: insert inside a savepoint and treat the
        # unique-constraint violation as "already there".
        try:
            with db.begin_nested():
                db.add(ViewSession(**values))
                db.flush()
        except IntegrityError:
            logger.debug(f"Session {values.get('session_id')} already recorded for version {values.get('version_id')}")
            return False
        return True

    def get_session(self, db: Session, version_id: uuid.UUID, session_id: str) -> Optional[ViewSession]:
        """Get the session record for a (version, session) pair."""
        return db.query(ViewSession).filter(
            ViewSession.version_id == version_id,
            ViewSession.session_id == session_id,
        ).first()

    def get_latest_by_session_id(self, db: Session, session_id: str, for_update: bool = False) -> Optional[ViewSession]:
        """Most recently pinged record for a browser session id, optionally row-locked."""
        query = db.query(ViewSession).filter(ViewSession.session_id == session_id)
        if for_update:
            query = query.with_for_update()
        return query.order_by(ViewSession.last_ping.desc()).first()

    def apply_engagement(self, db: Session, record_id: uuid.UUID, expected_revision: int, values: Dict[Any, Any]) -> bool:
        """
        Write merged engagement fields if the record is still at
        ``expected_revision``, bumping the revision. Returns False when a
        concurrent writer got there first.
        """
        updated = db.query(ViewSession).filter(
            ViewSession.id == record_id,
            ViewSession.revision == expected_revision,
        ).update({**values, ViewSession.revision: ViewSession.revision + 1}, synchronize_session=False)
        return updated == 1

    def touch(self, db: Session, version_id: uuid.UUID, session_id: str, when: datetime) -> None:
        """Move last_ping forward on an existing record."""
        db.query(ViewSession).filter(
            ViewSession.version_id == version_id,
            ViewSession.session_id == session_id,
        ).update({ViewSession.last_ping: when}, synchronize_session=False)

    def list_for_version(self, db: Session, version_id: uuid.UUID, limit: Optional[int] = None) -> List[ViewSession]:
        """Session records of one version, most recent first."""
        query = db.query(ViewSession).filter(ViewSession.version_id == version_id).order_by(
            ViewSession.first_seen.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def list_for_presentation(self, db: Session, presentation_id: uuid.UUID) -> List[ViewSession]:
        """Session records across every version of a presentation, oldest first."""
        return db.query(ViewSession).join(
            PresentationVersion, ViewSession.version_id == PresentationVersion.id
        ).filter(
            PresentationVersion.presentation_id == presentation_id
        ).order_by(ViewSession.first_seen, ViewSession.id).all()

    def average_time_spent_for_version(self, db: Session, version_id: uuid.UUID) -> float:
        """Arithmetic mean of time_spent over a version's sessions; 0 for none."""
        average = db.query(func.avg(ViewSession.time_spent)).filter(
            ViewSession.version_id == version_id
        ).scalar()
        return float(average) if average is not None else 0.0

    # Rollup operations
    def get_rollup(self, db: Session, presentation_id: uuid.UUID) -> Optional[PresentationAnalytics]:
        return db.query(PresentationAnalytics).filter(
            PresentationAnalytics.presentation_id == presentation_id
        ).first()

    def increment_counters(self, db: Session, presentation_id: uuid.UUID, new_viewer: bool) -> None:
        """Add one view (and one unique viewer when ``new_viewer``) with SQL-side increments."""
        values = {PresentationAnalytics.total_views: PresentationAnalytics.total_views + 1}
        if new_viewer:
            values[PresentationAnalytics.unique_viewers] = PresentationAnalytics.unique_viewers + 1

        updated = db.query(PresentationAnalytics).filter(
            PresentationAnalytics.presentation_id == presentation_id
        ).update(values, synchronize_session=False)

        if not updated:
            # Presentations are created with a rollup row; this only covers
            # rows that were removed out of band.
            logger.warning(f"No analytics rollup for presentation {presentation_id}, creating one")
            db.add(PresentationAnalytics(
                presentation_id=presentation_id,
                total_views=1,
                unique_viewers=1 if new_viewer else 0,
                avg_time_spent=0.0,
            ))

    def set_average_time_spent(self, db: Session, presentation_id: uuid.UUID, value: float) -> None:
        db.query(PresentationAnalytics).filter(
            PresentationAnalytics.presentation_id == presentation_id
        ).update({PresentationAnalytics.avg_time_spent: value}, synchronize_session=False)


view_session_crud = ViewSessionCRUD()
