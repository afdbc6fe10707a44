"""Presentation CRUD operations."""

import uuid
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ..models import Presentation, PresentationAnalytics, PresentationVersion


def create_presentation(
    db: Session,
    title: str,
    slug: str,
    template_id: str,
    content: Dict[str, Any],
    settings: Dict[str, Any],
    owner_id: uuid.UUID,
) -> Presentation:
    """Create a presentation together with its zeroed analytics rollup."""
    db_presentation = Presentation(
        title=title,
        slug=slug,
        template_id=template_id,
        content=content,
        settings=settings,
        owner_id=owner_id,
    )
    db_presentation.analytics = PresentationAnalytics(total_views=0, unique_viewers=0, avg_time_spent=0.0)
    db.add(db_presentation)
    db.commit()
    db.refresh(db_presentation)
    return db_presentation


def get_presentation(db: Session, presentation_id: uuid.UUID) -> Optional[Presentation]:
    """Get a presentation by ID."""
    return db.query(Presentation).filter(Presentation.id == presentation_id).first()


def list_presentations(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
) -> Tuple[List[Tuple[Presentation, int]], int]:
    """
    Page through presentations, newest first.
    Returns ``([(presentation, version_count), ...], total)``.
    """
    version_count = (
        select(func.count(PresentationVersion.id))
        .where(PresentationVersion.presentation_id == Presentation.id)
        .correlate(Presentation)
        .scalar_subquery()
    )

    query = db.query(Presentation)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Presentation.title.ilike(pattern), Presentation.slug.ilike(pattern)))

    total = query.count()
    rows = (
        query.add_columns(version_count.label("version_count"))
        .order_by(Presentation.created_at.desc(), Presentation.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return [(presentation, count or 0) for presentation, count in rows], total


def update_presentation(db: Session, presentation: Presentation, update_data: Dict[str, Any]) -> Presentation:
    """Apply a partial update to a presentation."""
    for field, value in update_data.items():
        setattr(presentation, field, value)
    db.commit()
    db.refresh(presentation)
    return presentation


def delete_presentation(db: Session, presentation: Presentation) -> None:
    """Delete a presentation; versions, their sessions and the rollup go with it."""
    db.delete(presentation)
    db.commit()
