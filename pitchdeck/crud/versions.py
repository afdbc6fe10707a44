"""Presentation version CRUD operations."""

import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..models import PresentationVersion, ViewSession


def create_version(
    db: Session,
    presentation_id: uuid.UUID,
    version_slug: str,
    view_token: str,
    edit_token: str,
    recipient_name: Optional[str] = None,
    recipient_email: Optional[str] = None,
    variables: Optional[Dict[str, Any]] = None,
    password_hash: Optional[str] = None,
    expires_at: Optional[datetime] = None,
) -> PresentationVersion:
    """Create a new tokenized version of a presentation."""
    db_version = PresentationVersion(
        presentation_id=presentation_id,
        version_slug=version_slug,
        view_token=view_token,
        edit_token=edit_token,
        recipient_name=recipient_name,
        recipient_email=recipient_email,
        variables=variables or {},
        password_hash=password_hash,
        expires_at=expires_at,
    )
    db.add(db_version)
    db.commit()
    db.refresh(db_version)
    return db_version


def get_version(db: Session, version_id: uuid.UUID) -> Optional[PresentationVersion]:
    """Get a version by ID."""
    return db.query(PresentationVersion).filter(PresentationVersion.id == version_id).first()


def get_version_by_slug(db: Session, version_slug: str, with_presentation: bool = False) -> Optional[PresentationVersion]:
    """Get a version by its public slug."""
    query = db.query(PresentationVersion)
    if with_presentation:
        query = query.options(joinedload(PresentationVersion.presentation))
    return query.filter(PresentationVersion.version_slug == version_slug).first()


def list_versions_for_presentation(db: Session, presentation_id: uuid.UUID) -> List[PresentationVersion]:
    """All versions of a presentation, newest first."""
    return db.query(PresentationVersion).filter(
        PresentationVersion.presentation_id == presentation_id
    ).order_by(PresentationVersion.created_at.desc()).all()


def count_sessions_by_version(db: Session, version_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, int]:
    """Number of session records per version id; versions without sessions are absent."""
    version_ids = list(version_ids)
    if not version_ids:
        return {}
    rows = db.query(ViewSession.version_id, func.count(ViewSession.id)).filter(
        ViewSession.version_id.in_(version_ids)
    ).group_by(ViewSession.version_id).all()
    return {version_id: count for version_id, count in rows}


def update_version_variables(db: Session, version: PresentationVersion, variables: Dict[str, Any]) -> PresentationVersion:
    """Replace the variable map of a version."""
    version.variables = dict(variables)
    db.commit()
    db.refresh(version)
    return version


def delete_version(db: Session, version: PresentationVersion) -> None:
    """Delete a version and its session records."""
    db.delete(version)
    db.commit()
