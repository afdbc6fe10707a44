"""Version Service - tokenized, personalised versions of a presentation."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import crud
from ..models import PresentationVersion
from ..schemas import (
    ContentTree,
    PresentationSettings,
    VersionCreate,
    VersionPresentation,
    VersionReadResponse,
    VersionResponse,
    VersionUpdate,
)
from .access import AccessLevel, require_access
from .config import settings
from .exceptions import NotFoundError, ValidationError
from .security import generate_token_pair, generate_version_slug, get_password_hash
from .substitution import find_placeholders, substitute

logger = logging.getLogger(__name__)

# Attempts at drawing a slug and token pair that collide with no stored version
MAX_CREATE_ATTEMPTS = 3


def share_urls(version: PresentationVersion) -> Dict[str, str]:
    base_url = settings.FRONTEND_URL
    return {
        "view_url": f"{base_url}/view/{version.version_slug}?token={version.view_token}",
        "edit_url": f"{base_url}/edit/{version.version_slug}?token={version.edit_token}",
    }


def build_version_response(version: PresentationVersion, view_count: Optional[int] = None) -> VersionResponse:
    return VersionResponse(
        id=version.id,
        presentation_id=version.presentation_id,
        version_slug=version.version_slug,
        view_token=version.view_token,
        edit_token=version.edit_token,
        recipient_name=version.recipient_name,
        recipient_email=version.recipient_email,
        variables=version.variables or {},
        has_password=bool(version.password_hash),
        expires_at=version.expires_at,
        created_at=version.created_at,
        updated_at=version.updated_at,
        view_count=view_count,
        **share_urls(version),
    )


class VersionService:
    """Create, read, update and delete presentation versions."""

    def __init__(self, db: Session):
        self.db = db

    def create_version(self, version_data: VersionCreate) -> PresentationVersion:
        presentation_id = crud.parse_uuid(version_data.presentation_id)
        presentation = crud.get_presentation(self.db, presentation_id) if presentation_id else None
        if not presentation:
            raise NotFoundError("Presentation not found")

        return self.create_for_presentation(
            presentation.id,
            recipient_name=version_data.recipient_name,
            recipient_email=str(version_data.recipient_email) if version_data.recipient_email else None,
            variables=version_data.variables,
            password=version_data.password,
            expires_at=version_data.expires_at,
        )

    def create_for_presentation(
        self,
        presentation_id,
        recipient_name: Optional[str] = None,
        recipient_email: Optional[str] = None,
        variables: Optional[Dict[str, Any]] = None,
        password: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> PresentationVersion:
        """Create a version with a fresh slug and token pair."""
        password_hash = get_password_hash(password) if password else None
        if expires_at is not None:
            # Stored as UTC; naive input is taken to be UTC already
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            expires_at = expires_at.astimezone(timezone.utc)

        for attempt in range(1, MAX_CREATE_ATTEMPTS + 1):
            view_token, edit_token = generate_token_pair()
            try:
                version = crud.create_version(
                    self.db,
                    presentation_id=presentation_id,
                    version_slug=generate_version_slug(),
                    view_token=view_token,
                    edit_token=edit_token,
                    recipient_name=recipient_name,
                    recipient_email=recipient_email,
                    variables=variables or {},
                    password_hash=password_hash,
                    expires_at=expires_at,
                )
            except IntegrityError:
                self.db.rollback()
                logger.warning(f"Version slug or token collision (attempt {attempt}), retrying")
                continue
            logger.info(f"Created version {version.version_slug} of presentation {presentation_id}")
            return version

        raise ValidationError("Could not allocate a unique version slug")

    def list_versions(self, presentation_id) -> List[VersionResponse]:
        presentation_uuid = crud.parse_uuid(presentation_id)
        presentation = crud.get_presentation(self.db, presentation_uuid) if presentation_uuid else None
        if not presentation:
            raise NotFoundError("Presentation not found")

        versions = crud.list_versions_for_presentation(self.db, presentation.id)
        counts = crud.count_sessions_by_version(self.db, [version.id for version in versions])
        return [build_version_response(version, counts.get(version.id, 0)) for version in versions]

    def read_version(self, slug: str, token: Optional[str], password: Optional[str] = None) -> VersionReadResponse:
        """Content of a version with its variables substituted, gated by token."""
        version = crud.get_version_by_slug(self.db, slug, with_presentation=True)
        if not version:
            raise NotFoundError("Version not found")

        level = require_access(version, token, password=password)
        presentation = version.presentation

        content = substitute(ContentTree.model_validate(presentation.content or {}), version.variables or {})
        unresolved = find_placeholders(content)
        if unresolved:
            logger.debug(f"Version {slug} has unresolved placeholders: {sorted(unresolved)}")

        return VersionReadResponse(
            id=version.id,
            slug=version.version_slug,
            presentation=VersionPresentation(
                id=presentation.id,
                title=presentation.title,
                slug=presentation.slug,
                settings=PresentationSettings.model_validate(presentation.settings or {}),
                content=content,
            ),
            recipient_name=version.recipient_name,
            is_editable=level is AccessLevel.EDIT,
            expires_at=version.expires_at,
        )

    def update_version(self, slug: str, update: VersionUpdate) -> PresentationVersion:
        """Replace the variable map; requires the edit token."""
        version = crud.get_version_by_slug(self.db, slug)
        if not version:
            raise NotFoundError("Version not found")

        require_access(version, update.token, edit=True)
        if update.variables is None:
            return version
        return crud.update_version_variables(self.db, version, update.variables)

    def delete_version(self, slug: str) -> None:
        version = crud.get_version_by_slug(self.db, slug)
        if not version:
            raise NotFoundError("Version not found")
        crud.delete_version(self.db, version)
        logger.info(f"Deleted version {slug}")
