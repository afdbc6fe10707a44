"""Presentation Service - presentation lifecycle and proposal generation."""

import logging
import math
import uuid
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import crud
from ..models import Presentation
from ..schemas import (
    AnalyticsRollup,
    ContentTree,
    GeneratedProposalResponse,
    Pagination,
    PresentationCreate,
    PresentationDetailResponse,
    PresentationListItem,
    PresentationListResponse,
    PresentationSettings,
    PresentationUpdate,
    ProposalData,
    VersionListItem,
)
from .config import settings
from .exceptions import NotFoundError, ValidationError
from .security import generate_presentation_slug
from .template_generator import generate_proposal_content, generate_proposal_settings
from .version_service import VersionService, share_urls

logger = logging.getLogger(__name__)


class PresentationService:
    """Create, list, read, update and delete presentations."""

    def __init__(self, db: Session):
        self.db = db

    def _resolve_owner(self, owner_id: Optional[uuid.UUID]) -> uuid.UUID:
        """The given owner, or the bootstrap owner; owners are never created here."""
        if owner_id:
            owner = crud.get_user_by_id(self.db, owner_id)
            if not owner:
                raise ValidationError("Owner does not exist")
            return owner.id

        owner = crud.get_user_by_email(self.db, settings.DEFAULT_OWNER_EMAIL)
        if not owner:
            raise ValidationError("No default owner configured; run the seed step first")
        return owner.id

    def get_presentation(self, presentation_id) -> Presentation:
        presentation_uuid = crud.parse_uuid(presentation_id)
        presentation = crud.get_presentation(self.db, presentation_uuid) if presentation_uuid else None
        if not presentation:
            raise NotFoundError("Presentation not found")
        return presentation

    def create_presentation(
        self,
        title: str,
        content: Dict[str, Any],
        presentation_settings: Dict[str, Any],
        template_id: Optional[str] = None,
        owner_id: Optional[uuid.UUID] = None,
    ) -> Presentation:
        owner = self._resolve_owner(owner_id)
        try:
            presentation = crud.create_presentation(
                self.db,
                title=title,
                slug=generate_presentation_slug(),
                template_id=template_id or settings.DEFAULT_TEMPLATE_SLUG,
                content=content,
                settings=presentation_settings,
                owner_id=owner,
            )
        except IntegrityError:
            self.db.rollback()
            raise ValidationError("Presentation slug already in use, please retry")
        logger.info(f"Created presentation {presentation.slug}")
        return presentation

    def create_from_request(self, presentation_data: PresentationCreate) -> Presentation:
        return self.create_presentation(
            title=presentation_data.title,
            content=presentation_data.content.to_storage(),
            presentation_settings=presentation_data.settings.to_storage(),
            template_id=presentation_data.template_id,
            owner_id=presentation_data.owner_id,
        )

    def list_presentations(self, page: int = 1, limit: int = 10, search: Optional[str] = None) -> PresentationListResponse:
        rows, total = crud.list_presentations(self.db, page=page, limit=limit, search=search)
        items = []
        for presentation, version_count in rows:
            item = PresentationListItem.model_validate(presentation)
            item.version_count = version_count
            items.append(item)
        return PresentationListResponse(
            data=items,
            pagination=Pagination(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit)),
        )

    def presentation_detail(self, presentation_id) -> PresentationDetailResponse:
        """Presentation with its versions (and their session counts) and rollup."""
        presentation = self.get_presentation(presentation_id)
        counts = crud.count_sessions_by_version(self.db, [version.id for version in presentation.versions])

        detail = PresentationDetailResponse.model_validate(presentation, from_attributes=True)
        detail.versions = [
            VersionListItem(
                id=version.id,
                version_slug=version.version_slug,
                recipient_name=version.recipient_name,
                recipient_email=version.recipient_email,
                created_at=version.created_at,
                view_count=counts.get(version.id, 0),
            )
            for version in presentation.versions
        ]
        detail.analytics = AnalyticsRollup.model_validate(presentation.analytics) if presentation.analytics else None
        return detail

    def update_presentation(self, presentation_id, update: PresentationUpdate) -> Presentation:
        presentation = self.get_presentation(presentation_id)
        update_data: Dict[str, Any] = {}
        if update.title is not None:
            update_data["title"] = update.title
        if update.content is not None:
            update_data["content"] = update.content.to_storage()
        if update.settings is not None:
            update_data["settings"] = update.settings.to_storage()
        if not update_data:
            return presentation
        return crud.update_presentation(self.db, presentation, update_data)

    def delete_presentation(self, presentation_id) -> None:
        presentation = self.get_presentation(presentation_id)
        slug = presentation.slug
        crud.delete_presentation(self.db, presentation)
        logger.info(f"Deleted presentation {slug}")

    def generate_proposal(self, data: ProposalData) -> GeneratedProposalResponse:
        """Build proposal content, store it as a presentation and cut its first version."""
        content: ContentTree = generate_proposal_content(data)
        proposal_settings: PresentationSettings = generate_proposal_settings(data)

        presentation = self.create_presentation(
            title=f"{data.offer_title} - {data.client_name}",
            content=content.to_storage(),
            presentation_settings=proposal_settings.to_storage(),
            template_id=settings.DEFAULT_TEMPLATE_SLUG,
        )
        version = VersionService(self.db).create_for_presentation(
            presentation.id,
            recipient_name=data.client_name,
            recipient_email=str(data.client_email) if data.client_email else None,
            variables=data.as_variables(),
            expires_at=data.expires_at,
        )
        return GeneratedProposalResponse(
            presentation_id=presentation.id,
            version_id=version.id,
            **share_urls(version),
        )
