"""Seed data the application expects to exist before it serves requests."""

import logging

from sqlalchemy.orm import Session

from .. import crud
from ..models import User
from .config import settings

logger = logging.getLogger(__name__)


def bootstrap_default_owner(db: Session) -> User:
    """Create the default presentation owner if it does not exist yet."""
    owner = crud.get_user_by_email(db, settings.DEFAULT_OWNER_EMAIL)
    if owner:
        return owner

    owner = crud.create_user(
        db,
        email=settings.DEFAULT_OWNER_EMAIL,
        name=settings.DEFAULT_OWNER_NAME,
        company=settings.DEFAULT_OWNER_COMPANY,
    )
    logger.info(f"Created default owner {owner.email}")
    return owner
