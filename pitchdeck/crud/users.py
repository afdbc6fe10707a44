"""User-related CRUD operations."""

from typing import Optional
import uuid
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import User


def create_user(
    db: Session,
    email: str,
    name: Optional[str] = None,
    company: Optional[str] = None,
) -> User:
    """Create a new presentation owner."""
    db_user = User(email=email, name=name, company=company)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get a user by email (case-insensitive)."""
    return db.query(User).filter(func.lower(User.email) == func.lower(email)).first()


def get_user_by_id(db: Session, user_id: uuid.UUID) -> Optional[User]:
    """Get a user by ID."""
    return db.query(User).filter(User.id == user_id).first()
