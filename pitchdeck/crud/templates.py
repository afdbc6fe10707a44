"""Template CRUD operations."""

from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from ..models import Template


def create_template(
    db: Session,
    name: str,
    slug: str,
    structure: Dict[str, Any],
    description: Optional[str] = None,
    thumbnail: Optional[str] = None,
    default_data: Optional[Dict[str, Any]] = None,
) -> Template:
    """Create a new stored template."""
    db_template = Template(
        name=name,
        slug=slug,
        description=description,
        thumbnail=thumbnail,
        structure=structure,
        default_data=default_data or {},
        is_active=True,
    )
    db.add(db_template)
    db.commit()
    db.refresh(db_template)
    return db_template


def get_template_by_slug(db: Session, slug: str) -> Optional[Template]:
    """Get a template by slug."""
    return db.query(Template).filter(Template.slug == slug).first()


def list_active_templates(db: Session) -> List[Template]:
    """Active templates, newest first."""
    return db.query(Template).filter(Template.is_active.is_(True)).order_by(Template.created_at.desc()).all()
