"""Template API endpoints."""

from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import get_db
from ..core.exceptions import NotFoundError, ValidationError
from ..core.template_generator import builtin_template
from ..models import Template
from .. import crud, schemas

router = APIRouter(prefix="/templates", tags=["Templates"])


def _to_definition(template: Template) -> schemas.TemplateDefinition:
    return schemas.TemplateDefinition(
        id=str(template.id),
        name=template.name,
        slug=template.slug,
        description=template.description,
        thumbnail=template.thumbnail,
        default_content=schemas.ContentTree.model_validate(template.structure or {}),
        default_data=template.default_data or {},
    )


@router.get("/", response_model=List[schemas.TemplateDefinition])
async def list_templates(db: Session = Depends(get_db)) -> List[schemas.TemplateDefinition]:
    """Active templates; the built-in sales proposal when none are stored."""
    templates = crud.list_active_templates(db)
    if not templates:
        return [builtin_template()]
    return [_to_definition(template) for template in templates]


@router.get("/{slug}", response_model=schemas.TemplateDefinition)
async def get_template(slug: str, db: Session = Depends(get_db)) -> schemas.TemplateDefinition:
    """Get a template by slug."""
    template = crud.get_template_by_slug(db, slug)
    if template:
        return _to_definition(template)
    if slug == settings.DEFAULT_TEMPLATE_SLUG:
        return builtin_template()
    raise NotFoundError("Template not found")


@router.post("/", response_model=schemas.TemplateDefinition, status_code=status.HTTP_201_CREATED)
async def create_template(
    template_data: schemas.TemplateCreate,
    db: Session = Depends(get_db)
) -> schemas.TemplateDefinition:
    """Store a new template."""
    if crud.get_template_by_slug(db, template_data.slug):
        raise ValidationError(f"Template '{template_data.slug}' already exists")

    template = crud.create_template(
        db,
        name=template_data.name,
        slug=template_data.slug,
        structure=template_data.structure.to_storage(),
        description=template_data.description,
        thumbnail=template_data.thumbnail,
        default_data=template_data.default_data,
    )
    return _to_definition(template)
