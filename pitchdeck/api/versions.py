"""Presentation version API endpoints."""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.database import get_db
from ..core.version_service import VersionService, build_version_response
from .. import schemas

router = APIRouter(prefix="/versions", tags=["Versions"])


@router.post("/", response_model=schemas.VersionResponse, status_code=status.HTTP_201_CREATED)
async def create_version(
    version_data: schemas.VersionCreate,
    db: Session = Depends(get_db)
) -> schemas.VersionResponse:
    """Create a tokenized version of a presentation with view and edit links."""
    version = VersionService(db).create_version(version_data)
    return build_version_response(version)


@router.get("/presentation/{presentation_id}", response_model=list[schemas.VersionResponse])
async def list_versions(
    presentation_id: str,
    db: Session = Depends(get_db)
) -> list[schemas.VersionResponse]:
    """All versions of a presentation, newest first."""
    return VersionService(db).list_versions(presentation_id)


@router.get("/{slug}", response_model=schemas.VersionReadResponse)
async def read_version(
    slug: str,
    token: Optional[str] = Query(None, description="View or edit token"),
    password: Optional[str] = Query(None, description="Version password, when one is set"),
    db: Session = Depends(get_db)
) -> schemas.VersionReadResponse:
    """Read a version's personalised content; 403 on a bad token, 410 once expired."""
    return VersionService(db).read_version(slug, token, password=password)


@router.put("/{slug}", response_model=schemas.VersionResponse)
async def update_version(
    slug: str,
    update: schemas.VersionUpdate,
    db: Session = Depends(get_db)
) -> schemas.VersionResponse:
    """Update a version's variables; requires the edit token."""
    version = VersionService(db).update_version(slug, update)
    return build_version_response(version)


@router.delete("/{slug}")
async def delete_version(
    slug: str,
    db: Session = Depends(get_db)
) -> dict:
    """Delete a version and its session records."""
    VersionService(db).delete_version(slug)
    return {"message": "Version deleted successfully"}
