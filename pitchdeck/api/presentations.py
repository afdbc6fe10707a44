"""Presentation management API endpoints."""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.database import get_db
from ..core.presentation_service import PresentationService
from .. import schemas

router = APIRouter(prefix="/presentations", tags=["Presentations"])


@router.get("/", response_model=schemas.PresentationListResponse)
async def list_presentations(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, description="Case-insensitive match on title or slug"),
    db: Session = Depends(get_db)
) -> schemas.PresentationListResponse:
    """List presentations, newest first."""
    return PresentationService(db).list_presentations(page=page, limit=limit, search=search)


@router.post("/", response_model=schemas.PresentationResponse, status_code=status.HTTP_201_CREATED)
async def create_presentation(
    presentation_data: schemas.PresentationCreate,
    db: Session = Depends(get_db)
) -> schemas.PresentationResponse:
    """Create a presentation and its analytics rollup."""
    presentation = PresentationService(db).create_from_request(presentation_data)
    return schemas.PresentationResponse.model_validate(presentation)


@router.post("/generate", response_model=schemas.GeneratedProposalResponse, status_code=status.HTTP_201_CREATED)
async def generate_presentation(
    proposal: schemas.ProposalData,
    db: Session = Depends(get_db)
) -> schemas.GeneratedProposalResponse:
    """Generate a sales proposal presentation with one shareable version."""
    return PresentationService(db).generate_proposal(proposal)


@router.get("/{presentation_id}", response_model=schemas.PresentationDetailResponse)
async def get_presentation(
    presentation_id: str,
    db: Session = Depends(get_db)
) -> schemas.PresentationDetailResponse:
    """Get a presentation with its versions and analytics rollup."""
    return PresentationService(db).presentation_detail(presentation_id)


@router.put("/{presentation_id}", response_model=schemas.PresentationResponse)
async def update_presentation(
    presentation_id: str,
    update: schemas.PresentationUpdate,
    db: Session = Depends(get_db)
) -> schemas.PresentationResponse:
    """Update title, content or settings of a presentation."""
    presentation = PresentationService(db).update_presentation(presentation_id, update)
    return schemas.PresentationResponse.model_validate(presentation)


@router.delete("/{presentation_id}")
async def delete_presentation(
    presentation_id: str,
    db: Session = Depends(get_db)
) -> dict:
    """Delete a presentation together with its versions, sessions and rollup."""
    PresentationService(db).delete_presentation(presentation_id)
    return {"message": "Presentation deleted successfully"}

