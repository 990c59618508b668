"""
Organization routes for the membership portal.

JSON CRUD for organizations. The list endpoint also feeds step 1 of the
public lookup.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import get_db
from app.models import Organization
from app.schemas import OrganizationCreate, OrganizationUpdate, OrganizationResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/organizations", tags=["organizations"])


def _duplicate_name_response(name: str) -> JSONResponse:
    return JSONResponse(
        content={"error": f'An organization named "{name}" already exists. Please choose a different name.'},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


def _not_found_response() -> JSONResponse:
    return JSONResponse(
        content={"error": "Organization not found"},
        status_code=status.HTTP_404_NOT_FOUND,
    )


@router.get("", response_model=list[OrganizationResponse])
async def list_organizations(db: Session = Depends(get_db)):
    """List all organizations ordered by name."""
    return db.query(Organization).order_by(Organization.name).all()


@router.post("", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    payload: OrganizationCreate,
    db: Session = Depends(get_db),
):
    """Create a new organization (admin only)."""
    name = (payload.name or "").strip()
    if not name:
        return JSONResponse(
            content={"error": "Name is required"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    existing = db.query(Organization).filter(Organization.name == name).first()
    if existing:
        return _duplicate_name_response(name)

    organization = Organization(name=name)
    db.add(organization)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return _duplicate_name_response(name)
    except SQLAlchemyError as e:
        db.rollback()
        return JSONResponse(content={"error": str(e)}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    db.refresh(organization)
    logger.info(f"Created organization {organization.name!r}")
    return organization


@router.get("/{organization_id}", response_model=OrganizationResponse)
async def get_organization(
    organization_id: UUID,
    db: Session = Depends(get_db),
):
    """Get a single organization."""
    organization = db.query(Organization).filter(Organization.id == organization_id).first()
    if not organization:
        return _not_found_response()
    return organization


@router.put("/{organization_id}", response_model=OrganizationResponse)
async def update_organization(
    organization_id: UUID,
    payload: OrganizationUpdate,
    db: Session = Depends(get_db),
):
    """Rename an organization (admin only)."""
    name = (payload.name or "").strip()
    if not name:
        return JSONResponse(
            content={"error": "Name is required"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    organization = db.query(Organization).filter(Organization.id == organization_id).first()
    if not organization:
        return _not_found_response()

    # Check for another organization with the same name
    existing = db.query(Organization).filter(
        Organization.name == name,
        Organization.id != organization_id,
    ).first()
    if existing:
        return _duplicate_name_response(name)

    organization.name = name
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return _duplicate_name_response(name)
    except SQLAlchemyError as e:
        db.rollback()
        return JSONResponse(content={"error": str(e)}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    db.refresh(organization)
    return organization


@router.delete("/{organization_id}")
async def delete_organization(
    organization_id: UUID,
    db: Session = Depends(get_db),
):
    """Delete an organization and, by cascade, its schools and members (admin only)."""
    organization = db.query(Organization).filter(Organization.id == organization_id).first()
    if not organization:
        return _not_found_response()

    db.delete(organization)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return JSONResponse(content={"error": str(e)}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"Deleted organization {organization_id}")
    return {"message": "Organization deleted successfully"}
