"""
School routes for the membership portal.

JSON CRUD for schools. Listing by organization feeds step 2 of the public
lookup.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.database import get_db
from app.models import Member, Organization, School
from app.schemas import SchoolCreate, SchoolUpdate, SchoolResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/schools", tags=["schools"])


def get_school(db: Session, school_id: UUID) -> School | None:
    """Get school by ID with its organization loaded."""
    return (
        db.query(School)
        .options(joinedload(School.organization))
        .filter(School.id == school_id)
        .first()
    )


def _duplicate_name_response(name: str) -> JSONResponse:
    return JSONResponse(
        content={
            "error": f'A school named "{name}" already exists in this organization. Please choose a different name.'
        },
        status_code=status.HTTP_400_BAD_REQUEST,
    )


def _validate_payload(db: Session, payload: SchoolCreate) -> tuple[str, JSONResponse | None]:
    """Check required fields and that the organization exists."""
    name = (payload.name or "").strip()
    if not name or payload.organization_id is None:
        return name, JSONResponse(
            content={"error": "Name and organization_id are required"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    organization = db.query(Organization).filter(Organization.id == payload.organization_id).first()
    if not organization:
        return name, JSONResponse(
            content={"error": "Organization not found"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    return name, None


@router.get("", response_model=list[SchoolResponse])
async def list_schools(
    db: Session = Depends(get_db),
    org_id: Optional[UUID] = Query(None, alias="orgId", description="Filter by organization"),
    search: Optional[str] = Query(None, description="Case-insensitive name prefix"),
):
    """List schools ordered by name, optionally filtered by organization and name prefix."""
    query = db.query(School).options(joinedload(School.organization))

    if org_id:
        query = query.filter(School.organization_id == org_id)

    if search and search.strip():
        query = query.filter(
            func.lower(School.name).startswith(search.strip().lower(), autoescape=True)
        )

    return query.order_by(School.name).all()


@router.post("", response_model=SchoolResponse, status_code=status.HTTP_201_CREATED)
async def create_school(
    payload: SchoolCreate,
    db: Session = Depends(get_db),
):
    """Create a new school (admin only)."""
    name, error = _validate_payload(db, payload)
    if error:
        return error

    existing = db.query(School).filter(
        School.name == name,
        School.organization_id == payload.organization_id,
    ).first()
    if existing:
        return _duplicate_name_response(name)

    school = School(name=name, organization_id=payload.organization_id)
    db.add(school)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return _duplicate_name_response(name)
    except SQLAlchemyError as e:
        db.rollback()
        return JSONResponse(content={"error": str(e)}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"Created school {name!r} in organization {payload.organization_id}")
    return get_school(db, school.id)


@router.get("/{school_id}", response_model=SchoolResponse)
async def get_school_detail(
    school_id: UUID,
    db: Session = Depends(get_db),
):
    """Get a single school."""
    school = get_school(db, school_id)
    if not school:
        return JSONResponse(content={"error": "School not found"}, status_code=status.HTTP_404_NOT_FOUND)
    return school


@router.put("/{school_id}", response_model=SchoolResponse)
async def update_school(
    school_id: UUID,
    payload: SchoolUpdate,
    db: Session = Depends(get_db),
):
    """
    Update a school (admin only).

    Moving a school to another organization carries its members along so
    that member.organization_id keeps matching the school.
    """
    school = get_school(db, school_id)
    if not school:
        return JSONResponse(content={"error": "School not found"}, status_code=status.HTTP_404_NOT_FOUND)

    name, error = _validate_payload(db, payload)
    if error:
        return error

    # Check for another school with the same name in the target organization
    existing = db.query(School).filter(
        School.name == name,
        School.organization_id == payload.organization_id,
        School.id != school_id,
    ).first()
    if existing:
        return _duplicate_name_response(name)

    moved = school.organization_id != payload.organization_id
    school.name = name
    school.organization_id = payload.organization_id
    if moved:
        db.query(Member).filter(Member.school_id == school_id).update(
            {Member.organization_id: payload.organization_id},
            synchronize_session="fetch",
        )

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return _duplicate_name_response(name)
    except SQLAlchemyError as e:
        db.rollback()
        return JSONResponse(content={"error": str(e)}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if moved:
        logger.info(f"Moved school {school_id} to organization {payload.organization_id}")
    return get_school(db, school_id)


@router.delete("/{school_id}")
async def delete_school(
    school_id: UUID,
    db: Session = Depends(get_db),
):
    """Delete a school and, by cascade, its members (admin only)."""
    school = db.query(School).filter(School.id == school_id).first()
    if not school:
        return JSONResponse(content={"error": "School not found"}, status_code=status.HTTP_404_NOT_FOUND)

    db.delete(school)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return JSONResponse(content={"error": str(e)}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return {"message": "School deleted successfully"}
