"""
Member routes for the membership portal.

JSON CRUD for members. Listing by school feeds step 3 of the public lookup.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.config import Settings, get_settings
from app.database import get_db
from app.models import Member, School
from app.schemas import MemberCreate, MemberUpdate, MemberResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/members", tags=["members"])


def member_query(db: Session):
    """Member query with school and organization eagerly loaded."""
    return db.query(Member).options(
        joinedload(Member.school).joinedload(School.organization),
        joinedload(Member.organization),
    )


def get_member(db: Session, member_id: UUID) -> Member | None:
    """Get member by ID with school and organization loaded."""
    return member_query(db).filter(Member.id == member_id).first()


def _validate_payload(db: Session, payload: MemberCreate) -> tuple[dict, JSONResponse | None]:
    """
    Check required fields and the school/organization pairing.

    The member's organization_id must equal its school's organization_id.
    """
    name = (payload.name or "").strip()
    submission_url = (payload.submission_url or "").strip()
    if not name or not submission_url or payload.school_id is None or payload.organization_id is None:
        return {}, JSONResponse(
            content={"error": "Name, school_id, organization_id, and submission_url are required"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    school = db.query(School).filter(School.id == payload.school_id).first()
    if not school:
        return {}, JSONResponse(
            content={"error": "School not found"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    if school.organization_id != payload.organization_id:
        return {}, JSONResponse(
            content={"error": "organization_id does not match the school's organization"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    return {
        "name": name,
        "school_id": payload.school_id,
        "organization_id": payload.organization_id,
        "submission_url": submission_url,
    }, None


@router.get("", response_model=list[MemberResponse])
async def list_members(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    school_id: Optional[UUID] = Query(None, alias="schoolId", description="Filter by school"),
    search: Optional[str] = Query(None, description="Case-insensitive name substring"),
    limit: Optional[int] = Query(None, ge=1, description="Maximum members returned"),
):
    """List members ordered by name, optionally filtered by school and name."""
    limit = limit or settings.member_list_limit
    query = member_query(db)

    if school_id:
        query = query.filter(Member.school_id == school_id)

    if search and search.strip():
        query = query.filter(Member.name.icontains(search.strip(), autoescape=True))

    members = query.order_by(Member.name).limit(limit).all()

    if len(members) >= limit:
        logger.warning(f"Member list hit the {limit} row limit (school={school_id}, search={search!r})")

    return members


@router.post("", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def create_member(
    payload: MemberCreate,
    db: Session = Depends(get_db),
):
    """Create a new member (admin only)."""
    values, error = _validate_payload(db, payload)
    if error:
        return error

    member = Member(**values)
    db.add(member)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return JSONResponse(content={"error": str(e)}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return get_member(db, member.id)


@router.get("/{member_id}", response_model=MemberResponse)
async def get_member_detail(
    member_id: UUID,
    db: Session = Depends(get_db),
):
    """Get member details (used by the lookup to redirect)."""
    member = get_member(db, member_id)
    if not member:
        return JSONResponse(content={"error": "Member not found"}, status_code=status.HTTP_404_NOT_FOUND)
    return member


@router.put("/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: UUID,
    payload: MemberUpdate,
    db: Session = Depends(get_db),
):
    """Update a member (admin only)."""
    member = db.query(Member).filter(Member.id == member_id).first()
    if not member:
        return JSONResponse(content={"error": "Member not found"}, status_code=status.HTTP_404_NOT_FOUND)

    values, error = _validate_payload(db, payload)
    if error:
        return error

    for field, value in values.items():
        setattr(member, field, value)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return JSONResponse(content={"error": str(e)}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return get_member(db, member_id)


@router.delete("/{member_id}")
async def delete_member(
    member_id: UUID,
    db: Session = Depends(get_db),
):
    """Delete a member (admin only)."""
    member = db.query(Member).filter(Member.id == member_id).first()
    if not member:
        return JSONResponse(content={"error": "Member not found"}, status_code=status.HTTP_404_NOT_FOUND)

    db.delete(member)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return JSONResponse(content={"error": str(e)}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return {"message": "Member deleted successfully"}
