"""
Public lookup router for the membership portal.

Backs the three-step wizard (organization -> school -> member):
- Organizations, for the first step
- Schools of an organization, filtered by name prefix
- Members of a school, filtered by name substring
- Redirect to the selected member's submission URL
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import get_db
from app.models import Member, Organization, School

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lookup", tags=["lookup"])


@router.get("/organizations")
async def lookup_organizations(db: Session = Depends(get_db)):
    """Organizations for step 1, ordered by name."""
    organizations = db.query(Organization).order_by(Organization.name).all()
    return [{"id": org.id, "name": org.name} for org in organizations]


@router.get("/organizations/{organization_id}/schools")
async def lookup_schools(
    organization_id: UUID,
    search: str = Query("", description="Case-insensitive name prefix"),
    db: Session = Depends(get_db),
):
    """Schools of one organization for step 2."""
    query = db.query(School).filter(School.organization_id == organization_id)
    if search.strip():
        query = query.filter(
            func.lower(School.name).startswith(search.strip().lower(), autoescape=True)
        )
    return [{"id": school.id, "name": school.name} for school in query.order_by(School.name).all()]


@router.get("/schools/{school_id}/members")
async def lookup_members(
    school_id: UUID,
    search: str = Query("", description="Case-insensitive name substring"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Members of one school for step 3.

    Nothing is returned until the user has typed something, so a school's
    full roster is never exposed by the public wizard.
    """
    if not search.strip():
        return []

    members = (
        db.query(Member)
        .filter(
            Member.school_id == school_id,
            Member.name.icontains(search.strip(), autoescape=True),
        )
        .order_by(Member.name)
        .limit(settings.member_list_limit)
        .all()
    )
    return [{"id": member.id, "name": member.name} for member in members]


@router.get("/members/{member_id}/redirect")
async def redirect_to_submission(
    member_id: UUID,
    db: Session = Depends(get_db),
):
    """Send the browser to the member's submission URL."""
    member = db.query(Member).filter(Member.id == member_id).first()
    if not member:
        return JSONResponse(content={"error": "Member not found"}, status_code=status.HTTP_404_NOT_FOUND)

    logger.debug(f"Redirecting lookup for member {member_id}")
    return RedirectResponse(url=member.submission_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
