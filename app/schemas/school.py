"""
Pydantic schemas for School.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.organization import OrganizationSummary


class SchoolCreate(BaseModel):
    """Schema for creating a School."""
    name: Optional[str] = Field(None, max_length=300, description="School name, unique within its organization")
    organization_id: Optional[UUID] = Field(None, description="Owning organization")


class SchoolUpdate(SchoolCreate):
    """Schema for updating a School."""
    pass


class SchoolSummary(BaseModel):
    """School embedded in member responses, with its organization."""
    id: UUID
    name: str
    organization: Optional[OrganizationSummary] = None

    class Config:
        from_attributes = True


class SchoolResponse(SchoolSummary):
    """Schema for School response."""
    organization_id: UUID
    created_at: datetime
