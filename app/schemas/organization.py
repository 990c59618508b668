"""
Pydantic schemas for Organization.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class OrganizationSummary(BaseModel):
    """Minimal organization embedded in school and member responses."""
    id: UUID
    name: str

    class Config:
        from_attributes = True


class OrganizationCreate(BaseModel):
    """Schema for creating an Organization. Name presence is checked by the router."""
    name: Optional[str] = Field(None, max_length=300, description="Organization name (unique)")


class OrganizationUpdate(OrganizationCreate):
    """Schema for renaming an Organization."""
    pass


class OrganizationResponse(OrganizationSummary):
    """Schema for Organization response."""
    created_at: datetime
