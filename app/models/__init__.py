"""
SQLAlchemy models for the membership portal.

All models are imported here for easy access and to ensure
they are registered with the declarative base.
"""

from app.models.base import Base
from app.models.organization import Organization
from app.models.school import School
from app.models.member import Member
from app.models.import_history import ImportHistory, ImportSource, ImportStatus

__all__ = [
    # Base
    "Base",
    # Core models
    "Organization",
    "School",
    "Member",
    "ImportHistory",
    # Enums
    "ImportSource",
    "ImportStatus",
]
