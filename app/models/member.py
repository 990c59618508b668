"""
Member model.

A member belongs to exactly one school. organization_id is denormalized
from the school for query convenience and must always match it.
(name, school_id, organization_id) is the natural key used for duplicate
detection during bulk import; the database does not enforce it.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, Text, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship as orm_relationship

from app.models.base import Base, utcnow

if TYPE_CHECKING:
    from app.models.organization import Organization
    from app.models.school import School


class Member(Base):
    """Person record with a target submission URL."""

    __tablename__ = "members"
    __table_args__ = (
        Index("idx_members_school_id_name", "school_id", "name"),
        Index("idx_members_organization_id", "organization_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    school_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    submission_url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    # Relationships
    school: Mapped["School"] = orm_relationship(
        "School",
        back_populates="members",
    )
    organization: Mapped["Organization"] = orm_relationship(
        "Organization",
        back_populates="members",
    )

    @property
    def natural_key(self) -> tuple[str, uuid.UUID, uuid.UUID]:
        """Composite key used for duplicate detection."""
        return (self.name, self.school_id, self.organization_id)

    def __repr__(self) -> str:
        return f"<Member(name={self.name!r}, school_id={self.school_id})>"
