"""
School model. Names are unique within their organization, not globally.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, DateTime, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship as orm_relationship

from app.models.base import Base, utcnow

if TYPE_CHECKING:
    from app.models.organization import Organization
    from app.models.member import Member


class School(Base):
    """School belonging to one organization."""

    __tablename__ = "schools"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_schools_organization_id_name"),
        Index("idx_schools_organization_id", "organization_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    # Relationships
    organization: Mapped["Organization"] = orm_relationship(
        "Organization",
        back_populates="schools",
    )
    members: Mapped[list["Member"]] = orm_relationship(
        "Member",
        back_populates="school",
        cascade="all, delete",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<School(name={self.name!r}, organization_id={self.organization_id})>"
