"""
Organization model (top-level grouping, e.g. a society).
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, DateTime, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship as orm_relationship

from app.models.base import Base, utcnow

if TYPE_CHECKING:
    from app.models.school import School
    from app.models.member import Member


class Organization(Base):
    """Organization entity owning schools."""

    __tablename__ = "organizations"
    __table_args__ = (
        UniqueConstraint("name", name="uq_organizations_name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    # Relationships
    schools: Mapped[list["School"]] = orm_relationship(
        "School",
        back_populates="organization",
        cascade="all, delete",
        passive_deletes=True,
    )

    # Denormalized member link, kept for cascade on delete
    members: Mapped[list["Member"]] = orm_relationship(
        "Member",
        back_populates="organization",
        cascade="all, delete",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Organization(name={self.name!r})>"
