"""
ImportHistory model for tracking bulk member uploads.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    String,
    Text,
    Integer,
    DateTime,
    Enum,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, utcnow


class ImportSource(str, enum.Enum):
    """Format of the uploaded data."""

    csv = "csv"
    json = "json"


class ImportStatus(str, enum.Enum):
    """Status of the import operation."""

    success = "success"
    partial = "partial"
    failed = "failed"


class ImportHistory(Base):
    """
    Records history of bulk member uploads.

    One row per uploaded file. Statistics are accumulated across all
    chunks of the upload; a failed chunk does not undo earlier ones,
    so the status can be partial.
    """

    __tablename__ = "import_history"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    source: Mapped[ImportSource] = mapped_column(
        Enum(ImportSource, name="importsource"),
        nullable=False,
        comment="Format of the upload (csv, json)",
    )
    status: Mapped[ImportStatus] = mapped_column(
        Enum(ImportStatus, name="importstatus"),
        default=ImportStatus.success,
        comment="Status of the import operation",
    )
    original_filename: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Original name of the uploaded file",
    )
    duplicate_handling: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="skip",
        comment="Duplicate policy applied (skip, update, error)",
    )
    # Import statistics
    records_parsed: Mapped[int] = mapped_column(Integer, default=0)
    organizations_created: Mapped[int] = mapped_column(Integer, default=0)
    schools_created: Mapped[int] = mapped_column(Integer, default=0)
    members_created: Mapped[int] = mapped_column(Integer, default=0)
    duplicates_skipped: Mapped[int] = mapped_column(Integer, default=0)
    duplicates_updated: Mapped[int] = mapped_column(Integer, default=0)
    chunks_total: Mapped[int] = mapped_column(Integer, default=0)
    chunks_failed: Mapped[int] = mapped_column(Integer, default=0)
    # Error tracking
    error_message: Mapped[str | None] = mapped_column(
        Text,
        comment="Concatenated chunk errors, if any",
    )
    # Timestamps
    imported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        comment="When the import was performed",
    )

    def __repr__(self) -> str:
        return f"<ImportHistory(source={self.source.value}, file={self.original_filename!r}, status={self.status.value})>"

    @property
    def total_processed(self) -> int:
        """Total records processed (created + updated + skipped)."""
        return self.members_created + self.duplicates_updated + self.duplicates_skipped
