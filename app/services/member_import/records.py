"""
Data classes flowing through the import pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import UUID

from app.services.member_import.errors import ValidationError


class DuplicatePolicy(str, Enum):
    """How to treat an import record matching an existing member."""

    skip = "skip"
    update = "update"
    error = "error"

    @classmethod
    def parse(cls, value: "str | DuplicatePolicy | None") -> "DuplicatePolicy":
        """Parse a duplicateHandling value, defaulting to skip."""
        if value is None:
            return cls.skip
        try:
            return cls(value)
        except (ValueError, TypeError):
            raise ValidationError(
                "Invalid duplicateHandling option. Must be skip, update, or error"
            ) from None


@dataclass
class MemberImportRecord:
    """One member row as supplied by the caller or parsed from CSV."""

    organization_name: str
    school_name: str
    member_name: str
    submission_url: str

    @property
    def is_complete(self) -> bool:
        """True if every field has a non-blank value."""
        return all(
            value and value.strip()
            for value in (
                self.organization_name,
                self.school_name,
                self.member_name,
                self.submission_url,
            )
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MemberImportRecord":
        """
        Build a record from a JSON object.

        Missing keys become blank values; non-string values raise ValidationError.
        """
        return cls(
            organization_name=_clean(data.get("organization_name")),
            school_name=_clean(data.get("school_name")),
            member_name=_clean(data.get("member_name")),
            submission_url=_clean(data.get("submission_url")),
        )


@dataclass
class ResolvedMember:
    """An import record with its organization and school resolved to ids."""

    record: MemberImportRecord
    organization_id: UUID
    school_id: UUID

    @property
    def name(self) -> str:
        return self.record.member_name

    @property
    def submission_url(self) -> str:
        return self.record.submission_url

    @property
    def natural_key(self) -> tuple[str, UUID, UUID]:
        return (self.record.member_name, self.school_id, self.organization_id)


@dataclass
class ImportStats:
    """Aggregate counters returned to the caller."""

    organizations_created: int = 0
    schools_created: int = 0
    members_created: int = 0
    duplicates_skipped: int = 0
    duplicates_updated: int = 0

    def add(self, other: "ImportStats") -> None:
        """Accumulate another chunk's counters into this one."""
        self.organizations_created += other.organizations_created
        self.schools_created += other.schools_created
        self.members_created += other.members_created
        self.duplicates_skipped += other.duplicates_skipped
        self.duplicates_updated += other.duplicates_updated

    def to_dict(self) -> dict[str, int]:
        """Serialize with the camelCase keys used by the API."""
        return {
            "organizationsCreated": self.organizations_created,
            "schoolsCreated": self.schools_created,
            "membersCreated": self.members_created,
            "duplicatesSkipped": self.duplicates_skipped,
            "duplicatesUpdated": self.duplicates_updated,
        }


@dataclass
class ChunkError:
    """Failure of one chunk in a chunked import."""

    chunk_index: int
    first_row: int
    last_row: int
    message: str
    status_code: int


@dataclass
class ChunkedImportResult:
    """Result of importing a large batch chunk by chunk."""

    stats: ImportStats = field(default_factory=ImportStats)
    members: list[Any] = field(default_factory=list)
    records_total: int = 0
    chunks_total: int = 0
    errors: list[ChunkError] = field(default_factory=list)

    @property
    def chunks_failed(self) -> int:
        return len(self.errors)

    @property
    def chunks_succeeded(self) -> int:
        return self.chunks_total - self.chunks_failed


def _clean(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(
            "Each member must have organization_name, school_name, member_name, and submission_url"
        )
    return value.strip()
