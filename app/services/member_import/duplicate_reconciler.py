"""
Duplicate reconciliation for bulk member import.

Matches resolved import rows against existing members on the natural key
(name, school_id, organization_id) and splits the batch according to the
duplicate policy.
"""

import logging
from dataclasses import dataclass, field
from typing import Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Member
from app.services.member_import.entity_resolver import DEFAULT_LOOKUP_BATCH_SIZE, chunked
from app.services.member_import.errors import PolicyViolation, StoreError
from app.services.member_import.records import DuplicatePolicy, ResolvedMember

logger = logging.getLogger(__name__)

MemberKey = tuple[str, UUID, UUID]


@dataclass
class MemberUpdate:
    """An existing member whose submission URL is to be replaced."""

    member: Member
    submission_url: str


@dataclass
class ReconciliationResult:
    """Partition of an import batch."""

    to_insert: list[ResolvedMember] = field(default_factory=list)
    to_update: list[MemberUpdate] = field(default_factory=list)
    duplicates_skipped: int = 0
    duplicates_updated: int = 0


def _describe(row: ResolvedMember) -> str:
    record = row.record
    return f"{record.member_name} in {record.organization_name} - {record.school_name}"


class DuplicateReconciler:
    """Applies a duplicate policy to a batch of resolved members."""

    def __init__(self, db: Session, lookup_batch_size: int = DEFAULT_LOOKUP_BATCH_SIZE):
        self.db = db
        self.lookup_batch_size = lookup_batch_size

    def reconcile(
        self,
        rows: Sequence[ResolvedMember],
        policy: DuplicatePolicy,
    ) -> ReconciliationResult:
        """
        Partition rows into inserts, updates and skips.

        Rows repeating an earlier row of the same batch are duplicates too:
        the first one is inserted and the rest follow the policy.

        Raises:
            PolicyViolation: On the first duplicate under the 'error' policy
            StoreError: If the existing-member lookup fails
        """
        try:
            existing = self._fetch_existing(rows)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to check existing members: {e}") from e

        result = ReconciliationResult()
        pending: dict[MemberKey, int] = {}

        for row in rows:
            key = row.natural_key
            match = existing.get(key)

            if match is not None:
                if policy is DuplicatePolicy.error:
                    raise PolicyViolation(
                        f"Duplicate member found: {_describe(row)}",
                        member_name=row.name,
                    )
                if policy is DuplicatePolicy.update:
                    result.to_update.append(MemberUpdate(match, row.submission_url))
                    result.duplicates_updated += 1
                else:
                    result.duplicates_skipped += 1
                continue

            if key in pending:
                if policy is DuplicatePolicy.error:
                    raise PolicyViolation(
                        f"Duplicate member in import batch: {_describe(row)}",
                        member_name=row.name,
                    )
                if policy is DuplicatePolicy.update:
                    # Later row wins for the pending insert
                    result.to_insert[pending[key]] = row
                    result.duplicates_updated += 1
                else:
                    result.duplicates_skipped += 1
                continue

            pending[key] = len(result.to_insert)
            result.to_insert.append(row)

        logger.info(
            f"Reconciled {len(rows)} rows with policy '{policy.value}': "
            f"{len(result.to_insert)} new, {result.duplicates_updated} updated, "
            f"{result.duplicates_skipped} skipped"
        )
        return result

    def _fetch_existing(self, rows: Sequence[ResolvedMember]) -> dict[MemberKey, Member]:
        """Bulk-read members sharing (school_id, name) with the batch."""
        names_by_school: dict[UUID, dict[str, None]] = {}
        for row in rows:
            names_by_school.setdefault(row.school_id, {})[row.name] = None

        existing: dict[MemberKey, Member] = {}
        for school_id, names in names_by_school.items():
            for batch in chunked(list(names), self.lookup_batch_size):
                members = (
                    self.db.query(Member)
                    .filter(Member.school_id == school_id, Member.name.in_(batch))
                    .order_by(Member.created_at)
                    .all()
                )
                for member in members:
                    # Oldest wins when the table already holds duplicates
                    existing.setdefault(member.natural_key, member)

        logger.debug(f"Found {len(existing)} existing members matching the batch")
        return existing
