"""
Bulk member import service.

Runs the import pipeline for one chunk of records:
parse (CSV only) -> resolve organizations/schools -> reconcile duplicates
-> insert/update members -> commit. A chunk is one transaction; any error
rolls it back entirely.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.models import Member
from app.services.member_import.csv_parser import parse_member_csv
from app.services.member_import.duplicate_reconciler import DuplicateReconciler, ReconciliationResult
from app.services.member_import.entity_resolver import EntityResolver
from app.services.member_import.errors import MemberImportError, StoreError, ValidationError
from app.services.member_import.records import (
    ChunkError,
    ChunkedImportResult,
    DuplicatePolicy,
    ImportStats,
    MemberImportRecord,
)

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Result of importing one chunk."""

    stats: ImportStats = field(default_factory=ImportStats)
    members: list[Member] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"{len(self.members)} members processed successfully"


class MemberImportService:
    """
    Service for importing members in bulk.

    The session is supplied by the caller (one per request) and is
    committed once per successfully imported chunk.
    """

    def __init__(self, db: Session, settings: Settings | None = None):
        """Initialize the import service.

        Args:
            db: Database session for querying and creating records
            settings: Application settings (defaults to the cached settings)
        """
        self.db = db
        self.settings = settings or get_settings()

    def import_csv(
        self,
        csv_content: str | bytes,
        duplicate_handling: str | DuplicatePolicy | None = None,
    ) -> ImportResult:
        """
        Import members from raw CSV text.

        The header must contain organization, school, member_name and
        submission_url.

        Raises:
            ValidationError: If the policy, header or rows are invalid
        """
        policy = DuplicatePolicy.parse(duplicate_handling)
        records = parse_member_csv(csv_content)
        return self.import_members(records, policy)

    def import_members(
        self,
        records: Sequence[MemberImportRecord | dict[str, Any]],
        duplicate_handling: str | DuplicatePolicy | None = None,
    ) -> ImportResult:
        """
        Import one chunk of member records.

        Args:
            records: Import records or JSON objects with organization_name,
                school_name, member_name and submission_url
            duplicate_handling: skip (default), update or error

        Returns:
            ImportResult with statistics and the inserted/updated members

        Raises:
            ValidationError: Bad policy, empty batch or incomplete record
            PolicyViolation: Duplicate under the 'error' policy
            ResolutionError: Organization/school missing after creation
            StoreError: Database failure
        """
        policy = DuplicatePolicy.parse(duplicate_handling)
        batch = self._validate(records)

        lookup_batch_size = self.settings.import_lookup_batch_size
        try:
            entities = EntityResolver(self.db, lookup_batch_size).resolve(batch)
            resolved = [entities.resolve_record(record) for record in batch]
            reconciliation = DuplicateReconciler(self.db, lookup_batch_size).reconcile(
                resolved, policy
            )
            members = self._persist(reconciliation)
            self.db.commit()
        except MemberImportError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(str(e)) from e

        result = ImportResult(
            stats=ImportStats(
                organizations_created=entities.organizations_created,
                schools_created=entities.schools_created,
                members_created=len(reconciliation.to_insert),
                duplicates_skipped=reconciliation.duplicates_skipped,
                duplicates_updated=reconciliation.duplicates_updated,
            ),
            members=members,
        )
        logger.info(f"Member import: {len(batch)} records, stats {result.stats.to_dict()}")
        return result

    def import_in_chunks(
        self,
        records: Sequence[MemberImportRecord | dict[str, Any]],
        duplicate_handling: str | DuplicatePolicy | None = None,
        chunk_size: int | None = None,
    ) -> ChunkedImportResult:
        """
        Import a large batch as independent chunks.

        Each chunk is committed on its own; a failing chunk is recorded and
        the remaining chunks still run. Nothing is rolled back across chunks.

        Raises:
            ValidationError: Bad policy, chunk size or empty batch (before any chunk runs)
        """
        policy = DuplicatePolicy.parse(duplicate_handling)
        size = chunk_size or self.settings.import_chunk_size
        if size < 1:
            raise ValidationError("Chunk size must be a positive integer")
        if not records or not isinstance(records, (list, tuple)):
            raise ValidationError("Members array is required")

        result = ChunkedImportResult(records_total=len(records))

        for index, start in enumerate(range(0, len(records), size), start=1):
            chunk = records[start:start + size]
            result.chunks_total += 1
            try:
                chunk_result = self.import_members(chunk, policy)
            except MemberImportError as e:
                logger.warning(
                    f"Import chunk {index} (rows {start + 1}-{start + len(chunk)}) failed: {e.message}"
                )
                result.errors.append(
                    ChunkError(
                        chunk_index=index,
                        first_row=start + 1,
                        last_row=start + len(chunk),
                        message=e.message,
                        status_code=e.status_code,
                    )
                )
                continue

            result.stats.add(chunk_result.stats)
            result.members.extend(chunk_result.members)

        logger.info(
            f"Chunked import: {result.records_total} records in {result.chunks_total} chunks, "
            f"{result.chunks_failed} failed"
        )
        return result

    def _validate(
        self, records: Sequence[MemberImportRecord | dict[str, Any]]
    ) -> list[MemberImportRecord]:
        """Normalize records and reject empty batches or incomplete rows."""
        if not records or not isinstance(records, (list, tuple)):
            raise ValidationError("Members array is required")

        batch = []
        for record in records:
            if isinstance(record, dict):
                record = MemberImportRecord.from_dict(record)
            if not isinstance(record, MemberImportRecord) or not record.is_complete:
                raise ValidationError(
                    "Each member must have organization_name, school_name, member_name, and submission_url"
                )
            batch.append(record)
        return batch

    def _persist(self, reconciliation: ReconciliationResult) -> list[Member]:
        """Write inserts and updates; returns inserted members followed by updated ones."""
        inserted = [
            Member(
                name=row.name,
                school_id=row.school_id,
                organization_id=row.organization_id,
                submission_url=row.submission_url,
            )
            for row in reconciliation.to_insert
        ]
        try:
            self.db.add_all(inserted)
            self.db.flush()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to insert members: {e}") from e

        updated: list[Member] = []
        try:
            for change in reconciliation.to_update:
                change.member.submission_url = change.submission_url
                if change.member not in updated:
                    updated.append(change.member)
            self.db.flush()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update member: {e}") from e

        return inserted + updated


def get_member_import_service(db: Session) -> MemberImportService:
    """Get a member import service instance.

    Args:
        db: Database session

    Returns:
        MemberImportService instance
    """
    return MemberImportService(db)
