"""
Organization and school resolution for bulk member import.

Given a batch of import records, finds the organizations and schools that
already exist, creates the missing ones and returns lookup maps that turn
every record into concrete foreign keys.

Creation relies on the unique constraints on organizations.name and
(schools.organization_id, schools.name). If a bulk insert conflicts with
a row created concurrently by another import, the insert is rolled back to
a savepoint and each row is created-if-absent on its own, re-fetching the
existing id on conflict.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Organization, School
from app.services.member_import.errors import ResolutionError, StoreError
from app.services.member_import.records import MemberImportRecord, ResolvedMember

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_LOOKUP_BATCH_SIZE = 100


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most `size` items."""
    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def _unique(values: Iterable[T]) -> list[T]:
    """De-duplicate while keeping first-seen order."""
    return list(dict.fromkeys(values))


@dataclass
class ResolvedEntities:
    """Lookup maps produced by the resolver."""

    organization_ids: dict[str, UUID] = field(default_factory=dict)
    school_ids: dict[tuple[UUID, str], UUID] = field(default_factory=dict)
    organizations_created: int = 0
    schools_created: int = 0

    def resolve_record(self, record: MemberImportRecord) -> ResolvedMember:
        """
        Attach organization and school ids to a record.

        Raises:
            ResolutionError: If either id is missing from the maps
        """
        organization_id = self.organization_ids.get(record.organization_name)
        school_id = None
        if organization_id is not None:
            school_id = self.school_ids.get((organization_id, record.school_name))

        if organization_id is None or school_id is None:
            raise ResolutionError(
                f"Failed to resolve organization or school for member: {record.member_name}"
            )

        return ResolvedMember(
            record=record,
            organization_id=organization_id,
            school_id=school_id,
        )


class EntityResolver:
    """Resolves and creates organizations and schools for an import batch."""

    def __init__(self, db: Session, lookup_batch_size: int = DEFAULT_LOOKUP_BATCH_SIZE):
        """Initialize the resolver.

        Args:
            db: Database session, owned by the caller
            lookup_batch_size: Maximum names per IN (...) lookup
        """
        self.db = db
        self.lookup_batch_size = lookup_batch_size

    def resolve(self, records: Sequence[MemberImportRecord]) -> ResolvedEntities:
        """
        Make sure every organization and school named in `records` exists.

        Returns:
            ResolvedEntities with name -> id maps and created counts

        Raises:
            StoreError: If a lookup or insert fails
        """
        entities = ResolvedEntities()

        org_names = _unique(r.organization_name for r in records)
        school_pairs = _unique((r.organization_name, r.school_name) for r in records)

        # Organizations
        try:
            entities.organization_ids = self._fetch_organizations(org_names)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to fetch organizations: {e}") from e

        missing_orgs = [name for name in org_names if name not in entities.organization_ids]
        if missing_orgs:
            try:
                created, created_count = self._create_organizations(missing_orgs)
            except SQLAlchemyError as e:
                raise StoreError(f"Failed to create organizations: {e}") from e
            entities.organization_ids.update(created)
            entities.organizations_created = created_count

        # Schools, keyed by (organization_id, school name)
        names_by_org: dict[UUID, list[str]] = {}
        for org_name, school_name in school_pairs:
            org_id = entities.organization_ids.get(org_name)
            if org_id is None:
                raise ResolutionError(f"Failed to resolve organization: {org_name}")
            names_by_org.setdefault(org_id, []).append(school_name)

        try:
            entities.school_ids = self._fetch_schools(names_by_org)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to fetch schools: {e}") from e

        missing_schools = [
            (org_id, name)
            for org_id, names in names_by_org.items()
            for name in names
            if (org_id, name) not in entities.school_ids
        ]
        if missing_schools:
            try:
                created, created_count = self._create_schools(missing_schools)
            except SQLAlchemyError as e:
                raise StoreError(f"Failed to create schools: {e}") from e
            entities.school_ids.update(created)
            entities.schools_created = created_count

        logger.info(
            f"Resolved {len(org_names)} organizations ({entities.organizations_created} created), "
            f"{len(school_pairs)} schools ({entities.schools_created} created)"
        )
        return entities

    # -------------------------------------------------------------------------
    # Organizations
    # -------------------------------------------------------------------------

    def _fetch_organizations(self, names: Sequence[str]) -> dict[str, UUID]:
        """Bulk-read existing organizations by name."""
        found: dict[str, UUID] = {}
        for batch in chunked(names, self.lookup_batch_size):
            rows = (
                self.db.query(Organization.id, Organization.name)
                .filter(Organization.name.in_(batch))
                .all()
            )
            for org_id, name in rows:
                found[name] = org_id
        logger.debug(f"Found {len(found)} of {len(names)} organizations")
        return found

    def _create_organizations(self, names: Sequence[str]) -> tuple[dict[str, UUID], int]:
        """Create organizations in one write, falling back to one-by-one on conflict."""
        try:
            with self.db.begin_nested():
                orgs = [Organization(name=name) for name in names]
                self.db.add_all(orgs)
                self.db.flush()
        except IntegrityError:
            logger.warning(
                f"Organization insert conflicted with existing rows, creating {len(names)} individually"
            )
            return self._create_organizations_individually(names)

        return {org.name: org.id for org in orgs}, len(orgs)

    def _create_organizations_individually(self, names: Sequence[str]) -> tuple[dict[str, UUID], int]:
        created: dict[str, UUID] = {}
        created_count = 0
        for name in names:
            try:
                with self.db.begin_nested():
                    org = Organization(name=name)
                    self.db.add(org)
                    self.db.flush()
                created[name] = org.id
                created_count += 1
            except IntegrityError:
                # Already exists: re-fetch
                existing_id = (
                    self.db.query(Organization.id)
                    .filter(Organization.name == name)
                    .scalar()
                )
                if existing_id is None:
                    raise ResolutionError(f"Failed to resolve organization: {name}")
                created[name] = existing_id
        return created, created_count

    # -------------------------------------------------------------------------
    # Schools
    # -------------------------------------------------------------------------

    def _fetch_schools(self, names_by_org: dict[UUID, list[str]]) -> dict[tuple[UUID, str], UUID]:
        """Bulk-read existing schools, per organization and per name batch."""
        found: dict[tuple[UUID, str], UUID] = {}
        for org_id, names in names_by_org.items():
            for batch in chunked(names, self.lookup_batch_size):
                rows = (
                    self.db.query(School.id, School.name)
                    .filter(School.organization_id == org_id, School.name.in_(batch))
                    .all()
                )
                for school_id, name in rows:
                    found[(org_id, name)] = school_id
        return found

    def _create_schools(
        self, keys: Sequence[tuple[UUID, str]]
    ) -> tuple[dict[tuple[UUID, str], UUID], int]:
        """Create schools in one write, falling back to one-by-one on conflict."""
        try:
            with self.db.begin_nested():
                schools = [School(organization_id=org_id, name=name) for org_id, name in keys]
                self.db.add_all(schools)
                self.db.flush()
        except IntegrityError:
            logger.warning(
                f"School insert conflicted with existing rows, creating {len(keys)} individually"
            )
            return self._create_schools_individually(keys)

        return {(s.organization_id, s.name): s.id for s in schools}, len(schools)

    def _create_schools_individually(
        self, keys: Sequence[tuple[UUID, str]]
    ) -> tuple[dict[tuple[UUID, str], UUID], int]:
        created: dict[tuple[UUID, str], UUID] = {}
        created_count = 0
        for org_id, name in keys:
            try:
                with self.db.begin_nested():
                    school = School(organization_id=org_id, name=name)
                    self.db.add(school)
                    self.db.flush()
                created[(org_id, name)] = school.id
                created_count += 1
            except IntegrityError:
                existing_id = (
                    self.db.query(School.id)
                    .filter(School.organization_id == org_id, School.name == name)
                    .scalar()
                )
                if existing_id is None:
                    raise ResolutionError(f"Failed to resolve school: {name}")
                created[(org_id, name)] = existing_id
        return created, created_count
