"""Tests for organization and school resolution."""

import pytest

from app.models import Organization, School
from app.services.member_import import (
    EntityResolver,
    MemberImportRecord,
    ResolutionError,
    ResolvedEntities,
)
from app.services.member_import.entity_resolver import chunked


def make_record(org="Sigma Kappa Delta", school="University of Alabama", name="John Doe"):
    return MemberImportRecord(
        organization_name=org,
        school_name=school,
        member_name=name,
        submission_url=f"https://x/{name.lower().replace(' ', '-')}",
    )


class TestChunked:
    """Tests for the batching helper."""

    def test_splits_into_slices(self):
        assert list(chunked([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]

    def test_rejects_zero_size(self):
        with pytest.raises(ValueError):
            list(chunked([1], 0))


class TestEntityResolver:
    """Tests for EntityResolver."""

    def test_creates_missing_entities(self, db_session):
        entities = EntityResolver(db_session).resolve([make_record()])

        assert entities.organizations_created == 1
        assert entities.schools_created == 1
        org_id = entities.organization_ids["Sigma Kappa Delta"]
        school = db_session.query(School).filter_by(id=entities.school_ids[(org_id, "University of Alabama")]).one()
        assert school.organization_id == org_id

    def test_shared_organization_created_once(self, db_session):
        records = [
            make_record(school="University of Alabama", name="John Doe"),
            make_record(school="Auburn University", name="Jane Roe"),
        ]

        entities = EntityResolver(db_session).resolve(records)

        assert entities.organizations_created == 1
        assert entities.schools_created == 2
        assert db_session.query(Organization).filter_by(name="Sigma Kappa Delta").count() == 1

    def test_reuses_existing_entities(self, db_session, school):
        entities = EntityResolver(db_session).resolve([make_record()])

        assert entities.organizations_created == 0
        assert entities.schools_created == 0
        assert entities.school_ids[(school.organization_id, school.name)] == school.id

    def test_same_school_name_in_two_organizations(self, db_session, school):
        """School names are scoped to their organization."""
        entities = EntityResolver(db_session).resolve([make_record(org="Phi Alpha")])

        assert entities.organizations_created == 1
        assert entities.schools_created == 1
        new_org_id = entities.organization_ids["Phi Alpha"]
        assert entities.school_ids[(new_org_id, "University of Alabama")] != school.id

    def test_small_lookup_batches(self, db_session):
        records = [make_record(org=f"Org {i}", school=f"School {i}", name=f"Member {i}") for i in range(7)]

        entities = EntityResolver(db_session, lookup_batch_size=3).resolve(records)

        assert entities.organizations_created == 7
        assert entities.schools_created == 7

    def test_organization_conflict_falls_back_to_existing_row(self, db_session, organization, monkeypatch):
        """A concurrently created organization is re-fetched, not duplicated."""
        monkeypatch.setattr(EntityResolver, "_fetch_organizations", lambda self, names: {})

        entities = EntityResolver(db_session).resolve(
            [make_record(), make_record(org="Phi Alpha", name="Jane Roe")]
        )

        assert entities.organization_ids["Sigma Kappa Delta"] == organization.id
        assert entities.organizations_created == 1
        assert db_session.query(Organization).count() == 2

    def test_school_conflict_falls_back_to_existing_row(self, db_session, school, monkeypatch):
        monkeypatch.setattr(EntityResolver, "_fetch_schools", lambda self, names_by_org: {})

        entities = EntityResolver(db_session).resolve([make_record()])

        assert entities.school_ids[(school.organization_id, school.name)] == school.id
        assert entities.schools_created == 0
        assert db_session.query(School).count() == 1


class TestResolvedEntities:
    """Tests for attaching ids to records."""

    def test_unknown_school_raises_resolution_error(self, organization):
        entities = ResolvedEntities(organization_ids={organization.name: organization.id})

        with pytest.raises(ResolutionError) as exc_info:
            entities.resolve_record(make_record())

        assert exc_info.value.message == "Failed to resolve organization or school for member: John Doe"
        assert exc_info.value.status_code == 500
