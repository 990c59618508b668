"""Tests for duplicate reconciliation."""

import pytest

from app.services.member_import import (
    DuplicatePolicy,
    DuplicateReconciler,
    MemberImportRecord,
    PolicyViolation,
    ResolvedMember,
)


def resolved(school, name="John Doe", url="https://x/new"):
    record = MemberImportRecord(
        organization_name="Sigma Kappa Delta",
        school_name=school.name,
        member_name=name,
        submission_url=url,
    )
    return ResolvedMember(record=record, organization_id=school.organization_id, school_id=school.id)


class TestDuplicateReconciler:
    """Tests for DuplicateReconciler."""

    def test_new_rows_are_inserted(self, db_session, school):
        result = DuplicateReconciler(db_session).reconcile(
            [resolved(school, "Jane Roe")], DuplicatePolicy.skip
        )

        assert len(result.to_insert) == 1
        assert result.to_update == []
        assert result.duplicates_skipped == 0

    def test_skip_counts_existing(self, db_session, member, school):
        result = DuplicateReconciler(db_session).reconcile([resolved(school)], DuplicatePolicy.skip)

        assert result.to_insert == []
        assert result.duplicates_skipped == 1

    def test_update_targets_existing_member(self, db_session, member, school):
        result = DuplicateReconciler(db_session).reconcile([resolved(school)], DuplicatePolicy.update)

        assert result.duplicates_updated == 1
        assert result.to_update[0].member.id == member.id
        assert result.to_update[0].submission_url == "https://x/new"

    def test_error_policy_raises_on_existing(self, db_session, member, school):
        with pytest.raises(PolicyViolation) as exc_info:
            DuplicateReconciler(db_session).reconcile([resolved(school)], DuplicatePolicy.error)

        assert exc_info.value.message == (
            "Duplicate member found: John Doe in Sigma Kappa Delta - University of Alabama"
        )
        assert exc_info.value.member_name == "John Doe"

    def test_name_match_is_case_sensitive(self, db_session, member, school):
        result = DuplicateReconciler(db_session).reconcile(
            [resolved(school, "john doe")], DuplicatePolicy.error
        )

        assert len(result.to_insert) == 1

    def test_repeat_in_batch_is_skipped(self, db_session, school):
        rows = [resolved(school, url="https://x/1"), resolved(school, url="https://x/2")]

        result = DuplicateReconciler(db_session).reconcile(rows, DuplicatePolicy.skip)

        assert [row.submission_url for row in result.to_insert] == ["https://x/1"]
        assert result.duplicates_skipped == 1

    def test_repeat_in_batch_last_wins_under_update(self, db_session, school):
        rows = [resolved(school, url="https://x/1"), resolved(school, url="https://x/2")]

        result = DuplicateReconciler(db_session).reconcile(rows, DuplicatePolicy.update)

        assert [row.submission_url for row in result.to_insert] == ["https://x/2"]
        assert result.duplicates_updated == 1

    def test_repeat_in_batch_raises_under_error(self, db_session, school):
        rows = [resolved(school), resolved(school)]

        with pytest.raises(PolicyViolation) as exc_info:
            DuplicateReconciler(db_session).reconcile(rows, DuplicatePolicy.error)

        assert exc_info.value.message.startswith("Duplicate member in import batch: John Doe")
