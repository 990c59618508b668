"""Tests for the member import CSV parser."""

import pytest

from app.services.member_import import (
    MemberImportRecord,
    ValidationError,
    normalize_header,
    parse_csv,
    parse_member_csv,
)


class TestNormalizeHeader:
    """Tests for header normalization."""

    def test_lowercases_and_strips(self):
        assert normalize_header("  Organization ") == "organization"

    def test_collapses_whitespace_to_underscore(self):
        assert normalize_header("Member   Name") == "member_name"
        assert normalize_header("Submission\tURL") == "submission_url"


class TestParseCsv:
    """Tests for the generic CSV splitter."""

    def test_mismatched_row_is_dropped(self):
        """A row with more values than headers is skipped without error."""
        headers, records = parse_csv("a,b\n1,2,3\n4,5\n")

        assert headers == ["a", "b"]
        assert records == [{"a": "4", "b": "5"}]

    def test_quoted_comma_stays_in_one_field(self):
        headers, records = parse_csv('a,b\n"Doe, John",x\n')

        assert records == [{"a": "Doe, John", "b": "x"}]

    def test_values_are_trimmed(self):
        _, records = parse_csv("a,b\n  one ,  two\n")

        assert records == [{"a": "one", "b": "two"}]

    def test_blank_lines_are_ignored(self):
        headers, records = parse_csv("\n\na,b\n\n1,2\n\n")

        assert headers == ["a", "b"]
        assert len(records) == 1

    def test_byte_order_mark_is_removed(self):
        headers, _ = parse_csv("\ufeffa,b\n1,2\n")

        assert headers == ["a", "b"]

    def test_bytes_fall_back_to_latin1(self):
        _, records = parse_csv("a,b\nJos\xe9,1\n".encode("latin-1"))

        assert records[0]["a"] == "José"

    def test_empty_input(self):
        assert parse_csv("") == ([], [])


class TestParseMemberCsv:
    """Tests for member CSV parsing."""

    def test_parses_required_columns(self):
        content = (
            "Organization,School,Member Name,Submission URL\n"
            "Sigma Kappa Delta,University of Alabama,John Doe,https://x/john\n"
        )

        records = parse_member_csv(content)

        assert records == [
            MemberImportRecord(
                organization_name="Sigma Kappa Delta",
                school_name="University of Alabama",
                member_name="John Doe",
                submission_url="https://x/john",
            )
        ]

    def test_extra_columns_are_ignored(self):
        content = (
            "organization,school,member_name,submission_url,notes\n"
            "Org,School,Jane,https://x/jane,hello\n"
        )

        records = parse_member_csv(content)

        assert records[0].member_name == "Jane"

    def test_header_only_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_member_csv("organization,school,member_name,submission_url\n")

        assert exc_info.value.message == "CSV must have at least a header and one data row"
        assert exc_info.value.status_code == 400

    def test_missing_columns_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_member_csv("organization,member_name\nOrg,Jane\n")

        assert exc_info.value.message == "Missing required columns: school, submission_url"
