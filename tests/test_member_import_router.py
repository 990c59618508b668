"""
Tests for the bulk member import router.

Tests JSON, CSV and file-upload imports plus upload history.
"""

import json
from uuid import UUID

import pytest
from fastapi import status

from app.config import Settings, get_settings
from sqlalchemy.exc import OperationalError

from app.models import ImportHistory, ImportStatus, Member, Organization
from app.services.member_import.entity_resolver import EntityResolver, ResolvedEntities


CSV_CONTENT = (
    "organization,school,member_name,submission_url\n"
    "Sigma Kappa Delta,University of Alabama,John Doe,https://x/john\n"
    "Sigma Kappa Delta,University of Alabama,Jane Roe,https://x/jane\n"
)

JOHN = {
    "organization_name": "Sigma Kappa Delta",
    "school_name": "University of Alabama",
    "member_name": "John Doe",
    "submission_url": "https://x/john",
}


@pytest.fixture
def small_payload_limit():
    """Lower the payload ceiling to 200 bytes."""
    from app.main import app

    app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, max_payload_bytes=200)
    yield
    app.dependency_overrides.pop(get_settings, None)


class TestBulkImport:
    """Tests for POST /api/members/bulk."""

    def test_imports_members(self, test_client, db_session):
        response = test_client.post("/api/members/bulk", json={"members": [JOHN]})

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["message"] == "1 members processed successfully"
        assert data["stats"] == {
            "organizationsCreated": 1,
            "schoolsCreated": 1,
            "membersCreated": 1,
            "duplicatesSkipped": 0,
            "duplicatesUpdated": 0,
        }
        assert data["data"][0]["name"] == "John Doe"
        assert data["data"][0]["school"]["organization"]["name"] == "Sigma Kappa Delta"
        assert data["data"][0]["organization"]["name"] == "Sigma Kappa Delta"
        assert db_session.query(Member).count() == 1

    def test_accepts_csv_data(self, test_client):
        response = test_client.post(
            "/api/members/bulk",
            json={"csvData": CSV_CONTENT, "duplicateHandling": "skip"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["stats"]["membersCreated"] == 2

    def test_members_take_precedence_over_csv(self, test_client):
        response = test_client.post(
            "/api/members/bulk",
            json={"members": [JOHN], "csvData": CSV_CONTENT},
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["stats"]["membersCreated"] == 1

    def test_missing_members_returns_400(self, test_client):
        response = test_client.post("/api/members/bulk", json={})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Members array is required"}

    def test_incomplete_member_returns_400(self, test_client):
        response = test_client.post(
            "/api/members/bulk",
            json={"members": [{**JOHN, "submission_url": ""}]},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Each member must have" in response.json()["error"]

    def test_invalid_policy_returns_400(self, test_client):
        response = test_client.post(
            "/api/members/bulk",
            json={"members": [JOHN], "duplicateHandling": "merge"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Invalid duplicateHandling option. Must be skip, update, or error"

    def test_members_not_a_list_returns_400(self, test_client):
        response = test_client.post("/api/members/bulk", json={"members": "oops"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Members array is required"}

    def test_non_string_field_returns_400(self, test_client, db_session):
        response = test_client.post(
            "/api/members/bulk",
            json={"members": [{**JOHN, "member_name": 123}]},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "error": "Each member must have organization_name, school_name, member_name, and submission_url"
        }
        assert db_session.query(Organization).count() == 0

    def test_non_string_policy_returns_400(self, test_client):
        response = test_client.post(
            "/api/members/bulk",
            json={"members": [JOHN], "duplicateHandling": 5},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Invalid duplicateHandling option. Must be skip, update, or error"}

    def test_body_not_an_object_returns_400(self, test_client):
        response = test_client.post("/api/members/bulk", json=[JOHN])

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Request body must be a JSON object"}

    def test_invalid_json_returns_400(self, test_client):
        response = test_client.post(
            "/api/members/bulk",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"].startswith("Invalid JSON body")

    def test_duplicate_under_error_policy_returns_400(self, test_client, member, db_session):
        response = test_client.post(
            "/api/members/bulk",
            json={"members": [JOHN], "duplicateHandling": "error"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"].startswith("Duplicate member found: John Doe")
        assert db_session.query(Member).count() == 1

    def test_update_policy_returns_updated_member(self, test_client, member):
        response = test_client.post(
            "/api/members/bulk",
            json={"members": [{**JOHN, "submission_url": "https://x/new"}], "duplicateHandling": "update"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["stats"]["duplicatesUpdated"] == 1
        assert data["data"][0]["id"] == str(member.id)
        assert data["data"][0]["submission_url"] == "https://x/new"

    def test_oversized_body_returns_413(self, test_client, small_payload_limit, db_session):
        members = [{**JOHN, "member_name": f"Member {i}"} for i in range(10)]

        response = test_client.post("/api/members/bulk", json={"members": members})

        assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
        assert response.json()["error"].startswith("Request too large")
        assert db_session.query(Organization).count() == 0


class TestBulkCsvImport:
    """Tests for POST /api/members/bulk-csv."""

    def test_imports_csv(self, test_client):
        response = test_client.post("/api/members/bulk-csv", json={"csvData": CSV_CONTENT})

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["message"] == "2 members processed successfully"

    def test_missing_csv_returns_400(self, test_client):
        response = test_client.post("/api/members/bulk-csv", json={"csvData": "  "})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "CSV data is required"}

    def test_non_string_csv_returns_400(self, test_client):
        response = test_client.post("/api/members/bulk-csv", json={"csvData": ["a", "b"]})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "CSV data is required"}

    def test_oversized_body_rejected_before_parsing(self, test_client, small_payload_limit):
        response = test_client.post(
            "/api/members/bulk-csv",
            content=b"{" + b"x" * 500,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
        assert response.json()["error"].startswith("Request too large")

    def test_missing_columns_returns_400(self, test_client):
        response = test_client.post(
            "/api/members/bulk-csv",
            json={"csvData": "organization,school\nOrg,School\n"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Missing required columns: member_name, submission_url"


class TestBulkUpload:
    """Tests for POST /api/members/bulk-upload and its history."""

    def test_uploads_csv_file(self, test_client, db_session):
        response = test_client.post(
            "/api/members/bulk-upload",
            files={"file": ("members.csv", CSV_CONTENT.encode(), "text/csv")},
            data={"duplicateHandling": "skip", "chunkSize": "1"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["chunksTotal"] == 2
        assert data["chunksFailed"] == 0
        assert data["errors"] == []
        assert data["stats"]["membersCreated"] == 2

        history = db_session.query(ImportHistory).filter_by(id=UUID(data["importId"])).one()
        assert history.status == ImportStatus.success
        assert history.records_parsed == 2
        assert history.original_filename == "members.csv"

    def test_uploads_json_file(self, test_client):
        content = json.dumps({"members": [JOHN]}).encode()

        response = test_client.post(
            "/api/members/bulk-upload",
            files={"file": ("members.json", content, "application/json")},
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["stats"]["membersCreated"] == 1

    def test_partial_upload_reports_failed_chunk(self, test_client, db_session):
        content = CSV_CONTENT + "Sigma Kappa Delta,University of Alabama,Sam Poe,\n"

        response = test_client.post(
            "/api/members/bulk-upload",
            files={"file": ("members.csv", content.encode(), "text/csv")},
            data={"chunkSize": "2"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["chunksFailed"] == 1
        assert data["errors"][0]["chunk"] == 2
        assert data["errors"][0]["firstRow"] == 3
        assert data["errors"][0]["status"] == status.HTTP_400_BAD_REQUEST

        history = db_session.query(ImportHistory).one()
        assert history.status == ImportStatus.partial

    def test_all_chunks_failed_returns_error_status(self, test_client, member, db_session):
        content = CSV_CONTENT.encode()

        response = test_client.post(
            "/api/members/bulk-upload",
            files={"file": ("members.csv", content, "text/csv")},
            data={"duplicateHandling": "error"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"].startswith("Duplicate member found")
        assert db_session.query(ImportHistory).one().status == ImportStatus.failed

    def test_invalid_file_type_returns_400(self, test_client, db_session):
        response = test_client.post(
            "/api/members/bulk-upload",
            files={"file": ("members.txt", b"hello", "text/plain")},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Invalid file type. Please upload a CSV or JSON file."}
        history = db_session.query(ImportHistory).one()
        assert history.status == ImportStatus.failed
        assert history.error_message == "Invalid file type. Please upload a CSV or JSON file."

    def test_history_lists_uploads(self, test_client):
        test_client.post(
            "/api/members/bulk-upload",
            files={"file": ("members.csv", CSV_CONTENT.encode(), "text/csv")},
        )

        response = test_client.get("/api/members/bulk-upload/history")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert len(data) == 1
        assert data[0]["source"] == "csv"
        assert data[0]["status"] == "success"
        assert data[0]["members_created"] == 2
        assert data[0]["total_processed"] == 2


class TestImportStoreFailures:
    """Tests for database and resolution failures during a bulk import."""

    def test_lookup_failure_returns_500(self, test_client, db_session, monkeypatch):
        def lose_connection(self, names):
            raise OperationalError("SELECT organizations", {}, Exception("connection lost"))

        monkeypatch.setattr(EntityResolver, "_fetch_organizations", lose_connection)

        response = test_client.post("/api/members/bulk", json={"members": [JOHN]})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        error = response.json()["error"]
        assert "Failed to fetch organizations" in error
        assert "connection lost" in error
        assert db_session.query(Member).count() == 0

    def test_unresolved_school_returns_500(self, test_client, db_session, monkeypatch):
        monkeypatch.setattr(EntityResolver, "resolve", lambda self, records: ResolvedEntities())

        response = test_client.post("/api/members/bulk", json={"members": [JOHN]})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {
            "error": "Failed to resolve organization or school for member: John Doe"
        }
        assert db_session.query(Member).count() == 0
