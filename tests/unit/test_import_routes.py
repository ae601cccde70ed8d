"""
API tests for the import and switch export routes.

Run: pytest tests/unit/test_import_routes.py -v
"""

import pytest

from tests.factories import SwitchFactory

HEADERS = {"X-User-Id": "user-1"}

SAMPLE_CSV = (
    "Switch Name,Manufacturer,Actuation Force (g)\n"
    "Cherry MX Red,Cherry,45\n"
    "Gateron Yellow,Gateron,50\n"
    "Mystery Linear,Gatreon,40\n"
)


@pytest.fixture
def client(test_client_with_mock_db, mock_supabase):
    mock_supabase.set_table_data("switches", [
        SwitchFactory.create(id="123", name="Gateron Yellow", user_id="user-1")
    ])
    return test_client_with_mock_db


def upload(client, content: str = SAMPLE_CSV, filename: str = "switches.csv"):
    return client.post(
        "/api/imports",
        files={"file": (filename, content.encode("utf-8"), "text/csv")},
        headers=HEADERS
    )


class TestTemplate:

    def test_download_template(self, client):
        response = client.get("/api/imports/template")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        assert response.text.startswith('"Switch Name"')


class TestUpload:

    def test_upload_starts_mapping(self, client):
        # Act
        response = upload(client)

        # Assert
        assert response.status_code == 201
        data = response.json()
        assert data["stage"] == "mapping"
        assert data["column_mapping"] == {"0": "name", "1": "manufacturer", "2": "actuation_force"}
        assert data["has_name_column"] is True

    def test_requires_user_header(self, client):
        response = client.post(
            "/api/imports",
            files={"file": ("switches.csv", b"Name\nX", "text/csv")}
        )

        assert response.status_code == 422

    def test_rejects_non_csv(self, client):
        response = upload(client, filename="switches.xlsx")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_FILE_TYPE"

    def test_rejects_empty_file(self, client):
        response = upload(client, content="\n\n")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "CSV_PARSE_ERROR"


class TestImportFlow:

    def test_full_flow(self, client, mock_supabase):
        # Upload and confirm mapping
        session_id = upload(client).json()["session_id"]
        response = client.post(f"/api/imports/{session_id}/confirm-mapping", headers=HEADERS)
        assert response.status_code == 200
        preview = response.json()
        assert preview["stage"] == "ready"
        assert preview["duplicate_count"] == 1
        assert len(preview["blocking_rows"]) == 1

        # Blocked by the unverified manufacturer
        response = client.post(f"/api/imports/{session_id}/execute", headers=HEADERS)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "IMPORT_VALIDATION_BLOCKED"
        assert response.json()["error"]["details"]["blocking_count"] == 1

        # Correct the manufacturer
        mystery_id = preview["blocking_rows"][0]
        response = client.patch(
            f"/api/imports/{session_id}/rows/{mystery_id}",
            json={"field": "manufacturer", "value": "Gateron"},
            headers=HEADERS
        )
        assert response.status_code == 200
        assert response.json()["manufacturer_check"]["manufacturer_valid"] is True

        # Import
        response = client.post(f"/api/imports/{session_id}/execute", headers=HEADERS)
        assert response.status_code == 200
        data = response.json()
        assert data["stage"] == "complete"
        assert data["progress"] == 100
        assert data["result"]["success_count"] == 2
        assert data["result"]["skipped_count"] == 1
        assert data["result"]["error_messages"] == []

    def test_accept_manufacturer(self, client):
        session_id = upload(client).json()["session_id"]
        client.post(f"/api/imports/{session_id}/confirm-mapping", headers=HEADERS)

        response = client.post(
            f"/api/imports/{session_id}/manufacturers/accept",
            json={"name": "Gatreon"},
            headers=HEADERS
        )

        assert response.status_code == 200
        assert response.json()["accepted_manufacturers"] == ["Gatreon"]
        assert response.json()["blocking_rows"] == []

    def test_overwrite_duplicate(self, client):
        session_id = upload(client).json()["session_id"]
        preview = client.post(f"/api/imports/{session_id}/confirm-mapping", headers=HEADERS).json()
        duplicate = next(r for r in preview["rows"] if r["duplicate"]["is_duplicate"])

        response = client.put(
            f"/api/imports/{session_id}/rows/{duplicate['row_id']}/overwrite",
            json={"overwrite": True},
            headers=HEADERS
        )

        assert response.status_code == 200
        assert response.json()["duplicate"] == {"is_duplicate": True, "existing_id": "123", "overwrite": True}

    def test_remove_row(self, client):
        session_id = upload(client).json()["session_id"]
        preview = client.post(f"/api/imports/{session_id}/confirm-mapping", headers=HEADERS).json()

        response = client.delete(f"/api/imports/{session_id}/rows/{preview['rows'][0]['row_id']}", headers=HEADERS)

        assert response.status_code == 200
        assert len(response.json()["rows"]) == 2

    def test_update_mapping(self, client):
        session_id = upload(client).json()["session_id"]

        response = client.put(
            f"/api/imports/{session_id}/mapping",
            json={"column": 1, "field": None},
            headers=HEADERS
        )

        assert response.status_code == 200
        assert response.json()["column_mapping"]["1"] is None

    def test_update_mapping_unknown_field(self, client):
        session_id = upload(client).json()["session_id"]

        response = client.put(
            f"/api/imports/{session_id}/mapping",
            json={"column": 1, "field": "brand"},
            headers=HEADERS
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "UNKNOWN_SWITCH_FIELD"

    def test_back_to_mapping_and_reset(self, client):
        session_id = upload(client).json()["session_id"]
        client.post(f"/api/imports/{session_id}/confirm-mapping", headers=HEADERS)

        response = client.post(f"/api/imports/{session_id}/back-to-mapping", headers=HEADERS)
        assert response.json()["stage"] == "mapping"

        response = client.post(f"/api/imports/{session_id}/reset", headers=HEADERS)
        assert response.json()["stage"] == "upload"

        response = client.post(
            f"/api/imports/{session_id}/file",
            files={"file": ("more.csv", b"Name\nBoba U4T\n", "text/csv")},
            headers=HEADERS
        )
        assert response.json()["stage"] == "mapping"

    def test_invalid_transition_is_conflict(self, client):
        session_id = upload(client).json()["session_id"]

        response = client.post(f"/api/imports/{session_id}/execute", headers=HEADERS)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_IMPORT_TRANSITION"

    def test_revalidate(self, client, mock_supabase):
        mock_supabase.set_table_error("manufacturers", Exception("connection refused"))
        session_id = upload(client).json()["session_id"]
        preview = client.post(f"/api/imports/{session_id}/confirm-mapping", headers=HEADERS).json()
        assert preview["validation_unavailable"] is True

        mock_supabase.set_table_error("manufacturers", None)
        response = client.post(f"/api/imports/{session_id}/manufacturers/revalidate", headers=HEADERS)

        assert response.json()["validation_unavailable"] is False
        assert len(response.json()["blocking_rows"]) == 1


class TestSessionAccess:

    def test_unknown_session(self, client):
        response = client.get("/api/imports/missing", headers=HEADERS)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "IMPORT_SESSION_NOT_FOUND"

    def test_other_user_cannot_read(self, client):
        session_id = upload(client).json()["session_id"]

        response = client.get(f"/api/imports/{session_id}", headers={"X-User-Id": "user-2"})

        assert response.status_code == 404

    def test_discard(self, client):
        session_id = upload(client).json()["session_id"]

        assert client.delete(f"/api/imports/{session_id}", headers=HEADERS).status_code == 204
        assert client.get(f"/api/imports/{session_id}", headers=HEADERS).status_code == 404


class TestSwitchExport:

    def test_export_collection(self, client):
        response = client.get("/api/switches/export", headers=HEADERS)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.splitlines()
        assert len(lines) == 2
        assert lines[1].startswith('"Gateron Yellow"')


class TestHealth:

    def test_health_reports_sessions(self, client):
        upload(client)

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["import_sessions"]["active"] == 1
        assert data["import_sessions"]["by_stage"] == {"mapping": 1}
