"""
API tests for the CSV import endpoints.

Run: pytest tests/test_csv_import_api.py -v
"""

import pytest
from unittest.mock import patch

from config import settings


PREVIEW_CSV = "Name,Phone\nAda,08011112222\n,09022223333"
MAPPING = {"Name": "customer_name", "Phone": "customer_phone"}


@pytest.fixture
def headers(sme_id):
    return {"x-sme-id": sme_id}


@pytest.fixture
def body(order_schema):
    return {"rawText": PREVIEW_CSV, "schemaId": order_schema["id"], "mapping": MAPPING}


class TestCsvMapperPreview:
    def test_preview_returns_mapped_rows(self, test_client, headers, body, seeded_supabase):
        response = test_client.post("/api/csv-mapper", json={**body, "mode": "preview"}, headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["rowCount"] == 2
        assert data["mappedRows"] == [
            {"customer_name": "Ada", "customer_phone": "08011112222"},
            {"customer_name": None, "customer_phone": "09022223333"},
        ]
        assert data["sampleRows"] == data["mappedRows"]
        assert "orders" not in seeded_supabase.inserted

    def test_legacy_field_names_are_accepted(self, test_client, headers, order_schema):
        response = test_client.post(
            "/api/csv-mapper",
            json={
                "csvData": PREVIEW_CSV,
                "schemaId": order_schema["id"],
                "columnMapping": MAPPING,
                "importMode": "preview",
            },
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["rowCount"] == 2


class TestCsvMapperImport:
    def test_import_creates_orders(self, test_client, headers, body, seeded_supabase):
        response = test_client.post("/api/csv-mapper", json={**body, "mode": "import"}, headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["successCount"] == 2
        assert data["message"] == "Successfully created 2 orders"
        assert len(seeded_supabase.get_table_data("orders")) == 2

    def test_insert_failure_returns_500_with_zero_count(self, test_client, headers, body, seeded_supabase):
        seeded_supabase.fail("orders", "insert", "connection reset")

        response = test_client.post("/api/csv-mapper", json={**body, "mode": "import"}, headers=headers)

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["successCount"] == 0
        assert data["error"]["code"] == "BULK_IMPORT_FAILED"


class TestCsvMapperErrors:
    def test_missing_identity_is_401(self, test_client, body, seeded_supabase):
        with patch("services.csv_import_service.parse_csv") as parse_spy:
            response = test_client.post("/api/csv-mapper", json=body)

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHENTICATED"
        parse_spy.assert_not_called()
        assert seeded_supabase.executed == []

    def test_identity_checked_before_missing_fields(self, test_client):
        response = test_client.post("/api/csv-mapper", json={})

        assert response.status_code == 401

    def test_missing_fields_is_400(self, test_client, headers, order_schema):
        response = test_client.post(
            "/api/csv-mapper",
            json={"schemaId": order_schema["id"], "mapping": MAPPING},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"]["missing"] == ["rawText"]

    def test_invalid_mode_is_400_and_touches_nothing(self, test_client, headers, body, seeded_supabase):
        response = test_client.post("/api/csv-mapper", json={**body, "mode": "delete"}, headers=headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_IMPORT_MODE"
        assert seeded_supabase.executed == []

    def test_foreign_schema_is_403(self, test_client, body, seeded_supabase):
        response = test_client.post(
            "/api/csv-mapper",
            json={**body, "mode": "import"},
            headers={"x-sme-id": "sme-other"},
        )

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Schema not found or unauthorized"
        assert "orders" not in seeded_supabase.inserted

    def test_malformed_csv_is_400(self, test_client, headers, body):
        response = test_client.post(
            "/api/csv-mapper",
            json={**body, "rawText": "Name,Phone\nAda,0801,extra"},
            headers=headers,
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "CSV_PARSE_ERROR"
        assert error["details"]["errors"]

    def test_wrongly_typed_body_is_400(self, test_client, headers, body):
        response = test_client.post("/api/csv-mapper", json={**body, "mapping": "Name"}, headers=headers)

        assert response.status_code == 400


class TestAutoDetect:
    def test_suggests_mapping(self, test_client, headers, order_schema):
        response = test_client.post(
            "/api/csv-mapper/auto-detect",
            json={"rawText": "Name,PHONE\nAda,0801", "schemaId": order_schema["id"]},
            headers=headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["csvHeaders"] == ["Name", "PHONE"]
        assert data["suggestions"] == {"Name": "customer_name", "PHONE": "customer_phone"}
        assert len(data["formFields"]) == 4

    def test_requires_identity(self, test_client, order_schema):
        response = test_client.post(
            "/api/csv-mapper/auto-detect",
            json={"rawText": "Name\nAda", "schemaId": order_schema["id"]},
        )

        assert response.status_code == 401

    def test_field_lookup_failure_is_500(self, test_client, headers, order_schema, seeded_supabase):
        seeded_supabase.fail("form_fields", "select")

        response = test_client.post(
            "/api/csv-mapper/auto-detect",
            json={"rawText": "Name\nAda", "schemaId": order_schema["id"]},
            headers=headers,
        )

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "SCHEMA_LOOKUP_FAILED"


class TestIdentityOrdering:
    def test_missing_identity_wins_over_malformed_body(self, test_client, order_schema):
        """Identity is checked before the body is validated."""
        response = test_client.post(
            "/api/csv-mapper",
            json={"rawText": PREVIEW_CSV, "schemaId": order_schema["id"], "mapping": {"Name": 1}},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHENTICATED"

    def test_malformed_body_with_identity_is_400(self, test_client, headers, order_schema):
        response = test_client.post(
            "/api/csv-mapper",
            json={"rawText": PREVIEW_CSV, "schemaId": order_schema["id"], "mapping": {"Name": 1}},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestErrorDetails:
    def test_store_error_hidden_in_production(self, test_client, headers, body, seeded_supabase):
        seeded_supabase.fail("orders", "insert", "secret db detail")

        with patch.object(settings, "environment", "production"):
            response = test_client.post("/api/csv-mapper", json={**body, "mode": "import"}, headers=headers)

        assert response.status_code == 500
        data = response.json()
        assert data["successCount"] == 0
        assert data["error"]["details"] is None
        assert "secret db detail" not in response.text

    def test_store_error_shown_in_debug(self, test_client, headers, body, seeded_supabase):
        seeded_supabase.fail("orders", "insert", "secret db detail")

        with patch.object(settings, "debug", True):
            response = test_client.post("/api/csv-mapper", json={**body, "mode": "import"}, headers=headers)

        assert response.json()["error"]["details"]["reason"] == "secret db detail"

    def test_client_errors_keep_details_in_production(self, test_client, headers, order_schema):
        with patch.object(settings, "environment", "production"):
            response = test_client.post(
                "/api/csv-mapper",
                json={"schemaId": order_schema["id"], "mapping": MAPPING},
                headers=headers,
            )

        assert response.status_code == 400
        assert response.json()["error"]["details"]["missing"] == ["rawText"]
