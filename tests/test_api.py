"""
Tests for the FastAPI Endpoints

Runs against an in-memory SQLite database (see conftest.py).

Run with: pytest tests/test_api.py -v
"""

import pytest
from fastapi.testclient import TestClient

from api.main import app


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as test_client:
        yield test_client


class TestSystemEndpoints:
    """Test root and health endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["api_base"] == "/api/v1"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["database"] == "healthy"

    def test_ready_and_live(self, client):
        assert client.get("/ready").json() == {"ready": True}
        live = client.get("/live").json()
        assert live["alive"] is True
        assert live["version"] == client.get("/").json()["version"]

    def test_no_debug_config_endpoint(self, client):
        assert client.get("/debug/config").status_code == 404

    def test_error_envelope_documented(self, client):
        """Routes document ErrorResponse for their error codes."""
        schema = client.get("/openapi.json").json()
        assert "ErrorResponse" in schema["components"]["schemas"]

        responses = schema["paths"]["/api/v1/meter/table"]["get"]["responses"]
        for code in ("400", "404", "500"):
            assert responses[code]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")

    def test_error_body_matches_envelope(self, client):
        body = client.get("/api/v1/meter/table", params={"digits": "04a0"}).json()
        assert set(body) == {"error", "message", "detail", "status_code", "timestamp"}
        assert body["status_code"] == 400
        assert body["detail"] is None


class TestMeterEndpoints:
    """Test the stateless calculation endpoints."""

    def test_constants(self, client):
        data = client.get("/api/v1/meter/ct-table").json()
        assert data["pt_ratio"] == 120
        assert len(data["ct_values"]) == 18

    def test_table_from_digits(self, client):
        response = client.get("/api/v1/meter/table", params={"digits": "0450"})
        assert response.status_code == 200
        data = response.json()
        assert data["reading"] == "0.450"
        assert data["rows"][1]["ct"] == 10
        assert data["rows"][1]["peak_power"] == "108.00"

    def test_table_from_reading(self, client):
        data = client.get("/api/v1/meter/table", params={"reading": 1.234}).json()
        assert data["reading"] == "1.234"
        assert data["rows"][6]["peak_power"] == "1,480.80"

    def test_table_default_is_zero(self, client):
        data = client.get("/api/v1/meter/table").json()
        assert data["reading"] == "0.000"
        assert all(row["peak_power"] == "0" for row in data["rows"])

    def test_table_bad_digits(self, client):
        response = client.get("/api/v1/meter/table", params={"digits": "04a0"})
        assert response.status_code == 400
        assert response.json()["error"] is True

    @pytest.mark.parametrize("reading", [10, 12, 9.9996, 9.9999])
    def test_table_reading_too_large(self, client, reading):
        """Readings that round to 10.000 or more do not fit D.DDD."""
        response = client.get("/api/v1/meter/table", params={"reading": reading})
        assert response.status_code == 400
        assert response.json()["error"] is True

    def test_table_reading_rounds_down_below_ten(self, client):
        data = client.get("/api/v1/meter/table", params={"reading": 9.9994}).json()
        assert data["reading"] == "9.999"

    def test_aiss_tiers(self, client):
        tiers = client.get("/api/v1/meter/aiss-tiers").json()
        assert len(tiers) == 9
        assert tiers[-1]["limit"] == 5000

    @pytest.mark.parametrize("max_tr,phase", [(179, "5"), (536, "30"), (3570, "140"), (6000, "200")])
    def test_aiss_for_capacity(self, client, max_tr, phase):
        data = client.get("/api/v1/meter/aiss", params={"max_tr": max_tr}).json()
        assert data["phase_current"] == phase
        assert data["ct"] is None

    def test_aiss_for_row(self, client):
        data = client.get("/api/v1/meter/aiss/0", params={"digits": "0450"}).json()
        assert data["ct"] == 5
        assert data["max_tr"] == 179
        assert data["ground_current"] == "2.5"

    def test_aiss_for_missing_row(self, client):
        response = client.get("/api/v1/meter/aiss/18")
        assert response.status_code == 404


class TestSessionEndpoints:
    """Test stored device sessions."""

    def test_unknown_device_gets_defaults(self, client):
        data = client.get("/api/v1/sessions/new-device").json()
        assert data["stored"] is False
        assert data["reading"] == "0.000"
        assert data["selected_index"] == 2

    def test_put_and_get(self, client):
        response = client.put(
            "/api/v1/sessions/dev-put",
            json={"digits": ["1", "2", "3", "4"], "selected_index": 5}
        )
        assert response.status_code == 200
        assert response.json()["validation"]["status"] == "accepted"

        data = client.get("/api/v1/sessions/dev-put").json()
        assert data["stored"] is True
        assert data["reading"] == "1.234"
        assert data["selected_index"] == 5
        assert data["active"] is False

    def test_put_repairs_bad_fields(self, client):
        response = client.put(
            "/api/v1/sessions/dev-repair",
            json={"digits": "0450", "selected_index": 99}
        )
        data = response.json()
        assert data["reading"] == "0.450"
        assert data["selected_index"] == 2
        assert data["validation"]["status"] == "rejected"

    def test_keys_scroll_and_reset(self, client):
        """A digit 2000 ms or more after the previous one starts fresh."""
        response = client.post("/api/v1/sessions/dev-keys/keys", json={"events": [
            {"key": "4"},
            {"key": "5", "elapsed_ms": 100},
            {"key": "0", "elapsed_ms": 100},
        ]})
        assert response.json()["reading"] == "0.450"

        response = client.post("/api/v1/sessions/dev-keys/keys", json={"events": [
            {"key": "7", "elapsed_ms": 2500},
        ]})
        assert response.json()["reading"] == "0.007"

    def test_keys_back_and_clear(self, client):
        events = [{"key": d, "elapsed_ms": 50} for d in "1234"] + [{"key": "back"}]
        data = client.post("/api/v1/sessions/dev-back/keys", json={"events": events}).json()
        assert data["reading"] == "0.123"

        data = client.post("/api/v1/sessions/dev-back/keys", json={"events": [{"key": "clear"}]}).json()
        assert data["reading"] == "0.000"

    def test_keys_rejects_unknown_key(self, client):
        response = client.post("/api/v1/sessions/dev-bad/keys", json={"events": [{"key": "x"}]})
        assert response.status_code == 422

    def test_select(self, client):
        data = client.post("/api/v1/sessions/dev-select/select", json={"index": 7}).json()
        assert data["selected_index"] == 7
        assert data["stored"] is True

    def test_select_out_of_range(self, client):
        response = client.post("/api/v1/sessions/dev-select/select", json={"index": 18})
        assert response.status_code == 400

    def test_inspect_keeps_selection(self, client):
        client.post("/api/v1/sessions/dev-inspect/select", json={"index": 1})
        data = client.get("/api/v1/sessions/dev-inspect/inspect/3").json()
        assert data["inspection"]["ct"] == 20
        assert data["inspection"]["phase_current"] == "30"
        assert data["selected_index"] == 1

    def test_inspect_missing_row(self, client):
        response = client.get("/api/v1/sessions/dev-inspect/inspect/40")
        assert response.status_code == 404

    def test_list_and_delete(self, client):
        client.put("/api/v1/sessions/dev-delete", json={"digits": ["0", "0", "0", "1"]})
        assert "dev-delete" in client.get("/api/v1/sessions").json()["devices"]

        assert client.delete("/api/v1/sessions/dev-delete").status_code == 200
        assert client.delete("/api/v1/sessions/dev-delete").status_code == 404
        assert client.get("/api/v1/sessions/dev-delete").json()["stored"] is False


class TestProjectionEndpoint:
    """Test the projection endpoint."""

    def test_defaults(self, client):
        response = client.post("/api/v1/projection", json={"days": 30, "start_date": "2024-01-01"})
        assert response.status_code == 200
        data = response.json()
        assert data["days_to_target"] == 25
        assert data["completion_percent"] == 50
        assert len(data["series"]) == 30
        assert data["series"][0] == {"date": "2024-01-01", "amount": 12000, "is_peak": False}

    def test_unreachable(self, client):
        data = client.post("/api/v1/projection", json={"daily_income": 0}).json()
        assert data["days_to_target"] is None

    def test_invalid_bonus(self, client):
        response = client.post("/api/v1/projection", json={"bonus_percentage": 150})
        assert response.status_code == 422


class TestStoredSnapshotRepair:
    """Test restoring a damaged row straight from the database."""

    def test_corrupt_record_is_repaired_on_read(self, client):
        from api.database import MeterSnapshotRecord, get_db_session

        with get_db_session() as db:
            db.add(MeterSnapshotRecord(device_id="dev-corrupt", digits="12x", selected_index=50))

        data = client.get("/api/v1/sessions/dev-corrupt").json()
        assert data["stored"] is True
        assert data["reading"] == "0.000"
        assert data["selected_index"] == 2
        assert data["validation"]["status"] == "rejected"
        assert data["validation"]["error_count"] == 2
