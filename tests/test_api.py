"""
HTTP API tests.
"""

import pytest
from fastapi.testclient import TestClient

from labwatch.core.config import AppConfig
from labwatch.ui.http_server import create_app

from conftest import make_payload


@pytest.fixture
def client(service):
    return TestClient(create_app(config=AppConfig(), service=service))


class TestIngestEndpoint:
    """POST /api/pcs"""

    def test_missing_hostname_rejected(self, client, store):
        payload = make_payload()
        del payload["hostname"]
        response = client.post("/api/pcs", json=payload)
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Hostname is required"}
        assert store.get_device_by_hostname("LAB1-PC01") is None

    def test_null_hostname_rejected(self, client):
        response = client.post("/api/pcs", json=make_payload(hostname=None))
        assert response.status_code == 400
        assert response.json()["error"] == "Hostname is required"

    def test_wrong_type_hostname_gets_validation_message(self, client):
        response = client.post("/api/pcs", json=make_payload(hostname=123))
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] != "Hostname is required"
        assert body["error"].startswith("hostname")

    def test_blank_hostname_rejected(self, client):
        response = client.post("/api/pcs", json=make_payload(hostname="   "))
        assert response.status_code == 400

    def test_register_then_detect(self, client):
        first = client.post("/api/pcs", json=make_payload())
        assert first.status_code == 200
        body = first.json()
        assert body["success"] is True
        assert body["message"] == "PC registered as baseline"
        assert body["changes"] == 0
        assert body["data"]["hostname"] == "LAB1-PC01"

        second = client.post("/api/pcs", json=make_payload(cpuModel="Intel i7-10700"))
        body = second.json()
        assert body["changes"] == 1
        assert body["message"] == "1 component change(s) detected"
        change = body["data"]["recent_changes"][0]
        assert change["severity"] == "warning"
        assert change["new_value"] == "Intel i7-10700"

    def test_numeric_fields_are_coerced(self, client):
        payload = make_payload()
        payload["ramDetails"][0]["speed"] = 3200
        response = client.post("/api/pcs", json=payload)
        assert response.status_code == 200
        assert response.json()["data"]["rams"][0]["speed"] == "3200"


class TestDeviceEndpoints:
    """Listing, detail, admin update and delete."""

    def test_list(self, client):
        client.post("/api/pcs", json=make_payload())
        body = client.get("/api/pcs").json()
        assert body["success"] is True
        assert body["data"][0]["hostname"] == "LAB1-PC01"
        assert body["data"][0]["change_count"] == 0

    def test_detail_and_not_found(self, client):
        device_id = client.post("/api/pcs", json=make_payload()).json()["data"]["id"]
        assert client.get(f"/api/pcs/{device_id}").json()["data"]["id"] == device_id

        missing = client.get("/api/pcs/9999")
        assert missing.status_code == 404
        assert missing.json() == {"success": False, "error": "PC not found"}

    def test_set_maintenance(self, client):
        device_id = client.post("/api/pcs", json=make_payload()).json()["data"]["id"]
        response = client.patch(f"/api/pcs/{device_id}", json={"status": "maintenance", "location": "Lab 2"})
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "maintenance"
        assert response.json()["data"]["location"] == "Lab 2"

        drift = client.post("/api/pcs", json=make_payload(gpu="NVIDIA GTX 1650")).json()
        assert drift["changes"] == 0

    def test_invalid_status(self, client):
        device_id = client.post("/api/pcs", json=make_payload()).json()["data"]["id"]
        response = client.patch(f"/api/pcs/{device_id}", json={"status": "broken"})
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_delete(self, client):
        device_id = client.post("/api/pcs", json=make_payload()).json()["data"]["id"]
        assert client.delete(f"/api/pcs/{device_id}").json()["success"] is True
        assert client.get(f"/api/pcs/{device_id}").status_code == 404
        assert client.delete(f"/api/pcs/{device_id}").status_code == 404

    def test_stats(self, client):
        client.post("/api/pcs", json=make_payload())
        body = client.get("/api/stats").json()
        assert body["data"]["total_pcs"] == 1
        assert body["data"]["os_breakdown"] == [{"name": "Windows 10", "count": 1}]


class TestServiceEndpoints:
    """Root and health."""

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_root(self, client):
        assert client.get("/").json()["endpoints"]["pcs"] == "/api/pcs"
