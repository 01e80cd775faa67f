"""Tests for the HTTP handlers mounted by serve_local."""

import json
from unittest.mock import patch

import pytest

from config.errors import ErrorCode


@pytest.fixture
def client():
    from serve_local import app

    app.config["TESTING"] = True
    return app.test_client()


def _submit(client, payload):
    return client.post("/api/submit-estimate", json=payload)


class TestSubmitEstimate:

    def test_accepts_valid_submission(self, client, deep_submission_data):
        response = _submit(client, deep_submission_data)

        body = response.get_json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["id"].startswith("est_")
        assert body["quoteTotal"] == 455
        assert body["quote"]["total"] == 455
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_rejects_invalid_submission(self, client, regular_submission_data):
        regular_submission_data["fullName"] = ""

        response = _submit(client, regular_submission_data)

        body = response.get_json()
        assert response.status_code == 400
        assert body["success"] is False
        assert body["error"]["code"] == ErrorCode.VALIDATION_ERROR
        assert body["error"]["details"]["errors"][0]["field"] == "fullName"
        assert client.get("/api/estimates").get_json()["total"] == 0

    def test_scalar_addon_areas_is_400(self, client, regular_submission_data):
        regular_submission_data["addonAreas"] = 5

        response = _submit(client, regular_submission_data)

        assert response.status_code == 400
        assert response.get_json()["error"]["details"]["field"] == "addonAreas"
        assert client.get("/api/estimates").get_json()["total"] == 0

    def test_rejects_malformed_json(self, client):
        response = client.post(
            "/api/submit-estimate",
            data="{not json",
            content_type="application/json",
        )

        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == ErrorCode.INVALID_JSON

    def test_persistence_failure_is_503(self, client, regular_submission_data):
        with patch("services.estimate_store.EstimateStore._write_file", side_effect=OSError("disk full")):
            response = _submit(client, regular_submission_data)

        assert response.status_code == 503
        assert response.get_json()["error"]["code"] == ErrorCode.STORE_WRITE_FAILED

    def test_unexpected_error_is_500(self, client, regular_submission_data):
        with patch("main.get_intake_service", side_effect=RuntimeError("boom")):
            response = _submit(client, regular_submission_data)

        assert response.status_code == 500
        assert response.get_json()["error"]["message"] == "Internal server error"

    def test_preflight(self, client):
        response = client.options("/api/submit-estimate")

        assert response.status_code == 204
        assert "POST" in response.headers["Access-Control-Allow-Methods"]


class TestEstimatesEndpoint:

    def test_full_review_flow(self, client, regular_submission_data, deep_submission_data):
        first = _submit(client, regular_submission_data).get_json()["id"]
        second = _submit(client, deep_submission_data).get_json()["id"]

        listing = client.get("/api/estimates").get_json()
        assert [item["id"] for item in listing["estimates"]] == [second, first]
        assert listing["newCount"] == 2

        response = client.patch("/api/estimates", json={"action": "markAsRead", "id": first})
        assert response.status_code == 200
        assert client.get("/api/estimates").get_json()["newCount"] == 1

        response = client.patch("/api/estimates", json={"action": "markAllAsRead"})
        assert response.get_json()["updated"] == 1

        response = client.delete(f"/api/estimates?id={second}")
        assert response.get_json() == {"success": True, "deleted": True}

        listing = client.get("/api/estimates").get_json()
        assert [item["id"] for item in listing["estimates"]] == [first]
        assert listing["newCount"] == 0

    def test_invalid_action(self, client):
        response = client.patch("/api/estimates", json={"action": "archive"})

        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == ErrorCode.INVALID_ACTION

    def test_mark_missing_is_404(self, client):
        response = client.patch("/api/estimates", json={"action": "markAsRead", "id": "est_missing"})

        assert response.status_code == 404

    def test_delete_requires_id(self, client):
        response = client.delete("/api/estimates")

        body = response.get_json()
        assert response.status_code == 400
        assert body["error"]["message"] == "ID is required"

    def test_delete_missing_is_404(self, client):
        response = client.delete("/api/estimates?id=est_missing")

        assert response.status_code == 404
        assert response.get_json()["error"]["details"]["alreadyRemoved"] is True

    def test_corrupt_snapshot_still_lists(self, client, mock_settings, tmp_path):
        path = tmp_path / "default" / "estimates.json"
        path.parent.mkdir(parents=True)
        path.write_text("{oops", encoding="utf-8")

        response = client.get("/api/estimates")

        assert response.status_code == 200
        assert json.loads(response.data)["total"] == 0
        assert any(".corrupt-" in p.name for p in path.parent.iterdir())


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok", "service": "estimate-inbox"}
