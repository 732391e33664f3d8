"""Fixtures for tests that drive the HTTP API end to end."""

import pytest
from fastapi.testclient import TestClient

SECTION_KEYS = ("identity", "address", "businessAffiliation")


class Api:
    """Authenticated calls against the app; ``data()`` unwraps the envelope."""

    def __init__(self, client: TestClient, headers: dict) -> None:
        self.client = client
        self.headers = headers

    def request(self, method: str, path: str, **kwargs):
        return self.client.request(method, path, headers=self.headers, **kwargs)

    def get(self, path: str, **kwargs):
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs):
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs):
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs):
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs):
        return self.request("DELETE", path, **kwargs)

    @staticmethod
    def data(response):
        return response.json()["data"]

    # ----------------- Verification shortcuts -----------------
    def start_verification(self, owner_id) -> dict:
        response = self.post(f"/api/business-owners/{owner_id}/verification", json={"isDraft": False})
        assert response.status_code == 201, response.text
        return self.data(response)

    def set_section(self, owner_id, attempt_id, section: str, status: str, notes=None) -> dict:
        response = self.patch(
            f"/api/business-owners/{owner_id}/verification/{attempt_id}/sections/{section}",
            json={"status": status, "notes": notes},
        )
        assert response.status_code == 200, response.text
        return self.data(response)

    def submit(self, owner_id, attempt_id, **payload):
        return self.put(
            f"/api/business-owners/{owner_id}/verification",
            json={"verificationId": str(attempt_id), **payload},
        )

    def verify_fully(self, owner_id) -> dict:
        """Open an attempt, verify every section and submit it."""
        attempt = self.start_verification(owner_id)
        for section in SECTION_KEYS:
            self.set_section(owner_id, attempt["id"], section, "VERIFIED")
        response = self.submit(owner_id, attempt["id"])
        assert response.status_code == 200, response.text
        return self.data(response)

    def activity_total(self, owner_id) -> int:
        response = self.get(f"/api/business-owners/{owner_id}/activity-logs", params={"limit": 1})
        return self.data(response)["pagination"]["total"]


@pytest.fixture
def api(client: TestClient, auth_headers: dict) -> Api:
    return Api(client, auth_headers)


@pytest.fixture
def other_api(client: TestClient, other_auth_headers: dict) -> Api:
    return Api(client, other_auth_headers)
