# permit_service/wizard/client.py
import logging
from typing import Any, Dict, Optional

import requests

from shared.core.exceptions import error_from_envelope

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10


class VerificationApiClient:
    """Thin client for the verification endpoints.

    ``session`` is anything with the ``requests.Session.request`` signature
    (a FastAPI ``TestClient`` works too). Failure envelopes come back as the
    matching ``PermitServiceError`` subclass.
    """

    def __init__(self, session=None, base_url: str = "", token: Optional[str] = None,
                 timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS):
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        response = self.session.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)
        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            error = error_from_envelope(response.status_code, body)
            logger.debug("%s %s failed (%s): %s", method, path, response.status_code, error)
            raise error

        if isinstance(body, dict) and "status_code" in body and "data" in body:
            return body["data"]
        return body

    # ----------------- Verification -----------------
    def get_verification(self, owner_id, include_documents: bool = False,
                         include_history: bool = False) -> Dict[str, Any]:
        return self._request(
            "GET",
            f"/api/business-owners/{owner_id}/verification",
            params={
                "includeDocuments": str(include_documents).lower(),
                "includeHistory": str(include_history).lower(),
            },
        )

    def create_verification(self, owner_id) -> Dict[str, Any]:
        return self._request(
            "POST", f"/api/business-owners/{owner_id}/verification", json={"isDraft": False})

    def save_draft(self, owner_id, draft_data: Dict[str, Any], verification_id=None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"isDraft": True, "draftData": draft_data}
        if verification_id is not None:
            payload["verificationId"] = str(verification_id)
        return self._request("POST", f"/api/business-owners/{owner_id}/verification", json=payload)

    def submit_verification(self, owner_id, verification_id, sections: Optional[Dict[str, Any]] = None,
                            decision_reason: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"verificationId": str(verification_id)}
        if sections is not None:
            payload["sections"] = sections
        if decision_reason:
            payload["decisionReason"] = decision_reason
        return self._request("PUT", f"/api/business-owners/{owner_id}/verification", json=payload)

    # ----------------- Documents -----------------
    def get_verification_documents(self, owner_id, verification_id) -> Dict[str, Any]:
        return self._request(
            "GET",
            f"/api/business-owners/{owner_id}/verification/documents",
            params={"verificationId": str(verification_id)},
        )

    def update_document_verification(self, owner_id, verification_id, document_id, status: str,
                                     notes: Optional[str] = None) -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/api/business-owners/{owner_id}/verification/documents",
            json={
                "verificationId": str(verification_id),
                "documentId": str(document_id),
                "status": status,
                "notes": notes,
            },
        )
