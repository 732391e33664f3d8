"""Integration tests for per-document decisions within an attempt."""

import uuid

import pytest

from permit_service.app.crud import document_verification_crud
from permit_service.app.crud.access_crud import get_managed_owner
from permit_service.app.models.activity_logs import ActivityLog
from permit_service.app.models.verification_attempts import VerificationAttempt
from shared.core.exceptions import ConflictError


def upload(api, owner_id, filename="license.png", category="IDENTITY") -> dict:
    response = api.post(f"/api/business-owners/{owner_id}/documents",
                        json={"filename": filename, "category": category})
    assert response.status_code == 201, response.text
    return api.data(response)


def decide(api, owner_id, attempt_id, document_id, status, notes=None):
    return api.post(
        f"/api/business-owners/{owner_id}/verification/documents",
        json={"verificationId": attempt_id, "documentId": document_id, "status": status, "notes": notes},
    )


class TestDocumentDecisions:
    def test_first_decision_links_and_decides(self, api, owner) -> None:
        document = upload(api, owner.id)
        attempt = api.start_verification(owner.id)

        response = decide(api, owner.id, attempt["id"], document["id"], "VERIFIED", "Clear photo")

        assert response.status_code == 200
        record = api.data(response)
        assert record["status"] == "VERIFIED"
        assert record["notes"] == "Clear photo"
        assert record["verifiedBy"] == "manager-1"

    def test_same_decision_twice_is_idempotent(self, api, owner, db) -> None:
        document = upload(api, owner.id)
        attempt = api.start_verification(owner.id)
        first = api.data(decide(api, owner.id, attempt["id"], document["id"], "REJECTED", "Blurry"))
        entries = db.query(ActivityLog).filter(ActivityLog.entity_type == "document_verification").count()

        second = api.data(decide(api, owner.id, attempt["id"], document["id"], "REJECTED", "Blurry"))

        assert second["version"] == first["version"]
        assert db.query(ActivityLog).filter(
            ActivityLog.entity_type == "document_verification").count() == entries

    def test_decision_does_not_touch_sections(self, api, owner) -> None:
        document = upload(api, owner.id)
        attempt = api.start_verification(owner.id)

        decide(api, owner.id, attempt["id"], document["id"], "REJECTED", "Wrong person")

        current = api.data(api.get(f"/api/business-owners/{owner.id}/verification"))["currentAttempt"]
        assert current["sections"]["identity"]["status"] == "INCOMPLETE"
        assert current["decision"] == "PENDING"

    def test_document_of_another_owner_is_not_found(self, api, owner) -> None:
        stranger = api.data(api.post("/api/business-owners", json={
            "firstName": "Eva", "lastName": "Cruz", "email": "eva@example.com"}))
        foreign_document = upload(api, stranger["id"])
        attempt = api.start_verification(owner.id)

        response = decide(api, owner.id, attempt["id"], foreign_document["id"], "VERIFIED")

        assert response.status_code == 404

    def test_closed_attempt_rejects_decisions(self, api, owner) -> None:
        document = upload(api, owner.id)
        api.verify_fully(owner.id)
        closed = api.data(api.get(f"/api/business-owners/{owner.id}/verification"))["recentAttempts"][0]

        response = decide(api, owner.id, closed["id"], document["id"], "VERIFIED")

        assert response.status_code == 409

    def test_documents_listing_groups_by_category(self, api, owner) -> None:
        license_doc = upload(api, owner.id, "license.png", "IDENTITY")
        upload(api, owner.id, "lease.pdf", "ADDRESS")
        attempt = api.start_verification(owner.id)
        decide(api, owner.id, attempt["id"], license_doc["id"], "VERIFIED")

        listing = api.data(api.get(f"/api/business-owners/{owner.id}/verification/documents",
                                   params={"verificationId": attempt["id"]}))

        assert listing["totalDocuments"] == 2
        assert listing["verifiedDocuments"] == 1
        assert [item["filename"] for item in listing["documentsByCategory"]["ADDRESS"]] == ["lease.pdf"]
        assert listing["documentsByCategory"]["IDENTITY"][0]["verificationStatus"] == "VERIFIED"
        assert listing["documentsByCategory"]["BUSINESS"] == []


class TestLinkDocument:
    def test_document_under_review_elsewhere_conflicts(self, api, owner, db, manager) -> None:
        document = upload(api, owner.id)
        attempt = api.start_verification(owner.id)
        decide(api, owner.id, attempt["id"], document["id"], "NEEDS_INFO", "Back side missing")

        # transient stand-in for a second open attempt of the same owner
        owner_row = get_managed_owner(db, owner.id, manager)
        shadow = VerificationAttempt(id=uuid.uuid4(), owner_id=owner_row.id, initiated_by="manager-1",
                                     sections={}, decision="PENDING")

        with pytest.raises(ConflictError):
            document_verification_crud.link_document(db, shadow, uuid.UUID(document["id"]), manager)
