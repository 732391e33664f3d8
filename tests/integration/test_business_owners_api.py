"""Integration tests for the business owner endpoints and their audit trail."""

from shared.utils.app_status_code import AppStatusCode

NEW_OWNER = {
    "firstName": "Luis",
    "lastName": "Ortiz",
    "email": "luis.ortiz@example.com",
    "taxId": "987654321",
    "idLicenseNumber": "LIC-0042-7788",
    "city": "Ponce",
    "state": "PR",
}


def owner_logs(api, owner_id, **params):
    return api.data(api.get(f"/api/business-owners/{owner_id}/activity-logs", params=params))


class TestCreateAndRead:
    def test_create_returns_masked_owner(self, api) -> None:
        response = api.post("/api/business-owners", json=NEW_OWNER)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "Success"
        owner = body["data"]
        assert owner["taxId"] == "****4321"
        assert owner["idLicenseNumber"] == "****7788"
        assert owner["verificationStatus"] == "UNVERIFIED"
        assert owner["version"] == 1

    def test_create_is_audited(self, api) -> None:
        owner = api.data(api.post("/api/business-owners", json=NEW_OWNER))

        logs = owner_logs(api, owner["id"])
        assert [entry["action"] for entry in logs["data"]] == ["CREATE"]
        assert logs["data"][0]["performedBy"] == "manager-1"

    def test_detail_includes_summary_and_counts(self, api, owner) -> None:
        api.post(f"/api/business-owners/{owner.id}/documents",
                 json={"filename": "license.pdf", "category": "IDENTITY"})

        detail = api.data(api.get(f"/api/business-owners/{owner.id}"))

        assert detail["fullName"] == "Ana Rivera"
        assert detail["taxId"] == "****6789"
        assert detail["displayLocation"] == "San Juan, PR"
        assert detail["verificationSummary"]["currentStatus"] == "UNVERIFIED"
        assert detail["counts"]["documents"] == 1
        assert detail["counts"]["documentsAwaitingReview"] == 1

    def test_list_only_shows_own_owners(self, api, other_api, owner) -> None:
        assert api.data(api.get("/api/business-owners"))["total"] == 1
        assert other_api.data(other_api.get("/api/business-owners"))["total"] == 0

    def test_status_lookup(self, api) -> None:
        lookup = api.data(api.get("/api/business-owners/status-lookup"))
        assert {item["id"] for item in lookup} == {
            "UNVERIFIED", "PENDING_VERIFICATION", "VERIFIED", "REJECTED", "NEEDS_INFO"}


class TestAuthorization:
    def test_missing_token_is_401(self, client, owner) -> None:
        response = client.get(f"/api/business-owners/{owner.id}")
        assert response.status_code == 401

    def test_other_manager_is_forbidden(self, other_api, owner) -> None:
        response = other_api.put(f"/api/business-owners/{owner.id}", json={"city": "Mayaguez"})

        assert response.status_code == 403
        assert response.json()["status_code"] == AppStatusCode.AUTHORIZATION_FORBIDDEN

    def test_unknown_owner_is_404(self, api) -> None:
        response = api.get("/api/business-owners/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404


class TestUpdate:
    def test_update_bumps_version_and_writes_one_entry(self, api, owner) -> None:
        response = api.put(f"/api/business-owners/{owner.id}", json={"lastName": "Smith"})

        assert response.status_code == 200
        result = api.data(response)
        assert result["owner"]["version"] == 2
        assert result["owner"]["lastName"] == "Smith"
        assert result["fieldChanges"] == {"last_name": {"old": "Rivera", "new": "Smith"}}

        updates = owner_logs(api, owner.id, action="UPDATE")["data"]
        assert len(updates) == 1
        assert updates[0]["fieldChanges"] == {"last_name": {"old": "Rivera", "new": "Smith"}}

    def test_identical_patch_writes_nothing(self, api, owner) -> None:
        response = api.put(f"/api/business-owners/{owner.id}",
                           json={"firstName": "Ana", "city": "San Juan"})

        result = api.data(response)
        assert result["fieldChanges"] == {}
        assert result["owner"]["version"] == 1
        assert owner_logs(api, owner.id, action="UPDATE")["data"] == []

    def test_sensitive_changes_are_masked_in_audit(self, api, owner) -> None:
        result = api.data(api.put(f"/api/business-owners/{owner.id}", json={"taxId": "555443333"}))

        assert result["owner"]["taxId"] == "****3333"
        assert result["fieldChanges"]["tax_id"] == {"old": "****6789", "new": "****3333"}
        entry = owner_logs(api, owner.id, action="UPDATE")["data"][0]
        assert entry["fieldChanges"]["tax_id"] == {"old": "****6789", "new": "****3333"}

    def test_required_field_cannot_be_cleared(self, api, owner) -> None:
        response = api.put(f"/api/business-owners/{owner.id}", json={"email": None})

        assert response.status_code == 422
        assert response.json()["status_code"] == AppStatusCode.INVALID_INPUT

    def test_stale_expected_version_is_rejected(self, api, owner) -> None:
        api.put(f"/api/business-owners/{owner.id}", json={"city": "Ponce"})

        response = api.put(f"/api/business-owners/{owner.id}",
                           json={"city": "Caguas", "expectedVersion": 1})

        assert response.status_code == 409
        assert response.json()["status_code"] == AppStatusCode.STALE_VERSION
        assert api.data(api.get(f"/api/business-owners/{owner.id}"))["city"] == "Ponce"


class TestSoftDelete:
    def test_delete_with_open_attempt_is_refused(self, api, owner) -> None:
        api.post(f"/api/business-owners/{owner.id}/documents",
                 json={"filename": "lease.pdf", "category": "ADDRESS"})
        attempt = api.start_verification(owner.id)

        response = api.delete(f"/api/business-owners/{owner.id}", params={"reason": "Duplicate"})

        assert response.status_code == 409
        body = response.json()
        assert attempt["id"] in body["message"]
        assert body["data"]["blocking_attempt_ids"] == [attempt["id"]]
        # nothing was touched
        assert api.get(f"/api/business-owners/{owner.id}").status_code == 200
        assert api.data(api.get(f"/api/business-owners/{owner.id}/documents"))["total"] == 1

    def test_delete_cascades_to_documents(self, api, owner) -> None:
        for name in ("a.pdf", "b.pdf"):
            api.post(f"/api/business-owners/{owner.id}/documents",
                     json={"filename": name, "category": "OTHER"})

        response = api.delete(f"/api/business-owners/{owner.id}", params={"reason": "Duplicate record"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Business owner deleted successfully"
        assert body["status_code"] == AppStatusCode.DELETED_SUCCESSFULLY
        assert body["data"]["documentsDeleted"] == 2
        assert api.get(f"/api/business-owners/{owner.id}").status_code == 404
        assert api.data(api.get("/api/business-owners"))["total"] == 0

    def test_delete_is_audited_with_reason(self, api, owner, db) -> None:
        from permit_service.app.models.activity_logs import ActivityLog

        api.delete(f"/api/business-owners/{owner.id}", params={"reason": "Duplicate record"})

        entry = db.query(ActivityLog).filter(ActivityLog.action == "DELETE").one()
        assert entry.details["reason"] == "Duplicate record"
        assert entry.action_description == "Business owner deleted - Duplicate record"

    def test_deleted_owner_rejects_further_mutations(self, api, owner) -> None:
        business = api.data(api.post(f"/api/business-owners/{owner.id}/businesses",
                                     json={"businessName": "Cafe Rivera"}))
        api.delete(f"/api/business-owners/{owner.id}", params={"reason": "Duplicate record"})

        responses = [
            api.put(f"/api/business-owners/{owner.id}", json={"city": "Ponce"}),
            api.delete(f"/api/business-owners/{owner.id}"),
            api.post(f"/api/business-owners/{owner.id}/documents",
                     json={"filename": "late.pdf", "category": "OTHER"}),
            api.post(f"/api/business-owners/{owner.id}/notes", json={"content": "Too late"}),
            api.post(f"/api/business-owners/{owner.id}/verification", json={"isDraft": False}),
            api.put(f"/api/business-associations/{business['id']}", json={"role": "Partner"}),
        ]

        assert [response.status_code for response in responses] == [404] * len(responses)


class TestAssociations:
    def test_business_association_roundtrip(self, api, owner) -> None:
        response = api.post(f"/api/business-owners/{owner.id}/businesses",
                            json={"businessName": "Cafe Rivera", "ownershipPercentage": 60})
        assert response.status_code == 201

        listing = api.data(api.get(f"/api/business-owners/{owner.id}/businesses"))
        assert listing["total"] == 1
        assert listing["businesses"][0]["businessName"] == "Cafe Rivera"

    def test_ownership_over_100_is_invalid(self, api, owner) -> None:
        response = api.post(f"/api/business-owners/{owner.id}/businesses",
                            json={"businessName": "Cafe Rivera", "ownershipPercentage": 120})
        assert response.status_code == 422

    def test_association_read_update_and_delete(self, api, owner) -> None:
        created = api.data(api.post(f"/api/business-owners/{owner.id}/businesses",
                                    json={"businessName": "Cafe Rivera", "role": "Owner"}))
        url = f"/api/business-associations/{created['id']}"

        assert api.data(api.get(url))["businessName"] == "Cafe Rivera"

        result = api.data(api.put(url, json={"role": "Partner", "isPrimaryContact": True}))
        assert result["association"]["version"] == created["version"] + 1
        assert result["fieldChanges"] == {
            "role": {"old": "Owner", "new": "Partner"},
            "is_primary_contact": {"old": False, "new": True},
        }

        response = api.delete(url, params={"reason": "Sold the business"})
        assert response.status_code == 200
        assert response.json()["status_code"] == AppStatusCode.DELETED_SUCCESSFULLY
        assert api.get(url).status_code == 404
        assert api.data(api.get(f"/api/business-owners/{owner.id}/businesses"))["total"] == 0

    def test_association_changes_are_audited(self, api, owner) -> None:
        created = api.data(api.post(f"/api/business-owners/{owner.id}/businesses",
                                    json={"businessName": "Cafe Rivera", "role": "Owner"}))
        url = f"/api/business-associations/{created['id']}"
        api.put(url, json={"role": "Partner"})
        api.put(url, json={"role": "Partner"})
        api.delete(url, params={"reason": "Sold the business"})

        entries = owner_logs(api, owner.id, entity_type="business_association")["data"]

        assert [entry["action"] for entry in entries] == ["DELETE", "UPDATE", "CREATE"]
        assert entries[0]["actionDescription"] == "Business association deleted - Cafe Rivera"
        assert entries[0]["details"]["reason"] == "Sold the business"

    def test_association_name_cannot_be_cleared(self, api, owner) -> None:
        created = api.data(api.post(f"/api/business-owners/{owner.id}/businesses",
                                    json={"businessName": "Cafe Rivera"}))

        response = api.put(f"/api/business-associations/{created['id']}", json={"businessName": None})

        assert response.status_code == 422

    def test_other_manager_cannot_touch_association(self, api, other_api, owner) -> None:
        created = api.data(api.post(f"/api/business-owners/{owner.id}/businesses",
                                    json={"businessName": "Cafe Rivera"}))
        url = f"/api/business-associations/{created['id']}"

        assert other_api.get(url).status_code == 403
        assert other_api.put(url, json={"role": "Partner"}).status_code == 403
        assert other_api.delete(url).status_code == 403
        assert api.data(api.get(url))["version"] == created["version"]


class TestDocumentDelete:
    def test_delete_hides_document_and_is_audited(self, api, owner) -> None:
        document = api.data(api.post(f"/api/business-owners/{owner.id}/documents",
                                     json={"filename": "lease.pdf", "category": "ADDRESS"}))

        response = api.delete(f"/api/business-owners/{owner.id}/documents/{document['id']}")

        assert response.status_code == 200
        assert response.json()["message"] == "Document deleted successfully"
        assert api.data(api.get(f"/api/business-owners/{owner.id}/documents"))["total"] == 0
        entry = owner_logs(api, owner.id, entity_type="document", action="DELETE")["data"][0]
        assert entry["actionDescription"] == "Document deleted - lease.pdf"

    def test_document_under_review_cannot_be_deleted(self, api, owner) -> None:
        document = api.data(api.post(f"/api/business-owners/{owner.id}/documents",
                                     json={"filename": "license.png", "category": "IDENTITY"}))
        attempt = api.start_verification(owner.id)
        api.post(f"/api/business-owners/{owner.id}/verification/documents",
                 json={"verificationId": attempt["id"], "documentId": document["id"], "status": "VERIFIED"})

        response = api.delete(f"/api/business-owners/{owner.id}/documents/{document['id']}")

        assert response.status_code == 409
        assert response.json()["data"]["verification_id"] == attempt["id"]
        assert api.data(api.get(f"/api/business-owners/{owner.id}/documents"))["total"] == 1

    def test_document_of_closed_attempt_can_be_deleted(self, api, owner) -> None:
        document = api.data(api.post(f"/api/business-owners/{owner.id}/documents",
                                     json={"filename": "license.png", "category": "IDENTITY"}))
        attempt = api.start_verification(owner.id)
        api.post(f"/api/business-owners/{owner.id}/verification/documents",
                 json={"verificationId": attempt["id"], "documentId": document["id"], "status": "VERIFIED"})
        for section in ("identity", "address", "businessAffiliation"):
            api.set_section(owner.id, attempt["id"], section, "VERIFIED")
        api.submit(owner.id, attempt["id"])

        response = api.delete(f"/api/business-owners/{owner.id}/documents/{document['id']}")

        assert response.status_code == 200

    def test_unknown_document_is_404(self, api, owner) -> None:
        response = api.delete(
            f"/api/business-owners/{owner.id}/documents/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404


class TestNotes:
    def test_create_and_list_notes(self, api, owner) -> None:
        response = api.post(f"/api/business-owners/{owner.id}/notes",
                            json={"content": "Called about lease", "category": "Calls", "tags": ["lease"]})
        assert response.status_code == 201
        api.post(f"/api/business-owners/{owner.id}/notes", json={"content": "Pinned reminder", "isPinned": True})

        listing = api.data(api.get(f"/api/business-owners/{owner.id}/notes"))

        assert [note["content"] for note in listing["data"]] == ["Pinned reminder", "Called about lease"]
        assert listing["data"][1]["createdBy"] == "manager-1"
        assert listing["pagination"] == {"total": 2, "pages": 1, "current": 1, "limit": 20}
        assert listing["summary"]["categories"] == {"Calls": 1, "General": 1}
        assert listing["summary"]["pinned"] == 1

    def test_notes_filter_by_tag_and_pin(self, api, owner) -> None:
        api.post(f"/api/business-owners/{owner.id}/notes", json={"content": "A", "tags": ["lease"]})
        api.post(f"/api/business-owners/{owner.id}/notes", json={"content": "B", "isPinned": True})

        by_tag = api.data(api.get(f"/api/business-owners/{owner.id}/notes", params={"tag": "lease"}))
        pinned = api.data(api.get(f"/api/business-owners/{owner.id}/notes", params={"pinned_only": True}))

        assert [note["content"] for note in by_tag["data"]] == ["A"]
        assert [note["content"] for note in pinned["data"]] == ["B"]

    def test_note_creation_is_audited(self, api, owner) -> None:
        note = api.data(api.post(f"/api/business-owners/{owner.id}/notes", json={"content": "Follow up"}))

        entry = owner_logs(api, owner.id, entity_type="note")["data"][0]

        assert entry["action"] == "CREATE"
        assert entry["entityId"] == note["id"]

    def test_empty_note_is_invalid(self, api, owner) -> None:
        response = api.post(f"/api/business-owners/{owner.id}/notes", json={"content": ""})
        assert response.status_code == 422


class TestPaging:
    def test_zero_or_negative_paging_is_invalid(self, api, owner) -> None:
        logs_url = f"/api/business-owners/{owner.id}/activity-logs"

        for params in ({"limit": 0}, {"limit": -5}, {"page": 0}, {"limit": 101}):
            response = api.get(logs_url, params=params)
            assert response.status_code == 422, params
            assert response.json()["status_code"] == AppStatusCode.INVALID_INPUT

    def test_owner_list_paging_is_validated(self, api, owner) -> None:
        assert api.get("/api/business-owners", params={"limit": 0}).status_code == 422
        assert api.get("/api/business-owners", params={"skip": -1}).status_code == 422
        assert api.data(api.get("/api/business-owners", params={"limit": 1}))["total"] == 1
