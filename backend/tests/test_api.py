"""HTTP API tests for the application and property wizards."""

import json

import pytest

from conftest import COMPLETE_LISTING, CONSENT, HOUSEHOLD
from rentflow.auth.jwt import create_access_token
from rentflow.models import Lead, User, UserRole

pytestmark = [pytest.mark.api, pytest.mark.asyncio]

PDF_FILE = ("reference.pdf", b"%PDF-1.4 reference", "application/pdf")
JPEG_FILE = ("front.jpg", b"\xff\xd8\xff\xe0 photo", "image/jpeg")


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestAuth:
    async def test_missing_token(self, client, listing):
        response = await client.post("/api/applications/drafts", json={"property_id": listing.id})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "HTTP_401"

    async def test_wrong_role(self, client, listing, manager_headers):
        response = await client.post(
            "/api/applications/drafts", json={"property_id": listing.id}, headers=manager_headers
        )
        assert response.status_code == 403

    async def test_other_tenant_cannot_read_application(self, client, db_session, draft):
        other = User(email="other@example.com", first_name="Otto", last_name="Other", role=UserRole.TENANT)
        db_session.add(other)
        await db_session.flush()
        headers = {"Authorization": f"Bearer {create_access_token(user_id=other.id, role='tenant')}"}

        response = await client.get(f"/api/applications/{draft.id}", headers=headers)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    async def test_inactive_user(self, client, db_session, tenant, tenant_headers):
        tenant.is_active = False
        await db_session.flush()

        response = await client.get("/api/applications/unknown", headers=tenant_headers)

        assert response.status_code == 401


class TestApplicationWizard:
    async def test_create_draft(self, client, listing, tenant_headers):
        response = await client.post(
            "/api/applications/drafts", json={"property_id": listing.id}, headers=tenant_headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "draft"
        assert body["current_step"] == 1
        assert body["property_id"] == listing.id

    async def test_create_draft_resumes_open_draft(self, client, draft, listing, tenant_headers):
        response = await client.post(
            "/api/applications/drafts", json={"property_id": listing.id}, headers=tenant_headers
        )
        assert response.json()["id"] == draft.id

    async def test_property_not_accepting_applications(self, client, db_session, listing, tenant_headers):
        listing.accepting_applications = False
        await db_session.flush()

        response = await client.post(
            "/api/applications/drafts", json={"property_id": listing.id}, headers=tenant_headers
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "NOT_ACCEPTING_APPLICATIONS"

    async def test_existing_application_blocks_new_draft(
        self, client, db_session, draft, listing, tenant_headers
    ):
        draft.status = "submitted"
        await db_session.flush()

        response = await client.post(
            "/api/applications/drafts", json={"property_id": listing.id}, headers=tenant_headers
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "APPLICATION_EXISTS"

    async def test_save_draft(self, client, db_session, draft, listing, tenant, tenant_headers):
        lead = Lead(property_id=listing.id, email=tenant.email, status="invited")
        db_session.add(lead)
        await db_session.flush()

        response = await client.put(
            f"/api/applications/{draft.id}/draft",
            json={"step": 7, "data": {**HOUSEHOLD, **CONSENT}},
            headers=tenant_headers,
        )

        assert response.status_code == 200
        assert response.json()["max_valid_step"] == 7
        await db_session.refresh(lead)
        assert lead.status == "drafting"

    async def test_save_draft_step_out_of_range(self, client, draft, tenant_headers):
        response = await client.put(
            f"/api/applications/{draft.id}/draft", json={"step": 9, "data": {}}, headers=tenant_headers
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_validate_step(self, client, draft, tenant_headers):
        valid = await client.get(f"/api/applications/{draft.id}/steps/2", headers=tenant_headers)
        invalid = await client.get(f"/api/applications/{draft.id}/steps/7", headers=tenant_headers)
        unknown = await client.get(f"/api/applications/{draft.id}/steps/8", headers=tenant_headers)

        assert valid.json() == {"step": 2, "valid": True, "errors": {}}
        assert invalid.json()["valid"] is False
        assert "digital_signature" in invalid.json()["errors"]
        assert unknown.status_code == 404

    async def test_progress(self, client, draft, tenant_headers):
        response = await client.get(f"/api/applications/{draft.id}/progress", headers=tenant_headers)

        body = response.json()
        assert body["current_step"] == 1
        assert body["review_step"] == 8
        assert list(body["failing_steps"]) == ["7"]

    async def test_revalidate(self, client, draft, tenant_headers):
        response = await client.post(f"/api/applications/{draft.id}/revalidate", headers=tenant_headers)
        assert response.json()["current_step"] == 7

    async def test_submit_incomplete(self, client, draft, tenant_headers):
        response = await client.post(
            f"/api/applications/{draft.id}/submit", json={"data": {}}, headers=tenant_headers
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "WIZARD_INCOMPLETE"
        assert error["details"]["step"] == 7
        assert "declaration_accuracy" in error["details"]["errors"]

    async def test_submit(self, client, db_session, draft, listing, tenant, tenant_headers):
        lead = Lead(property_id=listing.id, email=tenant.email, status="drafting")
        db_session.add(lead)
        await db_session.flush()

        response = await client.post(
            f"/api/applications/{draft.id}/submit", json={"data": CONSENT}, headers=tenant_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "submitted"
        assert body["current_step"] == 8
        assert body["snapshot_employer_name"] == "Acme AG"
        await db_session.refresh(lead)
        assert lead.status == "applied"
        assert lead.application_id == draft.id

        again = await client.post(
            f"/api/applications/{draft.id}/submit", json={"data": CONSENT}, headers=tenant_headers
        )
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "INVALID_WIZARD_STATE"


class TestApplicationDocuments:
    async def test_upload_and_remove_additional_document(self, client, draft, tenant_headers):
        response = await client.post(
            f"/api/applications/{draft.id}/documents/additional",
            files={"file": PDF_FILE},
            headers=tenant_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["slot"] == "additional"
        assert body["original_name"] == "reference.pdf"
        assert "/api/documents/" in body["url"]

        download = await client.get("/api/documents/" + body["url"].rsplit("/", 1)[-1])
        assert download.content == PDF_FILE[1]

        removed = await client.delete(
            f"/api/applications/{draft.id}/documents", params={"path": body["path"]}, headers=tenant_headers
        )
        assert removed.status_code == 204

        missing = await client.delete(
            f"/api/applications/{draft.id}/documents", params={"path": body["path"]}, headers=tenant_headers
        )
        assert missing.status_code == 404

    async def test_upload_profile_document(self, client, draft, complete_profile, tenant_headers):
        response = await client.post(
            f"/api/applications/{draft.id}/documents/payslip_1",
            files={"file": ("march.pdf", b"%PDF-1.4", "application/pdf")},
            headers=tenant_headers,
        )

        assert response.status_code == 201
        assert response.json()["path"].startswith("tenant-profiles/payslip_1/")

    async def test_reject_invalid_document(self, client, draft, tenant_headers):
        response = await client.post(
            f"/api/applications/{draft.id}/documents/additional",
            files={"file": ("run.exe", b"MZ", "application/octet-stream")},
            headers=tenant_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_DOCUMENT"

    async def test_unknown_slot(self, client, draft, tenant_headers):
        response = await client.post(
            f"/api/applications/{draft.id}/documents/tax_return",
            files={"file": PDF_FILE},
            headers=tenant_headers,
        )
        assert response.status_code == 404


class TestPropertyWizard:
    async def _create_draft(self, client, headers) -> str:
        response = await client.post("/api/properties/drafts", json={"data": {}}, headers=headers)
        assert response.status_code == 201
        return response.json()["id"]

    async def test_tenant_cannot_create_listing(self, client, tenant_headers):
        response = await client.post("/api/properties/drafts", json={"data": {}}, headers=tenant_headers)
        assert response.status_code == 403

    async def test_other_manager_cannot_edit(self, client, db_session, listing):
        other = User(
            email="other.manager@example.com", first_name="Mia", last_name="Meier",
            role=UserRole.PROPERTY_MANAGER,
        )
        db_session.add(other)
        await db_session.flush()
        headers = {"Authorization": f"Bearer {create_access_token(user_id=other.id, role='property_manager')}"}

        response = await client.get(f"/api/properties/{listing.id}", headers=headers)

        assert response.status_code == 403

    async def test_draft_to_publish(self, client, manager_headers):
        property_id = await self._create_draft(client, manager_headers)

        saved = await client.put(
            f"/api/properties/{property_id}/draft",
            json={"step": 7, "data": COMPLETE_LISTING},
            headers=manager_headers,
        )
        assert saved.json()["max_valid_step"] == 7

        progress = await client.get(f"/api/properties/{property_id}/progress", headers=manager_headers)
        assert progress.json()["failing_steps"] == {}

        step = await client.get(f"/api/properties/{property_id}/steps/3", headers=manager_headers)
        assert step.json()["valid"] is True

        published = await client.post(
            f"/api/properties/{property_id}/publish",
            data={"payload": json.dumps({"main_image_index": 0})},
            files=[("new_images", JPEG_FILE)],
            headers=manager_headers,
        )
        assert published.status_code == 200
        assert published.json()["status"] == "vacant"
        assert published.json()["visibility"] == "unlisted"

        images = await client.get(f"/api/properties/{property_id}/images", headers=manager_headers)
        [image] = images.json()
        assert image["is_main"] is True
        assert image["original_filename"] == "front.jpg"

    async def test_publish_without_photos(self, client, manager_headers):
        property_id = await self._create_draft(client, manager_headers)

        response = await client.post(
            f"/api/properties/{property_id}/publish",
            data={"payload": json.dumps({"data": COMPLETE_LISTING})},
            headers=manager_headers,
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "WIZARD_INCOMPLETE"
        assert error["details"]["step"] == 7
        assert "images" in error["details"]["errors"]

    async def test_publish_rejects_malformed_payload(self, client, manager_headers):
        property_id = await self._create_draft(client, manager_headers)

        response = await client.post(
            f"/api/properties/{property_id}/publish",
            data={"payload": "{not json"},
            headers=manager_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_photo_management(self, client, listing, manager_headers):
        uploaded = await client.post(
            f"/api/properties/{listing.id}/images",
            files=[("images", ("a.jpg", JPEG_FILE[1], "image/jpeg")), ("images", ("b.jpg", JPEG_FILE[1], "image/jpeg"))],
            data={"main_image_index": "0"},
            headers=manager_headers,
        )
        assert uploaded.status_code == 201
        first, second = uploaded.json()
        assert first["is_main"] is True

        reordered = await client.put(
            f"/api/properties/{listing.id}/images/order",
            json={"image_ids": [second["id"], first["id"]]},
            headers=manager_headers,
        )
        assert [image["id"] for image in reordered.json()] == [second["id"], first["id"]]

        main = await client.put(
            f"/api/properties/{listing.id}/images/main",
            json={"image_id": second["id"]},
            headers=manager_headers,
        )
        assert [image["is_main"] for image in main.json()] == [True, False]

        deleted = await client.delete(f"/api/properties/{listing.id}/images/{second['id']}", headers=manager_headers)
        assert deleted.status_code == 204

        [remaining] = (await client.get(f"/api/properties/{listing.id}/images", headers=manager_headers)).json()
        assert remaining["id"] == first["id"]
        assert remaining["is_main"] is True

    async def test_reject_invalid_photo(self, client, listing, manager_headers):
        response = await client.post(
            f"/api/properties/{listing.id}/images",
            files=[("images", ("plan.pdf", b"%PDF", "application/pdf"))],
            headers=manager_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_IMAGE"
