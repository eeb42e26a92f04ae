"""Application wizard orchestration tests (service layer)."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from conftest import CONSENT, HOUSEHOLD, TODAY, pdf
from rentflow.middleware.exceptions import (
    BusinessLogicError,
    IncompleteWizardError,
    ResourceNotFoundError,
    WizardStateError,
)
from rentflow.models import Application, Lead
from rentflow.services import application as application_service
from rentflow.services.documents import Visibility

IDENTITY_REQUEST = {
    "profile_date_of_birth": "1990-05-17",
    "profile_nationality": "CH",
    "profile_phone_country_code": "+41",
    "profile_phone_number": "791234567",
    "profile_id_document_type": "passport",
    "profile_id_number": "X1234567",
    "profile_id_issuing_country": "CH",
    "profile_id_expiry_date": (TODAY + timedelta(days=1000)).isoformat(),
    "profile_current_house_number": "12",
    "profile_current_street_name": "Bahnhofstrasse",
    "profile_current_city": "Zurich",
    "profile_current_postal_code": "8001",
    "profile_current_country": "CH",
}


@pytest.mark.asyncio
class TestSaveDraft:
    async def test_employer_missing_blocks_at_step_two(self, db_session, empty_profile, listing, store):
        application = await application_service.get_or_create_draft(db_session, empty_profile, listing)
        data = {
            **IDENTITY_REQUEST,
            "profile_id_document_front": pdf("front.pdf"),
            "profile_id_document_back": pdf("back.pdf"),
            **HOUSEHOLD,
            "employment_status": "employed",
            "employer_name": "",
            "monthly_income": None,
        }

        result = await application_service.save_draft(db_session, application, data, 3, store)

        assert result["max_valid_step"] == 2
        assert "saved_at" in result
        assert application.current_step == 2
        assert application.lease_duration_months == 12
        assert empty_profile.employment_status == "employed"
        assert empty_profile.employer_name is None
        assert store.exists(empty_profile.id_document_front_path, Visibility.PRIVATE)
        assert empty_profile.id_document_front_original_name == "front.pdf"

    async def test_completed_financials_reach_step_three(self, db_session, empty_profile, listing, store):
        application = await application_service.get_or_create_draft(db_session, empty_profile, listing)
        first = {
            **IDENTITY_REQUEST,
            "profile_id_document_front": pdf("front.pdf"),
            "profile_id_document_back": pdf("back.pdf"),
            **HOUSEHOLD,
            "employment_status": "employed",
            "employer_name": "",
            "monthly_income": None,
        }
        await application_service.save_draft(db_session, application, first, 3, store)

        # Identity now comes from the profile; household is resent by the client
        second = {
            **HOUSEHOLD,
            "employment_status": "employed",
            "employer_name": "Acme",
            "job_title": "Engineer",
            "monthly_income": 4000,
            "income_currency": "eur",
            "profile_employment_contract": pdf("contract.pdf"),
            "profile_payslip_1": pdf("p1.pdf"),
            "profile_payslip_2": pdf("p2.pdf"),
            "profile_payslip_3": pdf("p3.pdf"),
        }
        result = await application_service.save_draft(db_session, application, second, 3, store)

        assert result["max_valid_step"] == 3
        assert application.current_step == 3
        assert empty_profile.monthly_income == 4000.0

    async def test_profile_fields_are_coerced(self, db_session, draft, complete_profile, store):
        data = {
            "profile_authorize_credit_check": "0",
            "profile_current_monthly_rent": "2150.50",
            "profile_job_title": "",
            "status": "submitted",
        }

        await application_service.save_draft(db_session, draft, data, 1, store)

        assert complete_profile.authorize_credit_check is False
        assert complete_profile.current_monthly_rent == 2150.5
        assert complete_profile.job_title is None
        assert draft.status == "draft"

    async def test_invalid_upload_is_not_stored(self, db_session, draft, complete_profile, store):
        previous = complete_profile.id_document_front_path

        await application_service.save_draft(
            db_session, draft, {"profile_id_document_front": pdf("front.exe")}, 1, store
        )

        assert complete_profile.id_document_front_path == previous
        assert draft.current_step == 0

    async def test_submitted_application_cannot_be_saved(self, db_session, draft, store):
        draft.status = "submitted"
        with pytest.raises(WizardStateError):
            await application_service.save_draft(db_session, draft, {}, 1, store)


@pytest.mark.asyncio
class TestDrafts:
    async def test_get_or_create_returns_the_open_draft(self, db_session, complete_profile, listing):
        first = await application_service.get_or_create_draft(db_session, complete_profile, listing)
        second = await application_service.get_or_create_draft(db_session, complete_profile, listing)

        assert first.id == second.id
        assert first.current_step == 1
        count = (await db_session.execute(select(Application))).scalars().all()
        assert len(count) == 1

    async def test_existing_application_detection(self, db_session, draft, complete_profile, listing):
        assert not await application_service.has_existing_application(db_session, complete_profile, listing)
        draft.status = "submitted"
        await db_session.flush()
        assert await application_service.has_existing_application(db_session, complete_profile, listing)


@pytest.mark.asyncio
class TestSubmit:
    async def test_submit_freezes_snapshot(self, db_session, draft, complete_profile, store):
        application = await application_service.submit(db_session, draft, CONSENT, complete_profile, store)

        assert application.status == "submitted"
        assert application.submitted_at is not None
        assert application.current_step == 8
        assert application.snapshot_first_name == "Anna"
        assert application.snapshot_email == "anna@example.com"
        assert application.snapshot_employer_name == "Acme AG"
        assert application.snapshot_monthly_income == 8000.0

        complete_profile.employer_name = "Globex"
        await db_session.flush()
        await db_session.refresh(application)

        assert application.snapshot_employer_name == "Acme AG"

    async def test_submit_verifies_profile_once(self, db_session, draft, complete_profile, store):
        assert complete_profile.verified_at is None

        await application_service.submit(db_session, draft, CONSENT, complete_profile, store)

        verified_at = complete_profile.verified_at
        assert verified_at is not None
        assert application_service.auto_verify_profile(complete_profile) is False
        assert complete_profile.verified_at == verified_at

    async def test_incomplete_wizard_is_rejected_before_storing_files(
        self, db_session, draft, complete_profile, store
    ):
        data = {**CONSENT, "digital_signature": "", "application_id_document": pdf("passport.pdf")}

        with pytest.raises(IncompleteWizardError) as exc_info:
            await application_service.submit(db_session, draft, data, complete_profile, store)

        assert exc_info.value.step == 7
        assert exc_info.value.errors["digital_signature"] == ["Digital signature is required"]
        assert exc_info.value.details["step"] == 7
        assert draft.status == "draft"
        assert not (store.storage_root / "private" / "applications").exists()

    async def test_gate_reports_first_failing_step(self, db_session, draft, complete_profile, store):
        complete_profile.employer_name = None
        await db_session.flush()

        with pytest.raises(IncompleteWizardError) as exc_info:
            await application_service.submit(db_session, draft, CONSENT, complete_profile, store)

        assert exc_info.value.step == 3
        assert "profile_employer_name" in exc_info.value.errors

    async def test_submit_resolves_uploads(self, db_session, draft, complete_profile, store):
        data = {
            **CONSENT,
            "application_id_document": pdf("passport.pdf"),
            "additional_documents": [pdf("reference.pdf")],
        }

        application = await application_service.submit(db_session, draft, data, complete_profile, store)

        assert application.application_id_document_original_name == "passport.pdf"
        assert application.application_id_document_path.startswith("applications/id-documents/")
        assert store.exists(application.application_id_document_path, Visibility.PRIVATE)
        [record] = application.additional_documents
        assert record["original_name"] == "reference.pdf"
        assert record["type"] == "application/pdf"
        assert store.exists(record["path"], Visibility.PRIVATE)

    async def test_second_submit_is_rejected(self, db_session, draft, complete_profile, store):
        await application_service.submit(db_session, draft, CONSENT, complete_profile, store)
        with pytest.raises(WizardStateError):
            await application_service.submit(db_session, draft, CONSENT, complete_profile, store)


@pytest.mark.asyncio
class TestRevalidate:
    async def test_profile_change_demotes_draft(self, db_session, draft, complete_profile):
        draft.current_step = 6
        complete_profile.employment_status = "employed"
        complete_profile.employer_name = None
        await db_session.flush()

        await application_service.revalidate_draft(db_session, draft)

        assert draft.current_step == 3

    async def test_draft_moves_to_first_unanswered_step(self, db_session, draft):
        await application_service.revalidate_draft(db_session, draft)
        assert draft.current_step == 7

    async def test_complete_draft_moves_to_review(self, db_session, draft):
        for field, value in CONSENT.items():
            setattr(draft, field, value)
        await db_session.flush()

        await application_service.revalidate_draft(db_session, draft)

        assert draft.current_step == 8

    async def test_step_errors_match_first_invalid_step(self, db_session, draft):
        failing = await application_service.step_errors(db_session, draft)
        assert list(failing) == [7]

        outcome = await application_service.validate_application_step(db_session, draft, 7, CONSENT)
        assert outcome.is_valid


@pytest.mark.asyncio
class TestDocuments:
    async def test_profile_slot_replaces_document(self, db_session, draft, complete_profile, store):
        first = await application_service.upload_document(
            db_session, draft, "id_document_front", pdf("old.pdf"), store
        )
        second = await application_service.upload_document(
            db_session, draft, "id_document_front", pdf("new.pdf"), store
        )

        assert complete_profile.id_document_front_path == second["path"]
        assert complete_profile.id_document_front_original_name == "new.pdf"
        assert not store.exists(first["path"], Visibility.PRIVATE)
        assert store.exists(second["path"], Visibility.PRIVATE)

    async def test_additional_documents_append_and_remove(self, db_session, draft, store):
        first = await application_service.upload_document(db_session, draft, "additional", pdf("a.pdf"), store)
        await application_service.upload_document(db_session, draft, "additional", pdf("b.pdf"), store)

        assert [doc["original_name"] for doc in draft.additional_documents] == ["a.pdf", "b.pdf"]

        assert await application_service.remove_additional_document(db_session, draft, first["path"], store)
        assert [doc["original_name"] for doc in draft.additional_documents] == ["b.pdf"]
        assert not store.exists(first["path"], Visibility.PRIVATE)
        assert not await application_service.remove_additional_document(db_session, draft, "missing.pdf", store)

    async def test_stored_additional_documents_survive_submit(self, db_session, draft, complete_profile, store):
        await application_service.upload_document(db_session, draft, "additional", pdf("a.pdf"), store)
        stored = list(draft.additional_documents)

        data = {**CONSENT, "additional_documents": [*stored, pdf("b.pdf")]}
        application = await application_service.submit(db_session, draft, data, complete_profile, store)

        assert [doc["original_name"] for doc in application.additional_documents] == ["a.pdf", "b.pdf"]

    async def test_draft_cannot_claim_foreign_files(self, db_session, draft, store):
        profile_file = await application_service.upload_document(
            db_session, draft, "id_document_front", pdf("front.pdf"), store
        )
        victim = profile_file["path"]
        data = {
            "additional_documents": [{"path": victim, "original_name": "mine.pdf"}],
            "application_id_document_path": victim,
            "application_id_document_original_name": "mine.pdf",
        }

        await application_service.save_draft(db_session, draft, data, 1, store)

        assert not draft.additional_documents
        assert draft.application_id_document_path is None
        assert not await application_service.remove_additional_document(db_session, draft, victim, store)
        assert store.exists(victim, Visibility.PRIVATE)

    async def test_draft_keeps_stored_record_over_client_copy(self, db_session, draft, store):
        await application_service.upload_document(db_session, draft, "additional", pdf("a.pdf"), store)
        second = await application_service.upload_document(db_session, draft, "additional", pdf("b.pdf"), store)
        [first_record, second_record] = draft.additional_documents

        data = {"additional_documents": [{**second_record, "original_name": "renamed.pdf"}]}
        await application_service.save_draft(db_session, draft, data, 1, store)

        assert draft.additional_documents == [second_record]
        assert draft.additional_documents[0]["path"] == second["path"]
        assert first_record not in draft.additional_documents

    async def test_submit_ignores_client_storage_paths(self, db_session, draft, complete_profile, store):
        profile_file = await application_service.upload_document(
            db_session, draft, "payslip_1", pdf("payslip.pdf"), store
        )
        victim = profile_file["path"]
        data = {
            **CONSENT,
            "additional_documents": [{"path": victim}, pdf("reference.pdf")],
            "application_reference_letter_path": victim,
        }

        application = await application_service.submit(db_session, draft, data, complete_profile, store)

        assert application.application_reference_letter_path is None
        [record] = application.additional_documents
        assert record["original_name"] == "reference.pdf"
        assert record["path"] != victim
        assert store.exists(victim, Visibility.PRIVATE)

    async def test_invalid_upload_is_rejected(self, db_session, draft, store):
        with pytest.raises(BusinessLogicError) as exc_info:
            await application_service.upload_document(db_session, draft, "additional", pdf("virus.exe"), store)
        assert exc_info.value.error_code == "INVALID_DOCUMENT"

    async def test_unknown_slot(self, db_session, draft, store):
        with pytest.raises(ResourceNotFoundError):
            await application_service.upload_document(db_session, draft, "tax_return", pdf(), store)


@pytest.mark.asyncio
class TestLeads:
    async def test_lead_moves_through_drafting_to_applied(self, db_session, tenant, listing, draft):
        lead = Lead(property_id=listing.id, email=tenant.email, status="invited")
        other = Lead(property_id=listing.id, email="someone@example.com", status="new")
        db_session.add_all([lead, other])
        await db_session.flush()

        assert await application_service.update_lead_on_draft(db_session, tenant, listing) == 1
        await db_session.refresh(lead)
        await db_session.refresh(other)
        assert lead.status == "drafting"
        assert other.status == "new"

        assert await application_service.update_lead_on_submit(db_session, tenant, listing, draft) == 1
        await db_session.refresh(lead)
        assert lead.status == "applied"
        assert lead.application_id == draft.id

    async def test_viewed_lead_is_not_marked_drafting(self, db_session, tenant, listing):
        lead = Lead(property_id=listing.id, email=tenant.email, status="viewed")
        db_session.add(lead)
        await db_session.flush()

        assert await application_service.update_lead_on_draft(db_session, tenant, listing) == 0
        await db_session.refresh(lead)
        assert lead.status == "viewed"
