"""Application wizard orchestration: drafts, revalidation, submission.

Flow of a draft save:
  1. profile_* keys are written to the TenantProfile (uploads stored once)
  2. the profile is flushed and refreshed
  3. profile ⊕ request data is replayed through steps 1..requested
  4. only application-owned keys are written, with current_step capped
     at the longest valid prefix

Submission repeats the profile sync, refuses to proceed while any step
fails (IncompleteWizardError), resolves uploads, freezes a snapshot of
the applicant's key facts and stamps the profile as verified when the
minimum identity and employment data is on file.

Lead status updates are separate calls made by the HTTP layer.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rentflow.middleware.exceptions import (
    BusinessLogicError,
    IncompleteWizardError,
    ResourceNotFoundError,
    WizardStateError,
)
from rentflow.models.application import Application
from rentflow.models.lead import Lead
from rentflow.models.property import Property
from rentflow.models.tenant_profile import TenantProfile
from rentflow.models.user import User
from rentflow.services.documents import (
    DocumentStore,
    Visibility,
    content_type_of,
    is_upload,
)
from rentflow.utils.coercion import assign_columns
from rentflow.wizard.application_steps import application_engine
from rentflow.wizard.merger import (
    PROFILE_BOOLEAN_FIELDS,
    PROFILE_DOCUMENT_SLOTS,
    PROFILE_FIELDS,
    PROFILE_PREFIX,
    entity_values,
    merge_profile,
    unflatten,
)
from rentflow.wizard.registry import WizardContext
from rentflow.wizard.rules import ErrorMap, document, evaluate, to_bool
from rentflow.wizard.validator import ValidationOutcome

logger = logging.getLogger(__name__)

# Keys the Application row owns; everything else in a payload is ignored.
APPLICATION_FIELDS = (
    "desired_move_in_date", "lease_duration_months", "is_flexible_on_move_in",
    "is_flexible_on_duration", "message_to_landlord", "additional_occupants",
    "occupants_details", "has_pets", "pets_details",
    "interested_in_rent_insurance", "existing_insurance_provider", "existing_insurance_policy_number",
    "co_signers", "guarantors",
    "emergency_contact_first_name", "emergency_contact_last_name", "emergency_contact_relationship",
    "emergency_contact_relationship_other", "emergency_contact_phone_country_code",
    "emergency_contact_phone_number", "emergency_contact_email",
    "additional_information", "additional_documents",
    "declaration_accuracy", "consent_screening", "consent_data_processing",
    "consent_reference_contact", "consent_data_sharing", "consent_marketing", "digital_signature",
    "invited_via_token",
)

APPLICATION_UPLOAD_FOLDERS = {
    "application_id_document": "applications/id-documents",
    "application_proof_of_income": "applications/proof-of-income",
    "application_reference_letter": "applications/reference-letters",
}
# Set only by handle_file_uploads, never from a payload
APPLICATION_DOCUMENT_FIELDS = tuple(
    f"{field}_{suffix}" for field in APPLICATION_UPLOAD_FOLDERS for suffix in ("path", "original_name")
)
ADDITIONAL_DOCUMENTS_FOLDER = "applications/additional-documents"
PROFILE_DOCUMENTS_FOLDER = "tenant-profiles"

# Applications in these states do not block a new application
INACTIVE_STATUSES = ("draft", "withdrawn", "archived", "deleted")


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _context(application: Application, profile: TenantProfile, today: date | None) -> WizardContext:
    return WizardContext(entity=application, profile=profile, today=today or date.today())


def upload_errors(file: Any, field: str = "file") -> ErrorMap:
    """Field errors for an upload checked against the document rule."""
    return evaluate([document(field, needed=True)], {field: file}, date.today())


# ── Lookups ─────────────────────────────────────────────────

async def get_profile(db: AsyncSession, application: Application) -> TenantProfile:
    profile = await db.get(TenantProfile, application.tenant_profile_id)
    if profile is None:
        raise ResourceNotFoundError("Tenant profile", application.tenant_profile_id)
    return profile


async def get_or_create_profile(db: AsyncSession, user: User) -> TenantProfile:
    result = await db.execute(
        select(TenantProfile).where(TenantProfile.user_id == user.id)
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        profile = TenantProfile(user_id=user.id)
        db.add(profile)
        await db.flush()
    return profile


async def get_or_create_draft(
    db: AsyncSession, profile: TenantProfile, property: Property
) -> Application:
    """The single open draft for (profile, property), created on first call."""
    result = await db.execute(
        select(Application).where(
            Application.tenant_profile_id == profile.id,
            Application.property_id == property.id,
            Application.status == "draft",
        )
    )
    draft = result.scalars().first()
    if draft is None:
        draft = Application(
            tenant_profile_id=profile.id,
            property_id=property.id,
            status="draft",
            current_step=1,
        )
        db.add(draft)
        await db.flush()
        logger.info("Created application draft %s for property %s", draft.id, property.id)
    return draft


async def has_existing_application(
    db: AsyncSession, profile: TenantProfile, property: Property
) -> bool:
    result = await db.execute(
        select(Application.id).where(
            Application.tenant_profile_id == profile.id,
            Application.property_id == property.id,
            Application.status.not_in(INACTIVE_STATUSES),
        ).limit(1)
    )
    return result.scalar_one_or_none() is not None


# ── Profile sync ────────────────────────────────────────────

def sync_profile_fields(profile: TenantProfile, data: Mapping[str, Any]) -> None:
    """Write profile keys (prefixed or bare) from wizard data onto the profile."""
    values: dict[str, Any] = {}
    for key, value in data.items():
        field = key[len(PROFILE_PREFIX):] if key.startswith(PROFILE_PREFIX) else key
        if field not in PROFILE_FIELDS:
            continue
        if field in PROFILE_BOOLEAN_FIELDS:
            values[field] = bool(to_bool(value))
        else:
            values[field] = None if value == "" else value
    assign_columns(profile, values)


def store_profile_document(
    profile: TenantProfile, slot: str, file: Any, store: DocumentStore
) -> str:
    """Store `file` for `slot`, replacing any document already on file."""
    previous = getattr(profile, f"{slot}_path")
    if previous:
        store.delete(previous, Visibility.PRIVATE)
    path = store.store(file, f"{PROFILE_DOCUMENTS_FOLDER}/{slot}", Visibility.PRIVATE)
    setattr(profile, f"{slot}_path", path)
    setattr(profile, f"{slot}_original_name", file.filename)
    return path


def store_profile_documents(
    profile: TenantProfile, data: Mapping[str, Any], store: DocumentStore
) -> list[str]:
    """Store every valid `profile_<slot>` upload; invalid ones are left for validation."""
    stored = []
    for slot in PROFILE_DOCUMENT_SLOTS:
        file = data.get(PROFILE_PREFIX + slot)
        if not is_upload(file):
            continue
        if upload_errors(file):
            logger.info("Skipping invalid upload for profile %s slot %s", profile.id, slot)
            continue
        store_profile_document(profile, slot, file, store)
        stored.append(slot)
    return stored


def sync_profile_data(
    profile: TenantProfile, data: Mapping[str, Any], store: DocumentStore
) -> None:
    sync_profile_fields(profile, data)
    store_profile_documents(profile, data, store)


# ── Application fields ──────────────────────────────────────

def _known_records(documents: Any, known: Mapping[str, dict]) -> list[dict]:
    """Keep the records whose path is in `known`, in the client's order.

    The stored record is kept rather than the client's copy, so a payload
    can drop or reorder documents but never point one at another file.
    """
    if not isinstance(documents, list):
        return []
    paths = (doc.get("path") for doc in documents if isinstance(doc, Mapping))
    return [dict(known[path]) for path in dict.fromkeys(paths) if path in known]


def filter_application_fields(
    data: Mapping[str, Any],
    application: Application,
    uploaded: Iterable[Mapping[str, Any]] = (),
) -> dict[str, Any]:
    """Wizard-editable values of `data`.

    Storage paths never come from the payload: document path columns are
    not editable, and additional document records survive only when the
    application already holds them or they are in `uploaded`.
    """
    values = {key: value for key, value in data.items() if key in APPLICATION_FIELDS}
    if "additional_documents" in values:
        known = {
            doc["path"]: doc
            for doc in [*(application.additional_documents or []), *uploaded]
            if doc.get("path")
        }
        values["additional_documents"] = _known_records(values["additional_documents"], known)
    return values


def application_values(application: Application) -> dict[str, Any]:
    """Stored application-owned fields, as wizard keys."""
    return entity_values(application, APPLICATION_FIELDS + APPLICATION_DOCUMENT_FIELDS)


def handle_file_uploads(
    data: Mapping[str, Any], store: DocumentStore
) -> tuple[dict[str, Any], list[dict]]:
    """Replace upload objects with storage paths and original names.

    Returns the rewritten data and the additional document records created
    for new uploads. Path keys sent by the client are dropped.
    """
    result = {key: value for key, value in data.items() if key not in APPLICATION_DOCUMENT_FIELDS}
    for field, folder in APPLICATION_UPLOAD_FOLDERS.items():
        file = result.get(field)
        if is_upload(file):
            result[f"{field}_path"] = store.store(file, folder, Visibility.PRIVATE)
            result[f"{field}_original_name"] = file.filename
            del result[field]

    uploaded = []
    documents = result.get("additional_documents")
    if isinstance(documents, list):
        records = []
        for item in documents:
            if is_upload(item):
                record = {
                    "path": store.store(item, ADDITIONAL_DOCUMENTS_FOLDER, Visibility.PRIVATE),
                    "original_name": item.filename,
                    "type": content_type_of(item),
                }
                uploaded.append(record)
                records.append(record)
            elif isinstance(item, Mapping) and item.get("path"):
                records.append(dict(item))
        result["additional_documents"] = records
    return result, uploaded


def snapshot_profile_data(profile: TenantProfile, user: User | None) -> dict[str, Any]:
    income = profile.monthly_income
    if income is None:
        income = profile.net_monthly_income
    return {
        "snapshot_first_name": user.first_name if user else None,
        "snapshot_last_name": user.last_name if user else None,
        "snapshot_email": user.email if user else None,
        "snapshot_phone": profile.phone_number,
        "snapshot_date_of_birth": profile.date_of_birth,
        "snapshot_nationality": profile.nationality,
        "snapshot_employment_status": profile.employment_status,
        "snapshot_employer_name": profile.employer_name,
        "snapshot_job_title": profile.job_title,
        "snapshot_monthly_income": income,
    }


def auto_verify_profile(profile: TenantProfile) -> bool:
    """Stamp verified_at once the minimum data is present. Never un-verifies."""
    if profile.verified_at is not None:
        return False
    has_basic_info = profile.date_of_birth and profile.nationality and profile.phone_number
    has_id_document = profile.id_document_front_path and profile.id_document_back_path
    if has_basic_info and has_id_document and profile.employment_status:
        profile.verified_at = _now()
        logger.info("Tenant profile %s auto-verified", profile.id)
        return True
    return False


# ── Wizard operations ───────────────────────────────────────

def _require_draft(application: Application) -> None:
    if application.status != "draft":
        raise WizardStateError(
            f"Application {application.id} is {application.status}, not a draft"
        )


async def save_draft(
    db: AsyncSession,
    application: Application,
    data: Mapping[str, Any],
    requested_step: int,
    store: DocumentStore,
    *,
    today: date | None = None,
) -> dict[str, Any]:
    """Persist a draft and return {max_valid_step, saved_at}."""
    _require_draft(application)
    data = unflatten(data)
    profile = await get_profile(db, application)

    sync_profile_data(profile, data, store)
    await db.flush()
    await db.refresh(profile)

    merged = merge_profile(profile, data)
    max_valid_step = application_engine.calculate_max_valid_step(
        merged, requested_step, _context(application, profile, today)
    )

    assign_columns(application, filter_application_fields(data, application))
    application.current_step = max_valid_step
    await db.flush()

    logger.info(
        "Application %s draft saved: requested step %s, max valid step %s",
        application.id, requested_step, max_valid_step,
    )
    return {
        "max_valid_step": max_valid_step,
        "saved_at": datetime.now(timezone.utc).isoformat(),
    }


async def submit(
    db: AsyncSession,
    application: Application,
    validated_data: Mapping[str, Any],
    profile: TenantProfile,
    store: DocumentStore,
    *,
    today: date | None = None,
) -> Application:
    """Submit a draft; raises IncompleteWizardError while any step fails."""
    _require_draft(application)
    data = unflatten(validated_data)

    sync_profile_fields(profile, data)
    await db.flush()
    await db.refresh(profile)

    merged = merge_profile(profile, {**application_values(application), **data})
    context = _context(application, profile, today)
    first_invalid = application_engine.find_first_invalid_step(merged, context)
    if first_invalid is not None:
        errors = application_engine.validate_step(first_invalid, merged, context).errors
        logger.info(
            "Application %s submit rejected at step %s", application.id, first_invalid
        )
        raise IncompleteWizardError(first_invalid, errors)

    store_profile_documents(profile, data, store)
    data, uploaded = handle_file_uploads(data, store)

    values = filter_application_fields(data, application, uploaded)
    values.update({key: data[key] for key in APPLICATION_DOCUMENT_FIELDS if key in data})
    values.update(snapshot_profile_data(profile, await db.get(User, profile.user_id)))
    assign_columns(application, values)
    application.status = "submitted"
    application.submitted_at = _now()
    application.current_step = application_engine.review_step

    auto_verify_profile(profile)
    await db.flush()

    logger.info("Application %s submitted for property %s", application.id, application.property_id)
    return application


async def revalidate_draft(
    db: AsyncSession, application: Application, *, today: date | None = None
) -> Application:
    """Move a draft to its first failing step, or to review when all pass."""
    profile = await get_profile(db, application)
    merged = merge_profile(profile, application_values(application))
    target = application_engine.target_step(merged, _context(application, profile, today))

    if target != application.current_step:
        logger.info(
            "Application %s moved from step %s to %s on revalidation",
            application.id, application.current_step, target,
        )
        application.current_step = target
        await db.flush()
    return application


async def validate_application_step(
    db: AsyncSession,
    application: Application,
    step: int,
    data: Mapping[str, Any] | None = None,
    *,
    today: date | None = None,
) -> ValidationOutcome:
    profile = await get_profile(db, application)
    merged = merge_profile(profile, {**application_values(application), **unflatten(data or {})})
    return application_engine.validate_step(step, merged, _context(application, profile, today))


async def step_errors(
    db: AsyncSession, application: Application, *, today: date | None = None
) -> dict[int, ErrorMap]:
    profile = await get_profile(db, application)
    merged = merge_profile(profile, application_values(application))
    return application_engine.collect_errors(merged, _context(application, profile, today))


# ── Documents ───────────────────────────────────────────────

async def upload_document(
    db: AsyncSession,
    application: Application,
    slot: str,
    file: Any,
    store: DocumentStore,
) -> dict[str, Any]:
    """Store one upload ahead of the step save.

    `slot` is either a profile document slot (replaces the one on file)
    or "additional" (appended to the application's documents).
    """
    _require_draft(application)
    errors = upload_errors(file)
    if errors:
        raise BusinessLogicError(
            "Invalid document upload", error_code="INVALID_DOCUMENT", details={"errors": errors}
        )

    if slot == "additional":
        path = store.store(file, ADDITIONAL_DOCUMENTS_FOLDER, Visibility.PRIVATE)
        application.additional_documents = [
            *(application.additional_documents or []),
            {"path": path, "original_name": file.filename, "type": content_type_of(file)},
        ]
    elif slot in PROFILE_DOCUMENT_SLOTS:
        profile = await get_profile(db, application)
        path = store_profile_document(profile, slot, file, store)
    else:
        raise ResourceNotFoundError("Document slot", slot)

    await db.flush()
    return {"slot": slot, "path": path, "original_name": file.filename}


async def remove_additional_document(
    db: AsyncSession, application: Application, path: str, store: DocumentStore
) -> bool:
    _require_draft(application)
    documents = application.additional_documents or []
    remaining = [doc for doc in documents if doc.get("path") != path]
    if len(remaining) == len(documents):
        return False
    store.delete(path, Visibility.PRIVATE)
    application.additional_documents = remaining
    await db.flush()
    return True


# ── Leads ───────────────────────────────────────────────────

async def update_lead_on_draft(db: AsyncSession, user: User, property: Property) -> int:
    result = await db.execute(
        update(Lead)
        .where(
            Lead.property_id == property.id,
            Lead.email == user.email,
            Lead.status.in_(("invited", "new")),
        )
        .values(status="drafting")
    )
    return result.rowcount or 0


async def update_lead_on_submit(
    db: AsyncSession, user: User, property: Property, application: Application
) -> int:
    result = await db.execute(
        update(Lead)
        .where(Lead.property_id == property.id, Lead.email == user.email)
        .values(status="applied", application_id=application.id)
    )
    return result.rowcount or 0
