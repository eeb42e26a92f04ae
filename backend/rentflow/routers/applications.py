"""Tenant application wizard routes.

Endpoints:
  POST   /api/applications/drafts              → open (or resume) a draft for a property
  GET    /api/applications/{id}                → application detail
  PUT    /api/applications/{id}/draft          → save a step, returns max valid step
  GET    /api/applications/{id}/steps/{step}   → validate one step against stored data
  GET    /api/applications/{id}/progress       → current step + every failing step
  POST   /api/applications/{id}/revalidate     → move the draft to its first failing step
  POST   /api/applications/{id}/submit         → submit (422 while any step fails)
  POST   /api/applications/{id}/documents/{slot} → upload one document
  DELETE /api/applications/{id}/documents      → remove an additional document

Only the tenant who owns the application may touch it.
"""

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentflow.auth.deps import require_role
from rentflow.database import get_db
from rentflow.middleware.exceptions import (
    BusinessLogicError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from rentflow.models.application import Application
from rentflow.models.property import Property
from rentflow.models.tenant_profile import TenantProfile
from rentflow.models.user import User, UserRole
from rentflow.schemas.wizard import (
    ApplicationOut,
    CreateApplicationDraftRequest,
    DocumentUploadResult,
    DraftSaveResult,
    SaveDraftRequest,
    StepValidation,
    SubmitRequest,
    WizardProgress,
)
from rentflow.services import application as application_service
from rentflow.services.documents import DocumentStore, Visibility, get_document_store
from rentflow.wizard.application_steps import application_engine

router = APIRouter()

require_tenant = require_role(UserRole.TENANT)


# ── Helpers ──────────────────────────────────────────────────

async def _get_property(db: AsyncSession, property_id: str) -> Property:
    property = await db.get(Property, property_id)
    if property is None:
        raise ResourceNotFoundError("Property", property_id)
    return property


async def _get_owned_application(
    db: AsyncSession, application_id: str, user: User
) -> Application:
    application = await db.get(Application, application_id)
    if application is None:
        raise ResourceNotFoundError("Application", application_id)
    profile = await db.get(TenantProfile, application.tenant_profile_id)
    if profile is None or profile.user_id != user.id:
        raise PermissionDeniedError("You do not have access to this application")
    return application


# ── Routes ───────────────────────────────────────────────────

@router.post("/drafts", response_model=ApplicationOut, status_code=status.HTTP_201_CREATED)
async def create_draft(
    body: CreateApplicationDraftRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_tenant),
):
    property = await _get_property(db, body.property_id)
    if not property.accepting_applications:
        raise BusinessLogicError(
            "This property is not accepting applications",
            error_code="NOT_ACCEPTING_APPLICATIONS",
        )

    profile = await application_service.get_or_create_profile(db, user)
    if await application_service.has_existing_application(db, profile, property):
        raise BusinessLogicError(
            "You have already applied for this property",
            error_code="APPLICATION_EXISTS",
        )
    return await application_service.get_or_create_draft(db, profile, property)


@router.get("/{application_id}", response_model=ApplicationOut)
async def get_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_tenant),
):
    return await _get_owned_application(db, application_id, user)


@router.put("/{application_id}/draft", response_model=DraftSaveResult)
async def save_draft(
    application_id: str,
    body: SaveDraftRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_tenant),
    store: DocumentStore = Depends(get_document_store),
):
    application = await _get_owned_application(db, application_id, user)
    result = await application_service.save_draft(db, application, body.data, body.step, store)

    property = await _get_property(db, application.property_id)
    await application_service.update_lead_on_draft(db, user, property)
    return result


@router.get("/{application_id}/steps/{step}", response_model=StepValidation)
async def validate_step(
    application_id: str,
    step: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_tenant),
):
    if not 1 <= step <= application_engine.last_step:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown step {step}")
    application = await _get_owned_application(db, application_id, user)
    outcome = await application_service.validate_application_step(db, application, step)
    return StepValidation(step=step, valid=outcome.is_valid, errors=outcome.errors)


@router.get("/{application_id}/progress", response_model=WizardProgress)
async def get_progress(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_tenant),
):
    application = await _get_owned_application(db, application_id, user)
    return WizardProgress(
        current_step=application.current_step,
        review_step=application_engine.review_step,
        failing_steps=await application_service.step_errors(db, application),
    )


@router.post("/{application_id}/revalidate", response_model=ApplicationOut)
async def revalidate(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_tenant),
):
    application = await _get_owned_application(db, application_id, user)
    if application.status != "draft":
        return application
    return await application_service.revalidate_draft(db, application)


@router.post("/{application_id}/submit", response_model=ApplicationOut)
async def submit(
    application_id: str,
    body: SubmitRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_tenant),
    store: DocumentStore = Depends(get_document_store),
):
    application = await _get_owned_application(db, application_id, user)
    profile = await application_service.get_profile(db, application)
    application = await application_service.submit(db, application, body.data, profile, store)

    property = await _get_property(db, application.property_id)
    await application_service.update_lead_on_submit(db, user, property, application)
    return application


@router.post(
    "/{application_id}/documents/{slot}",
    response_model=DocumentUploadResult,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    application_id: str,
    slot: str,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_tenant),
    store: DocumentStore = Depends(get_document_store),
):
    application = await _get_owned_application(db, application_id, user)
    result = await application_service.upload_document(db, application, slot, file, store)
    return DocumentUploadResult(**result, url=store.url(result["path"], Visibility.PRIVATE))


@router.delete("/{application_id}/documents", status_code=status.HTTP_204_NO_CONTENT)
async def remove_document(
    application_id: str,
    path: str = Query(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_tenant),
    store: DocumentStore = Depends(get_document_store),
):
    application = await _get_owned_application(db, application_id, user)
    if not await application_service.remove_additional_document(db, application, path, store):
        raise ResourceNotFoundError("Document", path)
