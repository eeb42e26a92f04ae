"""Property listing wizard routes (property managers only).

Endpoints:
  POST   /api/properties/drafts               → create a draft listing
  GET    /api/properties/{id}                 → listing detail
  PUT    /api/properties/{id}/draft           → save a step
  GET    /api/properties/{id}/steps/{step}    → validate one step against stored data
  GET    /api/properties/{id}/progress        → wizard step + every failing step
  POST   /api/properties/{id}/revalidate      → move the draft to its first failing step
  POST   /api/properties/{id}/publish         → multipart: `payload` JSON + `new_images`
  GET    /api/properties/{id}/images          → photos by sort order
  POST   /api/properties/{id}/images          → upload photos
  PUT    /api/properties/{id}/images/order    → reorder photos
  PUT    /api/properties/{id}/images/main     → choose the main photo
  DELETE /api/properties/{id}/images/{image_id}
"""

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from rentflow.auth.deps import require_role
from rentflow.database import get_db
from rentflow.middleware.exceptions import (
    BusinessLogicError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from rentflow.models.property import Property
from rentflow.models.user import User, UserRole
from rentflow.schemas.wizard import (
    CreatePropertyDraftRequest,
    DraftSaveResult,
    ImageOrderRequest,
    MainImageRequest,
    PropertyImageOut,
    PropertyOut,
    PublishPropertyRequest,
    SaveDraftRequest,
    StepValidation,
    WizardProgress,
)
from rentflow.services import property as property_service
from rentflow.services.documents import DocumentStore, get_document_store
from rentflow.wizard.property_steps import property_engine

router = APIRouter()

require_manager = require_role(UserRole.PROPERTY_MANAGER)


# ── Helpers ──────────────────────────────────────────────────

async def _get_owned_property(db: AsyncSession, property_id: str, user: User) -> Property:
    property = await db.get(Property, property_id)
    if property is None:
        raise ResourceNotFoundError("Property", property_id)
    if property.property_manager_id != user.id:
        raise PermissionDeniedError("You do not manage this property")
    return property


def _check_images(images: list[UploadFile]) -> None:
    errors = property_service.image_errors(images)
    if errors:
        raise BusinessLogicError(
            "Invalid image upload", error_code="INVALID_IMAGE", details={"errors": errors}
        )


# ── Wizard ───────────────────────────────────────────────────

@router.post("/drafts", response_model=PropertyOut, status_code=status.HTTP_201_CREATED)
async def create_draft(
    body: CreatePropertyDraftRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_manager),
):
    return await property_service.create_draft(db, user.id, body.data)


@router.get("/{property_id}", response_model=PropertyOut)
async def get_property(
    property_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_manager),
):
    return await _get_owned_property(db, property_id, user)


@router.put("/{property_id}/draft", response_model=DraftSaveResult)
async def save_draft(
    property_id: str,
    body: SaveDraftRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_manager),
):
    property = await _get_owned_property(db, property_id, user)
    return await property_service.save_draft(db, property, body.data, body.step)


@router.get("/{property_id}/steps/{step}", response_model=StepValidation)
async def validate_step(
    property_id: str,
    step: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_manager),
):
    if not 1 <= step <= property_engine.last_step:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown step {step}")
    property = await _get_owned_property(db, property_id, user)
    outcome = property_service.validate_property_step(property, step)
    return StepValidation(step=step, valid=outcome.is_valid, errors=outcome.errors)


@router.get("/{property_id}/progress", response_model=WizardProgress)
async def get_progress(
    property_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_manager),
):
    property = await _get_owned_property(db, property_id, user)
    return WizardProgress(
        current_step=property.wizard_step,
        review_step=property_engine.review_step,
        failing_steps=property_service.step_errors(property),
    )


@router.post("/{property_id}/revalidate", response_model=PropertyOut)
async def revalidate(
    property_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_manager),
):
    property = await _get_owned_property(db, property_id, user)
    if property.status != "draft":
        return property
    return await property_service.revalidate_draft(db, property)


@router.post("/{property_id}/publish", response_model=PropertyOut)
async def publish(
    property_id: str,
    payload: str = Form("{}"),
    new_images: list[UploadFile] = File(default=[]),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_manager),
    store: DocumentStore = Depends(get_document_store),
):
    """Publish a draft. `payload` is a JSON-encoded PublishPropertyRequest."""
    try:
        body = PublishPropertyRequest.model_validate_json(payload)
    except ValidationError as exc:
        raise BusinessLogicError(
            "Invalid publish payload",
            error_code="VALIDATION_ERROR",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        )

    property = await _get_owned_property(db, property_id, user)
    options = body.model_dump(exclude={"data"})
    options["new_images"] = new_images
    return await property_service.publish(db, property, body.data, store, options)


# ── Photos ───────────────────────────────────────────────────

@router.get("/{property_id}/images", response_model=list[PropertyImageOut])
async def list_images(
    property_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_manager),
):
    property = await _get_owned_property(db, property_id, user)
    return await property_service.list_images(db, property)


@router.post(
    "/{property_id}/images",
    response_model=list[PropertyImageOut],
    status_code=status.HTTP_201_CREATED,
)
async def upload_images(
    property_id: str,
    images: list[UploadFile] = File(...),
    main_image_index: int | None = Form(None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_manager),
    store: DocumentStore = Depends(get_document_store),
):
    property = await _get_owned_property(db, property_id, user)
    _check_images(images)
    return await property_service.upload_images(db, property, images, store, main_image_index)


@router.put("/{property_id}/images/order", response_model=list[PropertyImageOut])
async def reorder_images(
    property_id: str,
    body: ImageOrderRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_manager),
):
    property = await _get_owned_property(db, property_id, user)
    await property_service.reorder_images(db, property, body.image_ids)
    return await property_service.list_images(db, property)


@router.put("/{property_id}/images/main", response_model=list[PropertyImageOut])
async def set_main_image(
    property_id: str,
    body: MainImageRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_manager),
):
    property = await _get_owned_property(db, property_id, user)
    if not await property_service.set_main_image(db, property, body.image_id):
        raise ResourceNotFoundError("Property image", body.image_id)
    return await property_service.list_images(db, property)


@router.delete("/{property_id}/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_image(
    property_id: str,
    image_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_manager),
    store: DocumentStore = Depends(get_document_store),
):
    property = await _get_owned_property(db, property_id, user)
    if not await property_service.delete_images(db, property, [image_id], store):
        raise ResourceNotFoundError("Property image", image_id)
