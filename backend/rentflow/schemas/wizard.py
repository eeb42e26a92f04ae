"""Pydantic schemas for the application and property wizards.

Step payloads stay free-form dicts at this boundary: which fields apply
depends on earlier answers, so each step validates its fields through the
pydantic TypeAdapters built by `rentflow.wizard.rules`.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


# ── Requests ────────────────────────────────────────────────

class SaveDraftRequest(BaseModel):
    step: int = Field(ge=1, le=8)
    data: dict = {}


class SubmitRequest(BaseModel):
    data: dict = {}


class CreateApplicationDraftRequest(BaseModel):
    property_id: str


class CreatePropertyDraftRequest(BaseModel):
    data: dict = {}


class PublishPropertyRequest(BaseModel):
    data: dict = {}
    deleted_image_ids: list[str] = []
    image_order: list[str] = []
    main_image_id: str | None = None
    main_image_index: int | None = None
    is_active: bool = True


class ImageOrderRequest(BaseModel):
    image_ids: list[str]


class MainImageRequest(BaseModel):
    image_id: str


# ── Responses ───────────────────────────────────────────────

class DraftSaveResult(BaseModel):
    max_valid_step: int
    saved_at: str


class StepValidation(BaseModel):
    step: int
    valid: bool
    errors: dict[str, list[str]] = {}


class WizardProgress(BaseModel):
    current_step: int
    review_step: int
    failing_steps: dict[int, dict[str, list[str]]] = {}


class DocumentUploadResult(BaseModel):
    slot: str
    path: str
    original_name: str
    url: str | None = None


class ApplicationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_profile_id: str
    property_id: str
    status: str
    current_step: int
    desired_move_in_date: date | None = None
    lease_duration_months: int | None = None
    additional_documents: list | None = None
    snapshot_first_name: str | None = None
    snapshot_last_name: str | None = None
    snapshot_email: str | None = None
    snapshot_employer_name: str | None = None
    snapshot_monthly_income: float | None = None
    submitted_at: datetime | None = None
    created_at: datetime


class PropertyImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    image_path: str
    original_filename: str | None = None
    sort_order: int
    is_main: bool


class PropertyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    property_manager_id: str
    status: str
    visibility: str
    accepting_applications: bool
    wizard_step: int
    type: str
    subtype: str
    title: str
    city: str
    country: str
    rent_amount: float
    rent_currency: str
    published_at: datetime | None = None
    created_at: datetime
