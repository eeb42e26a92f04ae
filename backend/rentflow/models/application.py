"""Application: a tenant's application for one property.

Lifecycle:  draft → submitted → (reviewed elsewhere) | withdrawn | archived

At most one open draft exists per (tenant_profile_id, property_id).
`current_step` is the furthest wizard step whose prefix validates
(8 = review). Profile-owned answers are not stored here; at submission
a `snapshot_*` copy of the key profile facts is frozen on the row.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rentflow.database import Base


class Application(Base):
    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_profile_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenant_profiles.id"), nullable=False, index=True
    )
    property_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("properties.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), default="draft", index=True)
    current_step: Mapped[int] = mapped_column(Integer, default=1)
    invited_via_token: Mapped[str | None] = mapped_column(String(64))

    # ── Household ────────────────────────────────────────────
    desired_move_in_date: Mapped[date | None] = mapped_column(Date)
    lease_duration_months: Mapped[int | None] = mapped_column(Integer)
    is_flexible_on_move_in: Mapped[bool | None] = mapped_column(Boolean)
    is_flexible_on_duration: Mapped[bool | None] = mapped_column(Boolean)
    message_to_landlord: Mapped[str | None] = mapped_column(Text)
    additional_occupants: Mapped[int | None] = mapped_column(Integer)
    occupants_details: Mapped[list | None] = mapped_column(JSON)
    has_pets: Mapped[bool | None] = mapped_column(Boolean)
    pets_details: Mapped[list | None] = mapped_column(JSON)

    emergency_contact_first_name: Mapped[str | None] = mapped_column(String(100))
    emergency_contact_last_name: Mapped[str | None] = mapped_column(String(100))
    emergency_contact_relationship: Mapped[str | None] = mapped_column(String(100))
    emergency_contact_relationship_other: Mapped[str | None] = mapped_column(String(100))
    emergency_contact_phone_country_code: Mapped[str | None] = mapped_column(String(10))
    emergency_contact_phone_number: Mapped[str | None] = mapped_column(String(30))
    emergency_contact_email: Mapped[str | None] = mapped_column(String(255))

    # ── Financial support ────────────────────────────────────
    co_signers: Mapped[list | None] = mapped_column(JSON)
    guarantors: Mapped[list | None] = mapped_column(JSON)
    interested_in_rent_insurance: Mapped[str | None] = mapped_column(String(20))
    existing_insurance_provider: Mapped[str | None] = mapped_column(String(200))
    existing_insurance_policy_number: Mapped[str | None] = mapped_column(String(100))

    # ── Additional information & documents ───────────────────
    additional_information: Mapped[str | None] = mapped_column(Text)
    # [{"path": ..., "original_name": ..., "type": ...}]
    additional_documents: Mapped[list | None] = mapped_column(JSON)
    application_id_document_path: Mapped[str | None] = mapped_column(String(500))
    application_id_document_original_name: Mapped[str | None] = mapped_column(String(255))
    application_proof_of_income_path: Mapped[str | None] = mapped_column(String(500))
    application_proof_of_income_original_name: Mapped[str | None] = mapped_column(String(255))
    application_reference_letter_path: Mapped[str | None] = mapped_column(String(500))
    application_reference_letter_original_name: Mapped[str | None] = mapped_column(String(255))

    # ── Declarations ─────────────────────────────────────────
    declaration_accuracy: Mapped[bool | None] = mapped_column(Boolean)
    consent_screening: Mapped[bool | None] = mapped_column(Boolean)
    consent_data_processing: Mapped[bool | None] = mapped_column(Boolean)
    consent_reference_contact: Mapped[bool | None] = mapped_column(Boolean)
    consent_data_sharing: Mapped[bool | None] = mapped_column(Boolean)
    consent_marketing: Mapped[bool | None] = mapped_column(Boolean)
    digital_signature: Mapped[str | None] = mapped_column(String(200))

    # ── Snapshot at submission ───────────────────────────────
    snapshot_first_name: Mapped[str | None] = mapped_column(String(100))
    snapshot_last_name: Mapped[str | None] = mapped_column(String(100))
    snapshot_email: Mapped[str | None] = mapped_column(String(255))
    snapshot_phone: Mapped[str | None] = mapped_column(String(20))
    snapshot_date_of_birth: Mapped[date | None] = mapped_column(Date)
    snapshot_nationality: Mapped[str | None] = mapped_column(String(2))
    snapshot_employment_status: Mapped[str | None] = mapped_column(String(30))
    snapshot_employer_name: Mapped[str | None] = mapped_column(String(255))
    snapshot_job_title: Mapped[str | None] = mapped_column(String(255))
    snapshot_monthly_income: Mapped[float | None] = mapped_column(Float)

    submitted_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
