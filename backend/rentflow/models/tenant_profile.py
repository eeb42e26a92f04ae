"""TenantProfile: the applicant's reusable facts.

One row per tenant user, shared by every application they start. The
application wizard writes `profile_<field>` keys straight into these
columns on each save, so a later application starts pre-filled.

Uploaded documents are stored once: each slot keeps `<slot>_path` and
`<slot>_original_name`, and a slot with a path is never required again.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rentflow.database import Base


class TenantProfile(Base):
    __tablename__ = "tenant_profiles"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), unique=True, nullable=False, index=True
    )

    # ── Identity ─────────────────────────────────────────────
    date_of_birth: Mapped[date | None] = mapped_column(Date)
    middle_name: Mapped[str | None] = mapped_column(String(100))
    nationality: Mapped[str | None] = mapped_column(String(2))
    phone_country_code: Mapped[str | None] = mapped_column(String(5))
    phone_number: Mapped[str | None] = mapped_column(String(20))
    bio: Mapped[str | None] = mapped_column(Text)

    id_document_type: Mapped[str | None] = mapped_column(String(30))
    id_number: Mapped[str | None] = mapped_column(String(100))
    id_issuing_country: Mapped[str | None] = mapped_column(String(2))
    id_expiry_date: Mapped[date | None] = mapped_column(Date)

    immigration_status: Mapped[str | None] = mapped_column(String(30))
    immigration_status_other: Mapped[str | None] = mapped_column(String(100))
    visa_type: Mapped[str | None] = mapped_column(String(100))
    visa_type_other: Mapped[str | None] = mapped_column(String(100))
    visa_expiry_date: Mapped[date | None] = mapped_column(Date)
    work_permit_number: Mapped[str | None] = mapped_column(String(100))
    right_to_rent_share_code: Mapped[str | None] = mapped_column(String(50))

    # ── Current address ──────────────────────────────────────
    current_house_number: Mapped[str | None] = mapped_column(String(20))
    current_address_line_2: Mapped[str | None] = mapped_column(String(100))
    current_street_name: Mapped[str | None] = mapped_column(String(255))
    current_city: Mapped[str | None] = mapped_column(String(100))
    current_state_province: Mapped[str | None] = mapped_column(String(100))
    current_postal_code: Mapped[str | None] = mapped_column(String(20))
    current_country: Mapped[str | None] = mapped_column(String(2))

    # ── Employment & income ──────────────────────────────────
    employment_status: Mapped[str | None] = mapped_column(String(30))
    employer_name: Mapped[str | None] = mapped_column(String(255))
    job_title: Mapped[str | None] = mapped_column(String(255))
    employment_type: Mapped[str | None] = mapped_column(String(30))
    employment_start_date: Mapped[date | None] = mapped_column(Date)
    monthly_income: Mapped[float | None] = mapped_column(Float)
    income_currency: Mapped[str | None] = mapped_column(String(3))
    gross_annual_income: Mapped[float | None] = mapped_column(Float)
    net_monthly_income: Mapped[float | None] = mapped_column(Float)

    business_name: Mapped[str | None] = mapped_column(String(255))
    business_type: Mapped[str | None] = mapped_column(String(100))
    business_start_date: Mapped[date | None] = mapped_column(Date)
    gross_annual_revenue: Mapped[float | None] = mapped_column(Float)

    university_name: Mapped[str | None] = mapped_column(String(255))
    program_of_study: Mapped[str | None] = mapped_column(String(255))
    expected_graduation_date: Mapped[date | None] = mapped_column(Date)
    student_income_source: Mapped[str | None] = mapped_column(String(255))
    student_income_source_type: Mapped[str | None] = mapped_column(String(50))
    student_income_source_other: Mapped[str | None] = mapped_column(String(255))
    student_monthly_income: Mapped[float | None] = mapped_column(Float)

    pension_type: Mapped[str | None] = mapped_column(String(50))
    pension_monthly_income: Mapped[float | None] = mapped_column(Float)
    pension_provider: Mapped[str | None] = mapped_column(String(255))
    retirement_other_income: Mapped[float | None] = mapped_column(Float)

    receiving_unemployment_benefits: Mapped[bool | None] = mapped_column(Boolean)
    unemployment_benefits_amount: Mapped[float | None] = mapped_column(Float)
    unemployed_income_source: Mapped[str | None] = mapped_column(String(50))
    unemployed_income_source_other: Mapped[str | None] = mapped_column(String(255))

    other_employment_situation: Mapped[str | None] = mapped_column(String(50))
    other_employment_situation_details: Mapped[str | None] = mapped_column(Text)
    expected_return_to_work: Mapped[date | None] = mapped_column(Date)
    other_situation_monthly_income: Mapped[float | None] = mapped_column(Float)
    other_situation_income_source: Mapped[str | None] = mapped_column(String(255))

    # ── Credit & rental history ──────────────────────────────
    authorize_credit_check: Mapped[bool | None] = mapped_column(Boolean)
    authorize_background_check: Mapped[bool | None] = mapped_column(Boolean)
    credit_check_provider_preference: Mapped[str | None] = mapped_column(String(30))
    has_ccjs_or_bankruptcies: Mapped[bool | None] = mapped_column(Boolean)
    ccj_bankruptcy_details: Mapped[str | None] = mapped_column(Text)
    has_eviction_history: Mapped[bool | None] = mapped_column(Boolean)
    eviction_details: Mapped[str | None] = mapped_column(Text)

    current_living_situation: Mapped[str | None] = mapped_column(String(30))
    current_address_move_in_date: Mapped[date | None] = mapped_column(Date)
    current_monthly_rent: Mapped[float | None] = mapped_column(Float)
    current_rent_currency: Mapped[str | None] = mapped_column(String(3))
    current_landlord_name: Mapped[str | None] = mapped_column(String(200))
    current_landlord_contact: Mapped[str | None] = mapped_column(String(200))
    reason_for_moving: Mapped[str | None] = mapped_column(String(50))
    reason_for_moving_other: Mapped[str | None] = mapped_column(String(200))

    # JSON arrays of dicts, e.g. [{"street_name": ..., "from_date": ...}]
    previous_addresses: Mapped[list | None] = mapped_column(JSON)
    landlord_references: Mapped[list | None] = mapped_column(JSON)
    other_references: Mapped[list | None] = mapped_column(JSON)

    # ── Documents (private storage paths) ────────────────────
    id_document_front_path: Mapped[str | None] = mapped_column(String(500))
    id_document_front_original_name: Mapped[str | None] = mapped_column(String(255))
    id_document_back_path: Mapped[str | None] = mapped_column(String(500))
    id_document_back_original_name: Mapped[str | None] = mapped_column(String(255))
    residence_permit_document_path: Mapped[str | None] = mapped_column(String(500))
    residence_permit_document_original_name: Mapped[str | None] = mapped_column(String(255))
    right_to_rent_document_path: Mapped[str | None] = mapped_column(String(500))
    right_to_rent_document_original_name: Mapped[str | None] = mapped_column(String(255))
    employment_contract_path: Mapped[str | None] = mapped_column(String(500))
    employment_contract_original_name: Mapped[str | None] = mapped_column(String(255))
    payslip_1_path: Mapped[str | None] = mapped_column(String(500))
    payslip_1_original_name: Mapped[str | None] = mapped_column(String(255))
    payslip_2_path: Mapped[str | None] = mapped_column(String(500))
    payslip_2_original_name: Mapped[str | None] = mapped_column(String(255))
    payslip_3_path: Mapped[str | None] = mapped_column(String(500))
    payslip_3_original_name: Mapped[str | None] = mapped_column(String(255))
    student_proof_path: Mapped[str | None] = mapped_column(String(500))
    student_proof_original_name: Mapped[str | None] = mapped_column(String(255))
    pension_statement_path: Mapped[str | None] = mapped_column(String(500))
    pension_statement_original_name: Mapped[str | None] = mapped_column(String(255))
    benefits_statement_path: Mapped[str | None] = mapped_column(String(500))
    benefits_statement_original_name: Mapped[str | None] = mapped_column(String(255))
    other_income_proof_path: Mapped[str | None] = mapped_column(String(500))
    other_income_proof_original_name: Mapped[str | None] = mapped_column(String(255))

    # Single-guarantor documents
    guarantor_id_front_path: Mapped[str | None] = mapped_column(String(500))
    guarantor_id_front_original_name: Mapped[str | None] = mapped_column(String(255))
    guarantor_id_back_path: Mapped[str | None] = mapped_column(String(500))
    guarantor_id_back_original_name: Mapped[str | None] = mapped_column(String(255))
    guarantor_proof_income_path: Mapped[str | None] = mapped_column(String(500))
    guarantor_proof_income_original_name: Mapped[str | None] = mapped_column(String(255))
    guarantor_employment_contract_path: Mapped[str | None] = mapped_column(String(500))
    guarantor_employment_contract_original_name: Mapped[str | None] = mapped_column(String(255))
    guarantor_payslip_1_path: Mapped[str | None] = mapped_column(String(500))
    guarantor_payslip_1_original_name: Mapped[str | None] = mapped_column(String(255))
    guarantor_payslip_2_path: Mapped[str | None] = mapped_column(String(500))
    guarantor_payslip_2_original_name: Mapped[str | None] = mapped_column(String(255))
    guarantor_payslip_3_path: Mapped[str | None] = mapped_column(String(500))
    guarantor_payslip_3_original_name: Mapped[str | None] = mapped_column(String(255))
    guarantor_student_proof_path: Mapped[str | None] = mapped_column(String(500))
    guarantor_student_proof_original_name: Mapped[str | None] = mapped_column(String(255))
    guarantor_other_income_proof_path: Mapped[str | None] = mapped_column(String(500))
    guarantor_other_income_proof_original_name: Mapped[str | None] = mapped_column(String(255))

    # Stamped once the minimum identity/employment data is on file; never cleared
    verified_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
