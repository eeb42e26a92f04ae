"""Initial schema: users, tenant profiles, properties, applications, leads.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-19

Run with:
    alembic upgrade head
    # or
    python -m rentflow.cli migrate
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # ── Accounts ─────────────────────────────────────────────

    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column(
            "role",
            sa.Enum("TENANT", "PROPERTY_MANAGER", name="userrole"),
            server_default="TENANT",
        ),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "tenant_profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False, unique=True),
        # ── Identity ─────────────────────────────────────────────
        sa.Column("date_of_birth", sa.Date()),
        sa.Column("middle_name", sa.String(100)),
        sa.Column("nationality", sa.String(2)),
        sa.Column("phone_country_code", sa.String(5)),
        sa.Column("phone_number", sa.String(20)),
        sa.Column("bio", sa.Text()),
        sa.Column("id_document_type", sa.String(30)),
        sa.Column("id_number", sa.String(100)),
        sa.Column("id_issuing_country", sa.String(2)),
        sa.Column("id_expiry_date", sa.Date()),
        sa.Column("immigration_status", sa.String(30)),
        sa.Column("immigration_status_other", sa.String(100)),
        sa.Column("visa_type", sa.String(100)),
        sa.Column("visa_type_other", sa.String(100)),
        sa.Column("visa_expiry_date", sa.Date()),
        sa.Column("work_permit_number", sa.String(100)),
        sa.Column("right_to_rent_share_code", sa.String(50)),
        # ── Current address ──────────────────────────────────────
        sa.Column("current_house_number", sa.String(20)),
        sa.Column("current_address_line_2", sa.String(100)),
        sa.Column("current_street_name", sa.String(255)),
        sa.Column("current_city", sa.String(100)),
        sa.Column("current_state_province", sa.String(100)),
        sa.Column("current_postal_code", sa.String(20)),
        sa.Column("current_country", sa.String(2)),
        # ── Employment & income ──────────────────────────────────
        sa.Column("employment_status", sa.String(30)),
        sa.Column("employer_name", sa.String(255)),
        sa.Column("job_title", sa.String(255)),
        sa.Column("employment_type", sa.String(30)),
        sa.Column("employment_start_date", sa.Date()),
        sa.Column("monthly_income", sa.Float()),
        sa.Column("income_currency", sa.String(3)),
        sa.Column("gross_annual_income", sa.Float()),
        sa.Column("net_monthly_income", sa.Float()),
        sa.Column("business_name", sa.String(255)),
        sa.Column("business_type", sa.String(100)),
        sa.Column("business_start_date", sa.Date()),
        sa.Column("gross_annual_revenue", sa.Float()),
        sa.Column("university_name", sa.String(255)),
        sa.Column("program_of_study", sa.String(255)),
        sa.Column("expected_graduation_date", sa.Date()),
        sa.Column("student_income_source", sa.String(255)),
        sa.Column("student_income_source_type", sa.String(50)),
        sa.Column("student_income_source_other", sa.String(255)),
        sa.Column("student_monthly_income", sa.Float()),
        sa.Column("pension_type", sa.String(50)),
        sa.Column("pension_monthly_income", sa.Float()),
        sa.Column("pension_provider", sa.String(255)),
        sa.Column("retirement_other_income", sa.Float()),
        sa.Column("receiving_unemployment_benefits", sa.Boolean()),
        sa.Column("unemployment_benefits_amount", sa.Float()),
        sa.Column("unemployed_income_source", sa.String(50)),
        sa.Column("unemployed_income_source_other", sa.String(255)),
        sa.Column("other_employment_situation", sa.String(50)),
        sa.Column("other_employment_situation_details", sa.Text()),
        sa.Column("expected_return_to_work", sa.Date()),
        sa.Column("other_situation_monthly_income", sa.Float()),
        sa.Column("other_situation_income_source", sa.String(255)),
        # ── Credit & rental history ──────────────────────────────
        sa.Column("authorize_credit_check", sa.Boolean()),
        sa.Column("authorize_background_check", sa.Boolean()),
        sa.Column("credit_check_provider_preference", sa.String(30)),
        sa.Column("has_ccjs_or_bankruptcies", sa.Boolean()),
        sa.Column("ccj_bankruptcy_details", sa.Text()),
        sa.Column("has_eviction_history", sa.Boolean()),
        sa.Column("eviction_details", sa.Text()),
        sa.Column("current_living_situation", sa.String(30)),
        sa.Column("current_address_move_in_date", sa.Date()),
        sa.Column("current_monthly_rent", sa.Float()),
        sa.Column("current_rent_currency", sa.String(3)),
        sa.Column("current_landlord_name", sa.String(200)),
        sa.Column("current_landlord_contact", sa.String(200)),
        sa.Column("reason_for_moving", sa.String(50)),
        sa.Column("reason_for_moving_other", sa.String(200)),
        sa.Column("previous_addresses", sa.JSON()),
        sa.Column("landlord_references", sa.JSON()),
        sa.Column("other_references", sa.JSON()),
        # ── Documents (private storage paths) ────────────────────
        sa.Column("id_document_front_path", sa.String(500)),
        sa.Column("id_document_front_original_name", sa.String(255)),
        sa.Column("id_document_back_path", sa.String(500)),
        sa.Column("id_document_back_original_name", sa.String(255)),
        sa.Column("residence_permit_document_path", sa.String(500)),
        sa.Column("residence_permit_document_original_name", sa.String(255)),
        sa.Column("right_to_rent_document_path", sa.String(500)),
        sa.Column("right_to_rent_document_original_name", sa.String(255)),
        sa.Column("employment_contract_path", sa.String(500)),
        sa.Column("employment_contract_original_name", sa.String(255)),
        sa.Column("payslip_1_path", sa.String(500)),
        sa.Column("payslip_1_original_name", sa.String(255)),
        sa.Column("payslip_2_path", sa.String(500)),
        sa.Column("payslip_2_original_name", sa.String(255)),
        sa.Column("payslip_3_path", sa.String(500)),
        sa.Column("payslip_3_original_name", sa.String(255)),
        sa.Column("student_proof_path", sa.String(500)),
        sa.Column("student_proof_original_name", sa.String(255)),
        sa.Column("pension_statement_path", sa.String(500)),
        sa.Column("pension_statement_original_name", sa.String(255)),
        sa.Column("benefits_statement_path", sa.String(500)),
        sa.Column("benefits_statement_original_name", sa.String(255)),
        sa.Column("other_income_proof_path", sa.String(500)),
        sa.Column("other_income_proof_original_name", sa.String(255)),
        sa.Column("guarantor_id_front_path", sa.String(500)),
        sa.Column("guarantor_id_front_original_name", sa.String(255)),
        sa.Column("guarantor_id_back_path", sa.String(500)),
        sa.Column("guarantor_id_back_original_name", sa.String(255)),
        sa.Column("guarantor_proof_income_path", sa.String(500)),
        sa.Column("guarantor_proof_income_original_name", sa.String(255)),
        sa.Column("guarantor_employment_contract_path", sa.String(500)),
        sa.Column("guarantor_employment_contract_original_name", sa.String(255)),
        sa.Column("guarantor_payslip_1_path", sa.String(500)),
        sa.Column("guarantor_payslip_1_original_name", sa.String(255)),
        sa.Column("guarantor_payslip_2_path", sa.String(500)),
        sa.Column("guarantor_payslip_2_original_name", sa.String(255)),
        sa.Column("guarantor_payslip_3_path", sa.String(500)),
        sa.Column("guarantor_payslip_3_original_name", sa.String(255)),
        sa.Column("guarantor_student_proof_path", sa.String(500)),
        sa.Column("guarantor_student_proof_original_name", sa.String(255)),
        sa.Column("guarantor_other_income_proof_path", sa.String(500)),
        sa.Column("guarantor_other_income_proof_original_name", sa.String(255)),
        sa.Column("verified_at", sa.DateTime()),
        *_timestamps(),
    )
    op.create_index("ix_tenant_profiles_user_id", "tenant_profiles", ["user_id"])

    # ── Listings ─────────────────────────────────────────────

    op.create_table(
        "properties",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "property_manager_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("status", sa.String(20), server_default="draft"),
        sa.Column("visibility", sa.String(20), server_default="private"),
        sa.Column("accepting_applications", sa.Boolean(), server_default=sa.false()),
        sa.Column("wizard_step", sa.Integer(), server_default="1"),
        # ── Type ─────────────────────────────────────────────────
        sa.Column("type", sa.String(20)),
        sa.Column("subtype", sa.String(30)),
        # ── Location ─────────────────────────────────────────────
        sa.Column("house_number", sa.String(20)),
        sa.Column("street_name", sa.String(255)),
        sa.Column("street_line2", sa.String(255)),
        sa.Column("city", sa.String(100)),
        sa.Column("state", sa.String(100)),
        sa.Column("postal_code", sa.String(20)),
        sa.Column("country", sa.String(2)),
        # ── Specifications ───────────────────────────────────────
        sa.Column("bedrooms", sa.Integer()),
        sa.Column("bathrooms", sa.Float()),
        sa.Column("size", sa.Float()),
        sa.Column("floor_level", sa.Integer()),
        sa.Column("has_elevator", sa.Boolean()),
        sa.Column("year_built", sa.Integer()),
        sa.Column("parking_spots_interior", sa.Integer()),
        sa.Column("parking_spots_exterior", sa.Integer()),
        sa.Column("balcony_size", sa.Float()),
        sa.Column("land_size", sa.Float()),
        # ── Amenities ────────────────────────────────────────────
        sa.Column("kitchen_equipped", sa.Boolean()),
        sa.Column("kitchen_separated", sa.Boolean()),
        sa.Column("has_cellar", sa.Boolean()),
        sa.Column("has_laundry", sa.Boolean()),
        sa.Column("has_fireplace", sa.Boolean()),
        sa.Column("has_air_conditioning", sa.Boolean()),
        sa.Column("has_garden", sa.Boolean()),
        sa.Column("has_rooftop", sa.Boolean()),
        # ── Energy ───────────────────────────────────────────────
        sa.Column("energy_class", sa.String(5)),
        sa.Column("thermal_insulation_class", sa.String(5)),
        sa.Column("heating_type", sa.String(20)),
        # ── Pricing ──────────────────────────────────────────────
        sa.Column("rent_amount", sa.Float()),
        sa.Column("rent_currency", sa.String(3)),
        sa.Column("available_date", sa.Date()),
        # ── Media ────────────────────────────────────────────────
        sa.Column("title", sa.String(255)),
        sa.Column("description", sa.Text()),
        sa.Column("extras", sa.JSON()),
        sa.Column("published_at", sa.DateTime()),
        *_timestamps(),
    )
    op.create_index("ix_properties_property_manager_id", "properties", ["property_manager_id"])
    op.create_index("ix_properties_status", "properties", ["status"])

    op.create_table(
        "property_images",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "property_id",
            sa.String(36),
            sa.ForeignKey("properties.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("image_path", sa.String(500), nullable=False),
        sa.Column("original_filename", sa.String(255)),
        sa.Column("sort_order", sa.Integer(), server_default="0"),
        sa.Column("is_main", sa.Boolean(), server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_property_images_property_id", "property_images", ["property_id"])

    # ── Applications ─────────────────────────────────────────

    op.create_table(
        "applications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "tenant_profile_id", sa.String(36), sa.ForeignKey("tenant_profiles.id"), nullable=False
        ),
        sa.Column("property_id", sa.String(36), sa.ForeignKey("properties.id"), nullable=False),
        sa.Column("status", sa.String(20), server_default="draft"),
        sa.Column("current_step", sa.Integer(), server_default="1"),
        sa.Column("invited_via_token", sa.String(64)),
        # ── Household ────────────────────────────────────────────
        sa.Column("desired_move_in_date", sa.Date()),
        sa.Column("lease_duration_months", sa.Integer()),
        sa.Column("is_flexible_on_move_in", sa.Boolean()),
        sa.Column("is_flexible_on_duration", sa.Boolean()),
        sa.Column("message_to_landlord", sa.Text()),
        sa.Column("additional_occupants", sa.Integer()),
        sa.Column("occupants_details", sa.JSON()),
        sa.Column("has_pets", sa.Boolean()),
        sa.Column("pets_details", sa.JSON()),
        sa.Column("emergency_contact_first_name", sa.String(100)),
        sa.Column("emergency_contact_last_name", sa.String(100)),
        sa.Column("emergency_contact_relationship", sa.String(100)),
        sa.Column("emergency_contact_relationship_other", sa.String(100)),
        sa.Column("emergency_contact_phone_country_code", sa.String(10)),
        sa.Column("emergency_contact_phone_number", sa.String(30)),
        sa.Column("emergency_contact_email", sa.String(255)),
        # ── Financial support ────────────────────────────────────
        sa.Column("co_signers", sa.JSON()),
        sa.Column("guarantors", sa.JSON()),
        sa.Column("interested_in_rent_insurance", sa.String(20)),
        sa.Column("existing_insurance_provider", sa.String(200)),
        sa.Column("existing_insurance_policy_number", sa.String(100)),
        # ── Additional information & documents ───────────────────
        sa.Column("additional_information", sa.Text()),
        sa.Column("additional_documents", sa.JSON()),
        sa.Column("application_id_document_path", sa.String(500)),
        sa.Column("application_id_document_original_name", sa.String(255)),
        sa.Column("application_proof_of_income_path", sa.String(500)),
        sa.Column("application_proof_of_income_original_name", sa.String(255)),
        sa.Column("application_reference_letter_path", sa.String(500)),
        sa.Column("application_reference_letter_original_name", sa.String(255)),
        # ── Declarations ─────────────────────────────────────────
        sa.Column("declaration_accuracy", sa.Boolean()),
        sa.Column("consent_screening", sa.Boolean()),
        sa.Column("consent_data_processing", sa.Boolean()),
        sa.Column("consent_reference_contact", sa.Boolean()),
        sa.Column("consent_data_sharing", sa.Boolean()),
        sa.Column("consent_marketing", sa.Boolean()),
        sa.Column("digital_signature", sa.String(200)),
        # ── Snapshot at submission ───────────────────────────────
        sa.Column("snapshot_first_name", sa.String(100)),
        sa.Column("snapshot_last_name", sa.String(100)),
        sa.Column("snapshot_email", sa.String(255)),
        sa.Column("snapshot_phone", sa.String(20)),
        sa.Column("snapshot_date_of_birth", sa.Date()),
        sa.Column("snapshot_nationality", sa.String(2)),
        sa.Column("snapshot_employment_status", sa.String(30)),
        sa.Column("snapshot_employer_name", sa.String(255)),
        sa.Column("snapshot_job_title", sa.String(255)),
        sa.Column("snapshot_monthly_income", sa.Float()),
        sa.Column("submitted_at", sa.DateTime()),
        *_timestamps(),
    )
    op.create_index("ix_applications_tenant_profile_id", "applications", ["tenant_profile_id"])
    op.create_index("ix_applications_property_id", "applications", ["property_id"])
    op.create_index("ix_applications_status", "applications", ["status"])

    op.create_table(
        "leads",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("property_id", sa.String(36), sa.ForeignKey("properties.id"), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), server_default="new"),
        sa.Column("first_name", sa.String(100)),
        sa.Column("last_name", sa.String(100)),
        sa.Column("source", sa.String(20)),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id")),
        sa.Column("application_id", sa.String(36), sa.ForeignKey("applications.id")),
        sa.Column("notes", sa.Text()),
        sa.Column("invited_at", sa.DateTime()),
        *_timestamps(),
    )
    op.create_index("ix_leads_property_id", "leads", ["property_id"])
    op.create_index("ix_leads_email", "leads", ["email"])


def downgrade() -> None:
    op.drop_table("leads")
    op.drop_table("applications")
    op.drop_table("property_images")
    op.drop_table("properties")
    op.drop_table("tenant_profiles")
    op.drop_table("users")
    sa.Enum(name="userrole").drop(op.get_bind(), checkfirst=True)
