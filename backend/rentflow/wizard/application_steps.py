"""Rule providers for the 7-step rental application wizard.

Steps:
  1 identity    personal details, ID document, immigration, current address
  2 household   move-in, lease, occupants, pets, emergency contact
  3 financial   employment status and the income evidence it implies
  4 support     co-signers, guarantors, rent insurance
  5 history     credit authorization, rental history, references
  6 additional  free text and extra documents
  7 consent     declarations and digital signature
  8 review      (synthetic, always valid)

Every provider is a pure function of the merged data and the context.
Fields prefixed `profile_` belong to the applicant's TenantProfile; the
rest belong to the application itself. Document slots are only required
while the profile has nothing on file for them.
"""

from collections.abc import Mapping
from typing import Any

from rentflow.wizard import lookups as lk
from rentflow.wizard.progression import ProgressionEngine
from rentflow.wizard.registry import StepDefinition, StepRegistry, WizardContext
from rentflow.wizard.rules import (
    FieldRule,
    accepted,
    after_field,
    after_today,
    at_least_years_old,
    before_or_equal_today,
    boolean,
    country_code,
    document,
    email,
    integer,
    is_date,
    is_list,
    max_items,
    max_length,
    min_value,
    max_value,
    numeric,
    one_of,
    optional,
    phone,
    postal_code,
    required,
    required_if,
    string,
    to_bool,
)

Data = Mapping[str, Any]


def _text(limit: int):
    return (string(), max_length(limit))


def _upper(value: Any) -> str:
    return str(value).strip().upper() if value else ""


# ── Step 1: Identity & legal eligibility ────────────────────

def identity_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    country = _upper(data.get("profile_current_country"))
    state_rule = required if country in lk.COUNTRIES_REQUIRING_STATE else optional

    return [
        # Personal details
        required(
            "profile_date_of_birth", is_date(), at_least_years_old(18),
            messages={
                "required": "Date of birth is required",
                "before": "You must be at least 18 years old",
            },
        ),
        optional("profile_middle_name", *_text(100)),
        required(
            "profile_nationality", string(), max_length(2), country_code(),
            messages={"required": "Nationality is required"},
        ),
        required("profile_phone_country_code", *_text(5)),
        required(
            "profile_phone_number", *_text(20), phone("profile_phone_country_code"),
            messages={"required": "Phone number is required"},
        ),
        optional("profile_bio", *_text(1000)),

        # ID document
        required(
            "profile_id_document_type", one_of(lk.ID_DOCUMENT_TYPES),
            messages={"required": "ID document type is required"},
        ),
        required(
            "profile_id_number", *_text(100),
            messages={"required": "ID number is required"},
        ),
        required(
            "profile_id_issuing_country", string(), max_length(2), country_code(),
            messages={"required": "ID issuing country is required"},
        ),
        required(
            "profile_id_expiry_date", is_date(), after_today(),
            messages={
                "required": "ID expiry date is required",
                "after": "ID document must not be expired",
            },
        ),

        # Immigration status
        optional("profile_immigration_status", one_of(lk.IMMIGRATION_STATUSES)),
        required_if(
            "profile_immigration_status_other", "profile_immigration_status", "other",
            *_text(100),
            messages={"required_if": "Please specify your immigration status"},
        ),
        required_if(
            "profile_visa_type", "profile_immigration_status", "visa_holder",
            *_text(100),
            messages={"required_if": "Visa type is required for visa holders"},
        ),
        required_if(
            "profile_visa_expiry_date", "profile_immigration_status", "visa_holder",
            is_date(), after_today(),
            messages={
                "required_if": "Visa expiry date is required",
                "after": "Visa must not be expired",
            },
        ),
        optional("profile_work_permit_number", *_text(100)),
        optional("profile_right_to_rent_share_code", *_text(50)),

        # Current address
        required(
            "profile_current_house_number", *_text(20),
            messages={"required": "House number is required"},
        ),
        optional("profile_current_address_line_2", *_text(100)),
        required(
            "profile_current_street_name", *_text(255),
            messages={"required": "Street name is required"},
        ),
        required(
            "profile_current_city", *_text(100),
            messages={"required": "City is required"},
        ),
        state_rule(
            "profile_current_state_province", *_text(100),
            messages={"required": "State/Province is required for this country"},
        ),
        required(
            "profile_current_postal_code", *_text(20), postal_code("profile_current_country"),
            messages={"required": "Postal code is required"},
        ),
        required(
            "profile_current_country", string(), max_length(2), country_code(),
            messages={"required": "Country is required"},
        ),

        # ID documents (upload once)
        document(
            "profile_id_document_front",
            needed=not ctx.has_document("id_document_front"),
            messages={"required": "Front side of ID document is required"},
        ),
        document(
            "profile_id_document_back",
            needed=not ctx.has_document("id_document_back"),
            messages={"required": "Back side of ID document is required"},
        ),
    ]


# ── Step 2: Household composition ───────────────────────────

def household_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    return [
        # Move-in & lease
        required(
            "desired_move_in_date", is_date(), after_today(),
            messages={
                "required": "Move-in date is required",
                "after": "Move-in date must be in the future",
            },
        ),
        required(
            "lease_duration_months", integer(), min_value(1), max_value(60),
            messages={
                "required": "Lease duration is required",
                "min": "Lease duration must be at least 1 month",
                "max": "Lease duration cannot exceed 60 months",
            },
        ),
        optional("is_flexible_on_move_in", boolean()),
        optional("is_flexible_on_duration", boolean()),

        # Occupants
        required(
            "additional_occupants", integer(), min_value(0), max_value(20),
            messages={"max": "Cannot have more than 20 additional occupants"},
        ),
        optional("occupants_details", is_list()),
        required(
            "occupants_details.*.first_name", *_text(100),
            messages={
                "required": "First name is required",
                "max": "First name cannot exceed 100 characters",
            },
        ),
        required(
            "occupants_details.*.last_name", *_text(100),
            messages={
                "required": "Last name is required",
                "max": "Last name cannot exceed 100 characters",
            },
        ),
        required(
            "occupants_details.*.date_of_birth", is_date(),
            messages={"required": "Date of birth is required"},
        ),
        required(
            "occupants_details.*.relationship", *_text(100),
            messages={"required": "Relationship is required"},
        ),
        optional("occupants_details.*.relationship_other", *_text(100)),
        optional("occupants_details.*.will_sign_lease", boolean()),
        optional("occupants_details.*.is_dependent", boolean()),

        # Pets
        required("has_pets", boolean()),
        optional("pets_details", is_list()),
        required(
            "pets_details.*.type", *_text(100),
            messages={"required": "Pet type is required"},
        ),
        optional("pets_details.*.type_other", *_text(100)),
        optional("pets_details.*.breed", *_text(100)),
        optional("pets_details.*.name", *_text(100)),
        optional(
            "pets_details.*.age_years", integer(), min_value(0), max_value(50),
            messages={"max": "Pet age cannot exceed 50 years"},
        ),
        optional("pets_details.*.weight_kg", numeric(), min_value(0)),
        optional("pets_details.*.size", one_of(lk.PET_SIZES)),
        optional("pets_details.*.is_registered_assistance_animal", boolean()),

        # Emergency contact
        optional("emergency_contact_first_name", *_text(100)),
        optional("emergency_contact_last_name", *_text(100)),
        optional("emergency_contact_relationship", *_text(100)),
        optional("emergency_contact_phone_country_code", *_text(10)),
        optional("emergency_contact_phone_number", *_text(30)),
        optional("emergency_contact_email", email(), max_length(255)),

        optional(
            "message_to_landlord", *_text(2000),
            messages={"max": "Message cannot exceed 2000 characters"},
        ),
    ]


# ── Step 3: Financial capability ────────────────────────────

_FINANCIAL_DOCUMENT_MESSAGES = {
    "employment_contract": "Employment contract is required",
    "payslip_1": "Payslip is required",
    "payslip_2": "Payslip is required",
    "payslip_3": "Payslip is required",
    "student_proof": "Proof of student status is required",
    "other_income_proof": "Proof of income source is required",
}


def _documents_required_by_status(status: Any) -> set[str]:
    if status in ("employed", "self_employed"):
        return {"employment_contract", "payslip_1", "payslip_2", "payslip_3"}
    if status == "student":
        return {"student_proof"}
    if status in ("unemployed", "retired"):
        return {"other_income_proof"}
    return set()


def financial_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    status = data.get("profile_employment_status")
    employed = status in ("employed", "self_employed")
    student = status == "student"
    if_employed = required if employed else optional
    if_student = required if student else optional
    needed = _documents_required_by_status(status)

    rules = [
        required(
            "profile_employment_status", one_of(lk.EMPLOYMENT_STATUSES),
            messages={"required": "Please select your employment status"},
        ),
        required(
            "profile_income_currency", one_of(lk.CURRENCIES),
            messages={"required": "Please select your income currency"},
        ),
        if_employed(
            "profile_employer_name", *_text(255),
            messages={"required": "Employer name is required"},
        ),
        if_employed(
            "profile_job_title", *_text(255),
            messages={"required": "Job title is required"},
        ),
        optional("profile_employment_type", one_of(lk.EMPLOYMENT_TYPES)),
        optional("profile_employment_start_date", is_date(), before_or_equal_today()),
        if_employed(
            "profile_monthly_income", numeric(), min_value(0),
            messages={
                "required": "Monthly income is required",
                "min": "Income must be a positive number",
            },
        ),
        if_student(
            "profile_university_name", *_text(255),
            messages={"required": "University name is required"},
        ),
        if_student(
            "profile_program_of_study", *_text(255),
            messages={"required": "Program of study is required"},
        ),
        optional("profile_expected_graduation_date", is_date(), after_today()),
        optional("profile_student_income_source", *_text(255)),
    ]

    for slot, message in _FINANCIAL_DOCUMENT_MESSAGES.items():
        rules.append(document(
            f"profile_{slot}",
            needed=slot in needed and not ctx.has_document(slot),
            messages={"required": message},
        ))
    return rules


# ── Step 4: Financial support ───────────────────────────────

def _signer_rules(group: str, who: str) -> list[FieldRule]:
    """Rules shared by co-signers and guarantors (`group.*.field`)."""
    p = f"{group}.*."
    return [
        required(p + "first_name", *_text(100), messages={"required": f"{who} first name is required"}),
        required(p + "last_name", *_text(100), messages={"required": f"{who} last name is required"}),
        required(p + "email", email(), max_length(255), messages={"required": f"{who} email is required"}),
        required(p + "phone_country_code", *_text(10)),
        required(p + "phone_number", *_text(30)),
        required(
            p + "date_of_birth", is_date(), at_least_years_old(18),
            messages={"before": f"{who} must be at least 18 years old"},
        ),
        required(p + "nationality", *_text(2)),
        required(p + "relationship", one_of(lk.RELATIONSHIPS)),
        optional(p + "relationship_other", *_text(100)),
        # ID document
        required(p + "id_document_type", one_of(lk.ID_DOCUMENT_TYPES)),
        required(p + "id_number", *_text(100)),
        required(p + "id_issuing_country", *_text(2)),
        required(
            p + "id_expiry_date", is_date(), after_today(),
            messages={"after": "ID document must not be expired"},
        ),
        # Address
        required(p + "street_name", *_text(255)),
        required(p + "house_number", *_text(50)),
        optional(p + "address_line_2", *_text(255)),
        required(p + "city", *_text(100)),
        optional(p + "state_province", *_text(100)),
        required(p + "postal_code", *_text(20)),
        required(p + "country", *_text(2)),
        # Employment
        required(p + "employment_status", one_of(lk.EMPLOYMENT_STATUSES + ("other",))),
        optional(p + "employer_name", *_text(200)),
        optional(p + "job_title", *_text(100)),
    ]


def _legacy_guarantor_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    """Single-guarantor profile fields, enforced when profile_has_guarantor is set."""
    status = data.get("profile_guarantor_employment_status")
    employed = status in ("employed", "self_employed")
    student = status == "student"
    if_employed = required if employed else optional
    if_student = required if student else optional
    country = _upper(data.get("profile_guarantor_country"))
    state_rule = required if country in lk.COUNTRIES_REQUIRING_STATE else optional
    relationship_rule = required if data.get("profile_guarantor_relationship") == "Other" else optional
    p = "profile_guarantor_"

    rules = [
        required(p + "first_name", *_text(100), messages={"required": "Guarantor first name is required"}),
        required(p + "last_name", *_text(100), messages={"required": "Guarantor last name is required"}),
        required(p + "relationship", *_text(100), messages={"required": "Guarantor relationship is required"}),
        relationship_rule(
            p + "relationship_other", *_text(100),
            messages={"required": "Please specify the relationship"},
        ),
        required(p + "phone_country_code", *_text(5)),
        required(
            p + "phone_number", *_text(20),
            messages={"required": "Guarantor phone number is required"},
        ),
        required(
            p + "email", email(), max_length(255),
            messages={"required": "Guarantor email is required"},
        ),
        required(p + "street_name", *_text(255)),
        required(p + "house_number", *_text(20)),
        optional(p + "address_line_2", *_text(100)),
        required(p + "city", *_text(100)),
        state_rule(p + "state_province", *_text(100)),
        required(p + "postal_code", *_text(20)),
        required(p + "country", string(), max_length(2), country_code()),
        required(p + "employment_status", one_of(lk.EMPLOYMENT_STATUSES)),
        if_employed(p + "employer_name", *_text(255)),
        if_employed(p + "job_title", *_text(255)),
        if_employed(p + "employment_type", one_of(lk.EMPLOYMENT_TYPES)),
        if_employed(p + "employment_start_date", is_date(), before_or_equal_today()),
        required(
            p + "monthly_income", numeric(), min_value(0),
            messages={"required": "Guarantor income is required"},
        ),
        required(p + "income_currency", one_of(lk.CURRENCIES)),
        if_student(p + "university_name", *_text(255)),
        if_student(p + "program_of_study", *_text(255)),
        optional(p + "expected_graduation_date", is_date(), after_today()),
        optional(p + "student_income_source", *_text(255)),
    ]

    needed = {"guarantor_id_front", "guarantor_id_back"}
    needed |= {f"guarantor_{slot}" for slot in _documents_required_by_status(status)}
    document_messages = {
        "guarantor_id_front": "Guarantor ID document (front) is required",
        "guarantor_id_back": "Guarantor ID document (back) is required",
        "guarantor_employment_contract": "Guarantor employment contract is required",
        "guarantor_payslip_1": "Guarantor payslip is required",
    }
    for slot in (
        "guarantor_id_front", "guarantor_id_back", "guarantor_proof_income",
        "guarantor_employment_contract", "guarantor_payslip_1", "guarantor_payslip_2",
        "guarantor_payslip_3", "guarantor_student_proof", "guarantor_other_income_proof",
    ):
        message = document_messages.get(slot)
        rules.append(document(
            f"profile_{slot}",
            needed=slot in needed and not ctx.has_document(slot),
            messages={"required": message} if message else None,
        ))
    return rules


def support_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    rules = [
        optional("co_signers", is_list()),
        required("co_signers.*.occupant_index", integer(), min_value(0)),
        optional("co_signers.*.from_occupant_index", integer(), min_value(0)),
        *_signer_rules("co_signers", "Co-signer"),
        optional("co_signers.*.employment_type", one_of(lk.EMPLOYMENT_TYPES + ("zero_hours",))),
        optional("co_signers.*.employment_start_date", is_date(), before_or_equal_today()),
        optional("co_signers.*.net_monthly_income", numeric(), min_value(0)),
        optional("co_signers.*.income_currency", *_text(3)),

        optional("guarantors", is_list()),
        required("guarantors.*.for_signer_type", one_of(lk.GUARANTOR_SIGNER_TYPES)),
        optional("guarantors.*.for_co_signer_index", integer(), min_value(0)),
        *_signer_rules("guarantors", "Guarantor"),
        required(
            "guarantors.*.net_monthly_income", numeric(), min_value(0),
            messages={"required": "Guarantor income is required"},
        ),
        required("guarantors.*.income_currency", *_text(3)),
        required(
            "guarantors.*.consent_to_credit_check", accepted(),
            messages={"accepted": "Guarantor must consent to credit check"},
        ),
        required(
            "guarantors.*.consent_to_contact", accepted(),
            messages={"accepted": "Guarantor must consent to being contacted"},
        ),
        required(
            "guarantors.*.guarantee_consent_signed", accepted(),
            messages={"accepted": "Guarantor must sign the guarantee consent"},
        ),

        optional("interested_in_rent_insurance", one_of(lk.RENT_INSURANCE_OPTIONS)),
        optional("existing_insurance_provider", *_text(200)),
        optional("existing_insurance_policy_number", *_text(100)),
    ]

    if to_bool(data.get("profile_has_guarantor")):
        rules.extend(_legacy_guarantor_rules(data, ctx))
    return rules


# ── Step 5: Credit & rental history ─────────────────────────

def history_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    prev = "profile_previous_addresses.*."
    landlord = "profile_landlord_references.*."
    other = "profile_other_references.*."

    return [
        # Credit check authorization
        required(
            "profile_authorize_credit_check", accepted(),
            messages={
                "required": "Credit check authorization is required",
                "accepted": "You must authorize the credit check to proceed",
            },
        ),
        optional("profile_authorize_background_check", boolean()),
        optional("profile_credit_check_provider_preference", one_of(lk.CREDIT_CHECK_PROVIDERS)),
        optional("profile_has_ccjs_or_bankruptcies", boolean()),
        required_if(
            "profile_ccj_bankruptcy_details", "profile_has_ccjs_or_bankruptcies", True,
            *_text(2000),
            messages={"required_if": "Please provide details about your CCJs or bankruptcies"},
        ),
        optional("profile_has_eviction_history", boolean()),
        required_if(
            "profile_eviction_details", "profile_has_eviction_history", True,
            *_text(2000),
            messages={"required_if": "Please provide details about your eviction history"},
        ),

        # Current address
        required(
            "profile_current_living_situation", one_of(lk.LIVING_SITUATIONS),
            messages={"required": "Please select your current living situation"},
        ),
        required("profile_current_street_name", *_text(255), messages={"required": "Street name is required"}),
        required("profile_current_house_number", *_text(20), messages={"required": "House number is required"}),
        optional("profile_current_address_line_2", *_text(100)),
        required("profile_current_city", *_text(100), messages={"required": "City is required"}),
        optional("profile_current_state_province", *_text(100)),
        required("profile_current_postal_code", *_text(20), messages={"required": "Postal code is required"}),
        required("profile_current_country", *_text(2), messages={"required": "Country is required"}),
        required(
            "profile_current_address_move_in_date", is_date(), before_or_equal_today(),
            messages={
                "required": "Move-in date is required",
                "before_or_equal": "Move-in date cannot be in the future",
            },
        ),
        required_if(
            "profile_current_monthly_rent", "profile_current_living_situation", "renting",
            numeric(), min_value(0),
            messages={"required_if": "Monthly rent is required for renters"},
        ),
        optional("profile_current_rent_currency", *_text(3)),
        optional("profile_current_landlord_name", *_text(200)),
        optional("profile_current_landlord_contact", *_text(200)),
        required(
            "profile_reason_for_moving", one_of(lk.REASONS_FOR_MOVING),
            messages={"required": "Please select your reason for moving"},
        ),
        required_if(
            "profile_reason_for_moving_other", "profile_reason_for_moving", "other",
            *_text(200),
            messages={"required_if": "Please specify your reason for moving"},
        ),

        # Previous addresses
        optional("profile_previous_addresses", is_list(), max_items(5)),
        required(prev + "street_name", *_text(255), messages={"required": "Street name is required"}),
        required(prev + "house_number", *_text(20)),
        optional(prev + "address_line_2", *_text(100)),
        required(prev + "city", *_text(100), messages={"required": "City is required"}),
        optional(prev + "state_province", *_text(100)),
        required(prev + "postal_code", *_text(20)),
        required(prev + "country", *_text(2)),
        required(prev + "from_date", is_date(), messages={"required": "Start date is required"}),
        required(
            prev + "to_date", is_date(), after_field(prev + "from_date"),
            messages={
                "required": "End date is required",
                "after": "End date must be after start date",
            },
        ),
        optional(prev + "living_situation", one_of(lk.LIVING_SITUATIONS)),
        optional(prev + "monthly_rent", numeric(), min_value(0)),
        optional(prev + "rent_currency", *_text(3)),
        optional(prev + "landlord_name", *_text(200)),
        optional(prev + "landlord_contact", *_text(200)),
        optional(prev + "can_contact_landlord", boolean()),

        # Landlord references
        optional("profile_landlord_references", is_list(), max_items(3)),
        required(landlord + "name", *_text(200), messages={"required": "Reference name is required"}),
        optional(landlord + "company", *_text(200)),
        required(
            landlord + "email", email(), max_length(255),
            messages={
                "required": "Reference email is required",
                "email": "Please enter a valid email address",
            },
        ),
        required(landlord + "phone", *_text(50), messages={"required": "Reference phone is required"}),
        optional(landlord + "property_address", *_text(500)),
        optional(landlord + "tenancy_start_date", is_date()),
        optional(landlord + "tenancy_end_date", is_date()),
        optional(landlord + "monthly_rent_paid", numeric(), min_value(0)),
        required(
            landlord + "consent_to_contact", accepted(),
            messages={"accepted": "Reference must consent to being contacted"},
        ),

        # Other references
        optional("profile_other_references", is_list(), max_items(2)),
        required(other + "name", *_text(200), messages={"required": "Reference name is required"}),
        required(
            other + "email", email(), max_length(255),
            messages={
                "required": "Reference email is required",
                "email": "Please enter a valid email address",
            },
        ),
        required(other + "phone", *_text(50), messages={"required": "Reference phone is required"}),
        required(
            other + "relationship", one_of(lk.REFERENCE_RELATIONSHIPS),
            messages={"required": "Reference relationship is required"},
        ),
        optional(other + "years_known", integer(), min_value(0), max_value(100)),
        required(
            other + "consent_to_contact", accepted(),
            messages={"accepted": "Reference must consent to being contacted"},
        ),
    ]


# ── Step 6: Additional information ──────────────────────────

def additional_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    return [
        optional(
            "additional_information", *_text(2000),
            messages={"max": "Additional information cannot exceed 2000 characters"},
        ),
        optional("additional_documents", is_list()),
        document("additional_documents.*", needed=False),
    ]


# ── Step 7: Declarations & consent ──────────────────────────

def consent_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    def declaration(field: str, message: str) -> FieldRule:
        return required(field, accepted(), messages={"required": message, "accepted": message})

    return [
        declaration("declaration_accuracy", "You must confirm the accuracy of your information"),
        declaration("consent_screening", "You must consent to background screening"),
        declaration("consent_data_processing", "You must consent to data processing"),
        declaration("consent_reference_contact", "You must consent to reference contact"),
        optional("consent_data_sharing", boolean()),
        optional("consent_marketing", boolean()),
        required(
            "digital_signature", *_text(200),
            messages={
                "required": "Digital signature is required",
                "max": "Signature cannot exceed 200 characters",
            },
        ),
    ]


APPLICATION_STEPS = StepRegistry("application", [
    StepDefinition(1, "identity", "Identity & Legal Eligibility", identity_rules),
    StepDefinition(2, "household", "Household Composition", household_rules),
    StepDefinition(3, "financial", "Financial Capability", financial_rules),
    StepDefinition(4, "support", "Financial Support", support_rules),
    StepDefinition(5, "history", "Credit & Rental History", history_rules),
    StepDefinition(6, "additional", "Additional Information", additional_rules),
    StepDefinition(7, "consent", "Declarations & Consent", consent_rules),
])

application_engine = ProgressionEngine(APPLICATION_STEPS)
