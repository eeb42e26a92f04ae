"""Build the flat record a wizard step is validated against.

Application wizard: every allow-listed TenantProfile column is exposed
as `profile_<field>`, then the request payload is laid over it (request
keys win). Property wizard: the persisted property columns with the
payload laid over them.

Nested request keys arrive either as lists of dicts or as flat dotted
keys (`occupants_details.0.first_name`); `unflatten` folds the latter
into the former so rule paths resolve the same way for both.
"""

from collections.abc import Iterable, Mapping
from typing import Any

# Profile columns the application wizard writes and reads.
PROFILE_FIELDS = (
    # Identity
    "date_of_birth", "middle_name", "nationality", "phone_country_code", "phone_number", "bio",
    "id_document_type", "id_number", "id_issuing_country", "id_expiry_date",
    "immigration_status", "immigration_status_other", "visa_type", "visa_type_other",
    "visa_expiry_date", "work_permit_number", "right_to_rent_share_code",
    "current_house_number", "current_address_line_2", "current_street_name", "current_city",
    "current_state_province", "current_postal_code", "current_country",
    # Employment & income
    "employment_status", "employer_name", "job_title", "employment_type", "employment_start_date",
    "monthly_income", "income_currency", "gross_annual_income", "net_monthly_income",
    "business_name", "business_type", "business_start_date", "gross_annual_revenue",
    "university_name", "program_of_study", "expected_graduation_date", "student_income_source",
    "student_income_source_type", "student_income_source_other", "student_monthly_income",
    "pension_type", "pension_monthly_income", "pension_provider", "retirement_other_income",
    "receiving_unemployment_benefits", "unemployment_benefits_amount",
    "unemployed_income_source", "unemployed_income_source_other",
    "other_employment_situation", "other_employment_situation_details", "expected_return_to_work",
    "other_situation_monthly_income", "other_situation_income_source",
    # Credit & rental history
    "authorize_credit_check", "authorize_background_check", "credit_check_provider_preference",
    "has_ccjs_or_bankruptcies", "ccj_bankruptcy_details", "has_eviction_history", "eviction_details",
    "current_living_situation", "current_address_move_in_date",
    "current_monthly_rent", "current_rent_currency",
    "current_landlord_name", "current_landlord_contact",
    "reason_for_moving", "reason_for_moving_other",
    "previous_addresses", "landlord_references", "other_references",
)

PROFILE_BOOLEAN_FIELDS = (
    "authorize_credit_check", "authorize_background_check",
    "has_ccjs_or_bankruptcies", "has_eviction_history",
)

# Upload slots stored on the profile as `<slot>_path` / `<slot>_original_name`.
PROFILE_DOCUMENT_SLOTS = (
    "id_document_front", "id_document_back", "residence_permit_document",
    "right_to_rent_document", "employment_contract", "payslip_1", "payslip_2", "payslip_3",
    "student_proof", "pension_statement", "benefits_statement", "other_income_proof",
    "guarantor_id_front", "guarantor_id_back", "guarantor_proof_income",
    "guarantor_employment_contract", "guarantor_payslip_1", "guarantor_payslip_2",
    "guarantor_payslip_3", "guarantor_student_proof", "guarantor_other_income_proof",
)

PROFILE_VALIDATION_FIELDS = PROFILE_FIELDS + tuple(
    f"{slot}_path" for slot in PROFILE_DOCUMENT_SLOTS
)

PROFILE_PREFIX = "profile_"


def unflatten(data: Mapping[str, Any]) -> dict[str, Any]:
    """Fold `group.0.field` keys into `{"group": [{"field": ...}]}`.

    Keys whose second segment is not an index are left untouched.
    Existing list values are extended in place of being replaced.
    """
    result: dict[str, Any] = {}
    nested: dict[str, dict[int, dict[str, Any]]] = {}

    for key, value in data.items():
        parts = key.split(".", 2)
        if len(parts) == 3 and parts[1].isdigit():
            group, index, field = parts[0], int(parts[1]), parts[2]
            nested.setdefault(group, {}).setdefault(index, {})[field] = value
        elif len(parts) == 2 and parts[1].isdigit():
            nested.setdefault(parts[0], {})[int(parts[1])] = value
        else:
            result[key] = value

    for group, items in nested.items():
        current = result.get(group)
        merged = list(current) if isinstance(current, list) else []
        for index in sorted(items):
            while len(merged) <= index:
                merged.append({})
            item = items[index]
            if isinstance(item, dict) and isinstance(merged[index], dict):
                merged[index] = {**merged[index], **item}
            else:
                merged[index] = item
        result[group] = merged
    return result


def profile_values(profile: Any) -> dict[str, Any]:
    if profile is None:
        return {}
    return {
        PROFILE_PREFIX + field: getattr(profile, field, None)
        for field in PROFILE_VALIDATION_FIELDS
    }


def merge_profile(profile: Any, data: Mapping[str, Any]) -> dict[str, Any]:
    """profile_* view of `profile` with `data` laid over it."""
    return {**profile_values(profile), **unflatten(data)}


def entity_values(entity: Any, fields: Iterable[str]) -> dict[str, Any]:
    if entity is None:
        return {}
    return {field: getattr(entity, field, None) for field in fields}


def merge_entity(entity: Any, data: Mapping[str, Any], fields: Iterable[str]) -> dict[str, Any]:
    """Persisted `fields` of `entity` with `data` laid over them."""
    return {**entity_values(entity, fields), **unflatten(data)}
