"""Rule toolkit, merger and coercion tests."""

from datetime import date

import pytest

from rentflow.models import TenantProfile
from rentflow.schemas import validators
from rentflow.utils.coercion import coerce_column_value
from rentflow.wizard.merger import merge_profile, unflatten
from rentflow.wizard.registry import StepDefinition, StepRegistry
from rentflow.wizard.rules import (
    accepted,
    after_field,
    after_today,
    email,
    evaluate,
    get_path,
    integer,
    is_date,
    max_length,
    max_value,
    min_value,
    one_of,
    optional,
    required,
    required_if,
    string,
)

TODAY = date(2026, 3, 1)


@pytest.mark.unit
class TestFieldRules:
    def test_wildcard_paths_report_concrete_keys(self):
        rules = [required("pets_details.*.type", string())]
        data = {"pets_details": [{"type": "dog"}, {"name": "Rex"}]}

        errors = evaluate(rules, data, TODAY)

        assert errors == {"pets_details.1.type": ["Pets details 1 type is required"]}

    def test_empty_optional_field_skips_checks(self):
        rules = [optional("bio", string(), max_length(5))]
        assert evaluate(rules, {"bio": ""}, TODAY) == {}
        assert evaluate(rules, {"bio": "far too long"}, TODAY) == {
            "bio": ["String should have at most 5 characters"]
        }

    def test_required_if_only_when_condition_holds(self):
        rules = [required_if("visa_type", "immigration_status", "visa_holder", string())]

        assert evaluate(rules, {"immigration_status": "citizen"}, TODAY) == {}
        errors = evaluate(rules, {"immigration_status": "visa_holder"}, TODAY)
        assert list(errors) == ["visa_type"]

    def test_required_if_matches_boolean_strings(self):
        rules = [required_if("eviction_details", "has_eviction_history", True, string())]
        assert "eviction_details" in evaluate(rules, {"has_eviction_history": "1"}, TODAY)
        assert evaluate(rules, {"has_eviction_history": "0"}, TODAY) == {}

    def test_accepted_stops_further_checks(self):
        rules = [required("consent", accepted(), string(), messages={"accepted": "Must accept"})]
        assert evaluate(rules, {"consent": False}, TODAY) == {"consent": ["Must accept"]}
        assert evaluate(rules, {"consent": "yes"}, TODAY) == {}

    def test_after_field_binds_sibling_in_group(self):
        rules = [required("addresses.*.to_date", is_date(), after_field("addresses.*.from_date"))]
        data = {"addresses": [
            {"from_date": "2019-01-01", "to_date": "2020-01-01"},
            {"from_date": "2021-01-01", "to_date": "2020-06-01"},
        ]}

        errors = evaluate(rules, data, TODAY)

        assert list(errors) == ["addresses.1.to_date"]

    def test_get_path_prefers_literal_flat_key(self):
        data = {"references.0.email": "flat@example.com", "references": [{"email": "nested@example.com"}]}
        assert get_path(data, "references.0.email") == "flat@example.com"
        assert get_path({"references": []}, "references.3.email") is None


@pytest.mark.unit
class TestChecks:
    def test_integer_accepts_numeric_strings(self):
        rules = [optional("lease_duration_months", integer(), messages={"integer": "Whole months only"})]
        assert evaluate(rules, {"lease_duration_months": "12"}, TODAY) == {}
        assert evaluate(rules, {"lease_duration_months": "12.5"}, TODAY) == {
            "lease_duration_months": ["Whole months only"]
        }

    def test_bounds_use_rule_messages(self):
        rules = [optional(
            "lease_duration_months", integer(), min_value(1), max_value(60),
            messages={"min": "At least 1", "max": "At most 60"},
        )]
        assert evaluate(rules, {"lease_duration_months": 0}, TODAY) == {"lease_duration_months": ["At least 1"]}
        assert evaluate(rules, {"lease_duration_months": "61"}, TODAY) == {"lease_duration_months": ["At most 60"]}

    def test_one_of_reports_in_key(self):
        rules = [required("pet_size", one_of(("small", "medium", "large")), messages={"in": "Pick a size"})]
        assert evaluate(rules, {"pet_size": "medium"}, TODAY) == {}
        assert evaluate(rules, {"pet_size": "huge"}, TODAY) == {"pet_size": ["Pick a size"]}

    def test_email_with_length_limit(self):
        rules = [optional("contact_email", email(), max_length(40))]
        assert evaluate(rules, {"contact_email": "anna@example.com"}, TODAY) == {}
        assert evaluate(rules, {"contact_email": "not an address"}, TODAY) == {
            "contact_email": ["Please enter a valid email address"]
        }
        long_address = "a" * 40 + "@example.com"
        assert evaluate(rules, {"contact_email": long_address}, TODAY) == {
            "contact_email": ["String should have at most 40 characters"]
        }

    def test_date_checks_read_today_from_scope(self):
        rules = [required("move_in_date", is_date(), after_today(), messages={"after": "Pick a future date"})]
        assert evaluate(rules, {"move_in_date": "2026-03-02"}, TODAY) == {}
        assert evaluate(rules, {"move_in_date": "2026-03-01"}, TODAY) == {"move_in_date": ["Pick a future date"]}
        assert evaluate(rules, {"move_in_date": "2026-03-02"}, date(2026, 4, 1)) == {
            "move_in_date": ["Pick a future date"]
        }

    def test_is_date_rejects_non_dates(self):
        rules = [required("move_in_date", is_date(), messages={"date": "Not a date"})]
        assert evaluate(rules, {"move_in_date": "next week"}, TODAY) == {"move_in_date": ["Not a date"]}
        assert evaluate(rules, {"move_in_date": 1700000000}, TODAY) == {"move_in_date": ["Not a date"]}

    def test_string_rejects_numbers(self):
        rules = [required("first_name", string(), messages={"string": "Text only"})]
        assert evaluate(rules, {"first_name": 42}, TODAY) == {"first_name": ["Text only"]}


@pytest.mark.unit
class TestRegistry:
    def test_steps_must_be_contiguous(self):
        step = StepDefinition(2, "second", "Second", lambda data, ctx: [])
        with pytest.raises(ValueError):
            StepRegistry("broken", [step])

    def test_review_step_follows_last(self):
        steps = [
            StepDefinition(1, "one", "One", lambda data, ctx: []),
            StepDefinition(2, "two", "Two", lambda data, ctx: []),
        ]
        registry = StepRegistry("tiny", steps)
        assert registry.last_step == 2
        assert registry.review_step == 3
        assert registry.get(3) is None


@pytest.mark.unit
class TestMerger:
    def test_request_overrides_profile(self):
        profile = TenantProfile(employer_name="Old Corp", nationality="CH")

        merged = merge_profile(profile, {"profile_employer_name": "New Corp"})

        assert merged["profile_employer_name"] == "New Corp"
        assert merged["profile_nationality"] == "CH"
        assert "profile_id_document_front_path" in merged

    def test_no_profile_yields_request_only(self):
        assert merge_profile(None, {"has_pets": True}) == {"has_pets": True}

    def test_unflatten_folds_indexed_keys(self):
        data = {
            "occupants_details.1.first_name": "Ben",
            "occupants_details.0.first_name": "Ada",
            "additional_occupants": 2,
        }

        assert unflatten(data) == {
            "additional_occupants": 2,
            "occupants_details": [{"first_name": "Ada"}, {"first_name": "Ben"}],
        }


@pytest.mark.unit
class TestCoercion:
    def test_numbers_dates_and_booleans(self):
        assert coerce_column_value(TenantProfile, "monthly_income", "4000") == 4000.0
        assert coerce_column_value(TenantProfile, "date_of_birth", "1990-05-17") == date(1990, 5, 17)
        assert coerce_column_value(TenantProfile, "authorize_credit_check", "on") is True

    def test_uncoercible_values_become_none(self):
        assert coerce_column_value(TenantProfile, "monthly_income", "a lot") is None
        assert coerce_column_value(TenantProfile, "date_of_birth", "yesterday") is None
        assert coerce_column_value(TenantProfile, "employer_name", "") is None


@pytest.mark.unit
class TestValidators:
    def test_phone_is_prefixed_with_dial_code(self):
        assert validators.validate_phone("079 123 45 67", "+41") == "+41791234567"
        with pytest.raises(ValueError):
            validators.validate_phone("12ab", "+41")

    def test_postal_code_pattern_per_country(self):
        assert validators.validate_postal_code("8001", "CH") == "8001"
        assert validators.validate_postal_code("anything", "ZZ") == "anything"
        with pytest.raises(ValueError):
            validators.validate_postal_code("80011", "CH")

    def test_country_code(self):
        assert validators.validate_country_code("ch") == "CH"
        with pytest.raises(ValueError):
            validators.validate_country_code("XX")
