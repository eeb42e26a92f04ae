"""Rule providers for the 7-step property listing wizard.

The data is the property's persisted columns merged with the request
payload, so a step keeps validating after the manager moves on.

Checks spanning several fields (subtype vs. type, which specifications
a type asks for) run as after-hooks on top of the declarative rules.
"""

from collections.abc import Mapping
from typing import Any

from rentflow.wizard import lookups as lk
from rentflow.wizard.progression import ProgressionEngine
from rentflow.wizard.registry import StepDefinition, StepRegistry, WizardContext
from rentflow.wizard.rules import (
    ErrorMap,
    FieldRule,
    add_error,
    after_or_equal_today,
    boolean,
    exact_length,
    integer,
    is_date,
    is_empty,
    is_file,
    max_kilobytes,
    max_length,
    max_value,
    mimes,
    min_value,
    numeric,
    one_of,
    optional,
    required,
    string,
)

Data = Mapping[str, Any]
C = lk.PROPERTY_CONSTRAINTS

IMAGE_EXTENSIONS = ("jpeg", "png", "jpg", "webp")
IMAGE_MAX_KB = 10240

INVALID_SUBTYPE = "Please select a valid subtype for the selected property type"


def _limit(field: str, bound: str) -> float:
    return C[field][bound]


def _text(field: str):
    return (string(), max_length(int(_limit(field, "max"))))


def _range(field: str, *checks):
    return (*checks, min_value(_limit(field, "min")), max_value(_limit(field, "max")))


# ── Step 1: Property type ───────────────────────────────────

def type_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    return [
        required(
            "type", one_of(lk.PROPERTY_TYPES),
            messages={
                "required": "Property type is required",
                "in": "Please select a valid property type",
            },
        ),
        required(
            "subtype", one_of(lk.ALL_SUBTYPES),
            messages={"required": "Property subtype is required", "in": INVALID_SUBTYPE},
        ),
    ]


def subtype_matches_type(data: Data, ctx: WizardContext, errors: ErrorMap) -> None:
    if "subtype" in errors:
        return
    allowed = lk.SUBTYPES_BY_TYPE.get(str(data.get("type")))
    subtype = data.get("subtype")
    if allowed is not None and not is_empty(subtype) and subtype not in allowed:
        add_error(errors, "subtype", INVALID_SUBTYPE)


# ── Step 2: Location ────────────────────────────────────────

def location_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    return [
        required(
            "house_number", *_text("house_number"),
            messages={
                "required": "House/building number is required",
                "max": "House number cannot exceed 20 characters",
            },
        ),
        required(
            "street_name", *_text("street_name"),
            messages={
                "required": "Street name is required",
                "max": "Street name cannot exceed 255 characters",
            },
        ),
        optional(
            "street_line2", *_text("street_line2"),
            messages={"max": "Address line 2 cannot exceed 255 characters"},
        ),
        required(
            "city", *_text("city"),
            messages={"required": "City is required", "max": "City cannot exceed 100 characters"},
        ),
        optional(
            "state", *_text("state"),
            messages={"max": "State/province cannot exceed 100 characters"},
        ),
        required(
            "postal_code", *_text("postal_code"),
            messages={
                "required": "Postal code is required",
                "max": "Postal code cannot exceed 20 characters",
            },
        ),
        required(
            "country", string(), exact_length(int(_limit("country", "length"))),
            messages={
                "required": "Country is required",
                "size": "Country code must be exactly 2 characters",
            },
        ),
    ]


# ── Step 3: Specifications ──────────────────────────────────

SPEC_REQUIRED_MESSAGES = {
    "bedrooms": "Number of bedrooms is required",
    "bathrooms": "Number of bathrooms is required",
    "size": "Size is required",
    "land_size": "Land size is required",
}


def specs_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    return [
        optional(
            "bedrooms", *_range("bedrooms", integer()),
            messages={
                "min": "Bedrooms cannot be less than 0",
                "max": "Bedrooms cannot exceed 20",
                "integer": "Bedrooms must be a whole number",
            },
        ),
        optional(
            "bathrooms", *_range("bathrooms", numeric()),
            messages={
                "min": "Bathrooms cannot be less than 0",
                "max": "Bathrooms cannot exceed 10",
                "numeric": "Bathrooms must be a number",
            },
        ),
        optional(
            "size", *_range("size", numeric()),
            messages={
                "min": "Size must be greater than 0",
                "max": "Size cannot exceed 100,000 sqm",
                "numeric": "Size must be a valid number",
            },
        ),
        optional(
            "floor_level", *_range("floor_level", integer()),
            messages={
                "min": "Floor level cannot be less than -10",
                "max": "Floor level cannot exceed 200",
                "integer": "Floor level must be a whole number",
            },
        ),
        optional("has_elevator", boolean()),
        optional(
            "year_built", integer(), min_value(_limit("year_built", "min")), max_value(ctx.today.year),
            messages={
                "min": "Year built cannot be earlier than 1800",
                "max": f"Year built cannot be later than {ctx.today.year}",
                "integer": "Year must be a whole number",
            },
        ),
        optional(
            "parking_spots_interior", *_range("parking_spots_interior", integer()),
            messages={
                "min": "Interior parking spots cannot be less than 0",
                "max": "Interior parking spots cannot exceed 20",
                "integer": "Parking spots must be a whole number",
            },
        ),
        optional(
            "parking_spots_exterior", *_range("parking_spots_exterior", integer()),
            messages={
                "min": "Exterior parking spots cannot be less than 0",
                "max": "Exterior parking spots cannot exceed 20",
                "integer": "Parking spots must be a whole number",
            },
        ),
        optional(
            "balcony_size", *_range("balcony_size", numeric()),
            messages={
                "min": "Balcony size cannot be negative",
                "max": "Balcony size cannot exceed 10,000 sqm",
                "numeric": "Balcony size must be a valid number",
            },
        ),
        optional(
            "land_size", *_range("land_size", numeric()),
            messages={
                "min": "Land size cannot be negative",
                "max": "Land size cannot exceed 1,000,000 sqm",
                "numeric": "Land size must be a valid number",
            },
        ),
    ]


def specs_for_type(data: Data, ctx: WizardContext, errors: ErrorMap) -> None:
    """Require the specification fields the selected type asks for."""
    for field in lk.SPEC_FIELDS_BY_TYPE.get(str(data.get("type")), ()):
        if field not in errors and is_empty(data.get(field)):
            add_error(errors, field, SPEC_REQUIRED_MESSAGES[field])


# ── Step 4: Amenities ───────────────────────────────────────

def amenities_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    return [
        optional(field, boolean())
        for field in lk.PROPERTY_BOOLEAN_FIELDS
        if field != "has_elevator"
    ]


# ── Step 5: Energy ──────────────────────────────────────────

def energy_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    return [
        optional(
            "energy_class", one_of(lk.ENERGY_CLASSES),
            messages={"in": "Please select a valid energy class"},
        ),
        optional(
            "thermal_insulation_class", one_of(lk.THERMAL_INSULATION_CLASSES),
            messages={"in": "Please select a valid thermal insulation class"},
        ),
        optional(
            "heating_type", one_of(lk.HEATING_TYPES),
            messages={"in": "Please select a valid heating type"},
        ),
    ]


# ── Step 6: Pricing ─────────────────────────────────────────

def pricing_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    return [
        required(
            "rent_amount", *_range("rent_amount", numeric()),
            messages={
                "required": "Rent amount is required",
                "min": "Rent amount must be greater than 0",
                "max": "Rent amount cannot exceed 1,000,000",
                "numeric": "Rent amount must be a valid number",
            },
        ),
        required(
            "rent_currency", one_of(lk.CURRENCIES),
            messages={
                "required": "Currency is required",
                "in": "Please select a valid currency",
            },
        ),
        optional(
            "available_date", is_date(), after_or_equal_today(),
            messages={
                "date": "Please enter a valid date",
                "after_or_equal": "Available date must be today or in the future",
            },
        ),
    ]


# ── Step 7: Media ───────────────────────────────────────────

IMAGE_RULE = FieldRule(
    "new_images.*",
    (is_file(), mimes(IMAGE_EXTENSIONS), max_kilobytes(IMAGE_MAX_KB)),
    messages={
        "file": "Each file must be an image",
        "mimes": "Images must be JPEG, PNG, or WebP format",
        "max": "Each image must be less than 10MB",
    },
)


def media_rules(data: Data, ctx: WizardContext) -> list[FieldRule]:
    return [
        required(
            "title", *_text("title"),
            messages={
                "required": "Property title is required",
                "max": "Title cannot exceed 255 characters",
            },
        ),
        optional(
            "description", *_text("description"),
            messages={"max": "Description cannot exceed 10,000 characters"},
        ),
        IMAGE_RULE,
        optional("main_image_index", integer(), min_value(0)),
    ]


PROPERTY_STEPS = StepRegistry("property", [
    StepDefinition(1, "type", "Property Type", type_rules, after=(subtype_matches_type,)),
    StepDefinition(2, "location", "Location", location_rules),
    StepDefinition(3, "specifications", "Specifications", specs_rules, after=(specs_for_type,)),
    StepDefinition(4, "amenities", "Amenities", amenities_rules),
    StepDefinition(5, "energy", "Energy", energy_rules),
    StepDefinition(6, "pricing", "Pricing", pricing_rules),
    StepDefinition(7, "media", "Photos & Description", media_rules),
])

property_engine = ProgressionEngine(PROPERTY_STEPS)
