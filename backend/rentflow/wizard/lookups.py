"""Constant lookup tables shared by the wizard rule providers.

Enum value sets, numeric constraints and regex patterns live here so
that step rule providers stay declarative and both wizards agree on the
same vocabularies.
"""

import re

# ── Application wizard vocabularies ─────────────────────────

CURRENCIES = ("eur", "usd", "gbp", "chf")

EMPLOYMENT_STATUSES = ("employed", "self_employed", "student", "unemployed", "retired")

EMPLOYMENT_TYPES = ("full_time", "part_time", "contract", "temporary")

LIVING_SITUATIONS = (
    "renting", "owner", "living_with_family",
    "student_housing", "employer_provided", "other",
)

RELATIONSHIPS = ("spouse", "partner", "parent", "sibling", "child", "friend", "employer", "other")

ID_DOCUMENT_TYPES = ("passport", "national_id", "drivers_license")

IMMIGRATION_STATUSES = (
    "citizen", "permanent_resident", "visa_holder",
    "refugee", "asylum_seeker", "other",
)

REASONS_FOR_MOVING = (
    "relocation_work", "relocation_personal", "upsizing", "downsizing",
    "end_of_lease", "buying_property", "relationship_change",
    "closer_to_family", "better_location", "cost", "first_time_renter", "other",
)

CREDIT_CHECK_PROVIDERS = ("experian", "equifax", "transunion", "illion_au", "no_preference")

PET_SIZES = ("small", "medium", "large")

RENT_INSURANCE_OPTIONS = ("yes", "no", "already_have")

REFERENCE_RELATIONSHIPS = ("professional", "personal")

GUARANTOR_SIGNER_TYPES = ("primary", "co_signer")

COUNTRIES_REQUIRING_STATE = ("US", "CA", "AU", "BR", "MX", "IN")

# Uploaded documents: extensions and size cap (KB)
DOCUMENT_EXTENSIONS = ("pdf", "jpeg", "png", "jpg")
DOCUMENT_MAX_KB = 20480

# ── Property wizard vocabularies ────────────────────────────

SUBTYPES_BY_TYPE: dict[str, tuple[str, ...]] = {
    "apartment": ("studio", "loft", "duplex", "triplex", "penthouse", "serviced"),
    "house": ("detached", "semi-detached", "villa", "bungalow"),
    "room": ("private_room", "student_room", "co-living"),
    "commercial": ("office", "retail"),
    "industrial": ("warehouse", "factory"),
    "parking": ("garage", "indoor_spot", "outdoor_spot"),
}

PROPERTY_TYPES = tuple(SUBTYPES_BY_TYPE)

ALL_SUBTYPES = tuple(s for subtypes in SUBTYPES_BY_TYPE.values() for s in subtypes)

ENERGY_CLASSES = ("A+", "A", "B", "C", "D", "E", "F", "G")

THERMAL_INSULATION_CLASSES = ("A", "B", "C", "D", "E", "F", "G")

HEATING_TYPES = ("gas", "electric", "district", "wood", "heat_pump", "other")

PROPERTY_BOOLEAN_FIELDS = (
    "has_elevator", "kitchen_equipped", "kitchen_separated", "has_cellar",
    "has_laundry", "has_fireplace", "has_air_conditioning", "has_garden", "has_rooftop",
)

# Which specification fields a property type asks for
SPEC_FIELDS_BY_TYPE: dict[str, tuple[str, ...]] = {
    "apartment": ("bedrooms", "bathrooms", "size"),
    "house": ("bedrooms", "bathrooms", "size", "land_size"),
    "room": ("bathrooms", "size"),
    "commercial": ("bathrooms", "size"),
    "industrial": ("bathrooms", "size"),
    "parking": (),
}

PROPERTY_CONSTRAINTS: dict[str, dict[str, float]] = {
    "house_number": {"max": 20},
    "street_name": {"max": 255},
    "street_line2": {"max": 255},
    "city": {"max": 100},
    "state": {"max": 100},
    "postal_code": {"max": 20},
    "country": {"length": 2},
    "bedrooms": {"min": 0, "max": 20},
    "bathrooms": {"min": 0, "max": 10},
    "size": {"min": 1, "max": 100000},
    "floor_level": {"min": -10, "max": 200},
    "year_built": {"min": 1800},
    "parking_spots_interior": {"min": 0, "max": 20},
    "parking_spots_exterior": {"min": 0, "max": 20},
    "balcony_size": {"min": 0, "max": 10000},
    "land_size": {"min": 0, "max": 1000000},
    "rent_amount": {"min": 0.01, "max": 999999.99},
    "title": {"max": 255},
    "description": {"max": 10000},
}

# ── Postal code patterns (ISO 3166-1 alpha-2) ───────────────
# Unknown countries are accepted as-is.

_POSTAL_CODE_PATTERNS = {
    # Western Europe
    "AD": r"^AD\d{3}$", "AT": r"^\d{4}$", "BE": r"^\d{4}$", "CH": r"^\d{4}$",
    "DE": r"^\d{5}$", "FR": r"^\d{5}$", "LI": r"^\d{4}$", "LU": r"^\d{4}$",
    "MC": r"^980\d{2}$", "NL": r"^\d{4}\s?[A-Z]{2}$",
    # British Isles
    "GB": r"^[A-Z]{1,2}\d[A-Z\d]?\s?\d[A-Z]{2}$", "GG": r"^GY\d\s?\d[A-Z]{2}$",
    "IM": r"^IM\d\s?\d[A-Z]{2}$", "JE": r"^JE\d\s?\d[A-Z]{2}$",
    "IE": r"^[A-Z]\d{2}\s?[A-Z\d]{4}$",
    # Nordic
    "DK": r"^\d{4}$", "FI": r"^\d{5}$", "FO": r"^FO-?\d{3}$", "GL": r"^\d{4}$",
    "IS": r"^\d{3}$", "NO": r"^\d{4}$", "SE": r"^\d{3}\s?\d{2}$", "AX": r"^\d{5}$",
    # Southern Europe
    "ES": r"^\d{5}$", "GI": r"^GX11\s?1[A-Z]{2}$", "IT": r"^\d{5}$",
    "MT": r"^[A-Z]{3}\s?\d{4}$", "PT": r"^\d{4}-?\d{3}$", "SM": r"^4789\d$",
    "VA": r"^00120$",
    # Central and Eastern Europe
    "CZ": r"^\d{3}\s?\d{2}$", "HU": r"^\d{4}$", "PL": r"^\d{2}-?\d{3}$",
    "SK": r"^\d{3}\s?\d{2}$", "BY": r"^\d{6}$", "MD": r"^MD-?\d{4}$",
    "RU": r"^\d{6}$", "UA": r"^\d{5}$",
    # Balkans and Baltics
    "AL": r"^\d{4}$", "BA": r"^\d{5}$", "BG": r"^\d{4}$", "GR": r"^\d{3}\s?\d{2}$",
    "HR": r"^\d{5}$", "ME": r"^\d{5}$", "MK": r"^\d{4}$", "RO": r"^\d{6}$",
    "RS": r"^\d{5,6}$", "SI": r"^\d{4}$", "XK": r"^\d{5}$", "EE": r"^\d{5}$",
    "LT": r"^LT-?\d{5}$", "LV": r"^LV-?\d{4}$",
    # North and Central America, Caribbean
    "CA": r"^[A-Z]\d[A-Z]\s?\d[A-Z]\d$", "MX": r"^\d{5}$", "US": r"^\d{5}(-\d{4})?$",
    "PR": r"^\d{5}(-\d{4})?$", "VI": r"^\d{5}(-\d{4})?$", "BB": r"^BB\d{5}$",
    "JM": r"^JM[A-Z]{3}\d{2}$", "TC": r"^TKCA\s?1ZZ$", "VG": r"^VG\d{4}$",
    "CR": r"^\d{4,5}$", "GT": r"^\d{5}$", "HN": r"^\d{5}$", "NI": r"^\d{5}$",
    "PA": r"^\d{4}$", "SV": r"^\d{4}$",
    # South America
    "AR": r"^[A-Z]?\d{4}[A-Z]{3}$", "BO": r"^\d{4}$", "BR": r"^\d{5}-?\d{3}$",
    "CL": r"^\d{7}$", "CO": r"^\d{6}$", "EC": r"^\d{6}$", "GY": r"^\d{6}$",
    "PE": r"^\d{5}$", "PY": r"^\d{4}$", "UY": r"^\d{5}$", "VE": r"^\d{4}(-?[A-Z])?$",
    # East and Southeast Asia
    "CN": r"^\d{6}$", "HK": r"^999077$", "JP": r"^\d{3}-?\d{4}$", "KP": r"^\d{6}$",
    "KR": r"^\d{5}$", "MO": r"^999078$", "MN": r"^\d{5}$", "TW": r"^\d{3}(-?\d{2,3})?$",
    "BN": r"^[A-Z]{2}\d{4}$", "ID": r"^\d{5}$", "KH": r"^\d{5}$", "LA": r"^\d{5}$",
    "MM": r"^\d{5}$", "MY": r"^\d{5}$", "PH": r"^\d{4}$", "SG": r"^\d{6}$",
    "TH": r"^\d{5}$", "VN": r"^\d{6}$",
    # South and Central Asia
    "AF": r"^\d{4}$", "BD": r"^\d{4}$", "BT": r"^\d{5}$", "IN": r"^\d{6}$",
    "LK": r"^\d{5}$", "MV": r"^\d{5}$", "NP": r"^\d{5}$", "PK": r"^\d{5}$",
    "KG": r"^\d{6}$", "KZ": r"^\d{6}$", "TJ": r"^\d{6}$", "TM": r"^\d{6}$",
    "UZ": r"^\d{6}$",
    # Middle East
    "AE": r"^\d{5}$", "AM": r"^\d{4}$", "AZ": r"^AZ\s?\d{4}$", "BH": r"^\d{3,4}$",
    "CY": r"^\d{4}$", "GE": r"^\d{4}$", "IL": r"^\d{7}$", "IQ": r"^\d{5}$",
    "IR": r"^\d{10}$", "JO": r"^\d{5}$", "KW": r"^\d{5}$", "LB": r"^\d{4}(\s?\d{4})?$",
    "OM": r"^\d{3}$", "PS": r"^\d{3}$", "QA": r"^\d{4,5}$", "SA": r"^\d{5}(-?\d{4})?$",
    "SY": r"^\d{5}$", "TR": r"^\d{5}$", "YE": r"^\d{5}$",
    # Africa
    "DZ": r"^\d{5}$", "EG": r"^\d{5}$", "ET": r"^\d{4}$", "KE": r"^\d{5}$",
    "MA": r"^\d{5}$", "MU": r"^\d{5}$", "NG": r"^\d{6}$", "SN": r"^\d{5}$",
    "TN": r"^\d{4}$", "ZA": r"^\d{4}$", "ZW": r"^\d{5}$",
    # Oceania
    "AU": r"^\d{4}$", "FJ": r"^\d{4}$", "NC": r"^\d{5}$", "NZ": r"^\d{4}$",
    "PF": r"^\d{5}$", "PG": r"^\d{3}$", "WS": r"^WS\d{4}$",
}

POSTAL_CODE_PATTERNS: dict[str, re.Pattern] = {
    country: re.compile(pattern, re.IGNORECASE)
    for country, pattern in _POSTAL_CODE_PATTERNS.items()
}
