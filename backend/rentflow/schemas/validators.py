"""Reusable format validators.

Used by the wizard rule toolkit, which wraps each one as a pydantic
AfterValidator; email addresses use pydantic's EmailStr instead.
Every validator returns the normalized value or raises ValueError with
a user-facing message.

- Phone number validation (E.164 after prefixing the dial code)
- Country code validation (ISO 3166-1 alpha-2)
- Postal code validation (per-country pattern)
"""

import re

import pycountry

from rentflow.wizard.lookups import POSTAL_CODE_PATTERNS

# Regex patterns
PHONE_REGEX = re.compile(r"^\+?[1-9]\d{1,14}$")  # E.164 format
_PHONE_SEPARATORS = re.compile(r"[\s\-().]")


def validate_phone(value: str, dial_code: str | None = None) -> str:
    """Validate phone number, optionally prefixed with a country dial code.

    Args:
        value: Local or international phone number
        dial_code: Country dial code such as "+41" or "41"

    Returns:
        Number in E.164 form

    Raises:
        ValueError: If phone number is invalid
    """
    if not value:
        raise ValueError("Phone number is required")

    number = _PHONE_SEPARATORS.sub("", str(value))
    if dial_code and not number.startswith("+"):
        code = _PHONE_SEPARATORS.sub("", str(dial_code)).lstrip("+")
        number = f"+{code}{number.lstrip('0')}"

    if not PHONE_REGEX.match(number):
        raise ValueError("Please enter a valid phone number")

    return number


def validate_country_code(value: str) -> str:
    """Validate an ISO 3166-1 alpha-2 country code.

    Returns:
        Uppercase country code

    Raises:
        ValueError: If the code is not a known country
    """
    if not value:
        raise ValueError("Country is required")

    code = str(value).strip().upper()
    if len(code) != 2 or pycountry.countries.get(alpha_2=code) is None:
        raise ValueError("Please select a valid country")

    return code


def validate_postal_code(value: str, country: str | None) -> str:
    """Validate a postal code against the pattern of its country.

    Unknown or missing countries are accepted leniently.

    Raises:
        ValueError: If the code does not match the country pattern
    """
    value = str(value).strip()
    if not country:
        return value

    pattern = POSTAL_CODE_PATTERNS.get(str(country).strip().upper())
    if pattern is not None and not pattern.match(value):
        raise ValueError("Invalid postal code format for selected country")

    return value
