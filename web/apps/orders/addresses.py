"""Delivery address checks.

``validate_address`` never raises: it collects every problem it finds so
the checkout form can show them all at once.
"""

from dataclasses import dataclass, field
from typing import List

from .domain import Address

# Matched case-insensitively as substrings of the submitted country.
SUPPORTED_COUNTRIES = ("Беларусь", "Belarus", "Россия", "Russia", "РФ")

MIN_CITY_LENGTH = 2
MIN_ADDRESS_LENGTH = 5

UNSUPPORTED_COUNTRY = "Delivery is only available to Belarus and Russia"
CITY_TOO_SHORT = "City name is too short"
ADDRESS_TOO_SHORT = "Address must be more detailed"


@dataclass(frozen=True)
class AddressCheck:
    valid: bool
    errors: List[str] = field(default_factory=list)


def is_supported_country(country: str) -> bool:
    lowered = (country or "").lower()
    return any(name.lower() in lowered for name in SUPPORTED_COUNTRIES)


def validate_address(address: Address) -> AddressCheck:
    errors = []
    if not is_supported_country(address.country):
        errors.append(UNSUPPORTED_COUNTRY)
    if len(address.city or "") < MIN_CITY_LENGTH:
        errors.append(CITY_TOO_SHORT)
    if len(address.address or "") < MIN_ADDRESS_LENGTH:
        errors.append(ADDRESS_TOO_SHORT)
    return AddressCheck(valid=not errors, errors=errors)
