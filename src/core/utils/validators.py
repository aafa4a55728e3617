"""
Data validators
===============
Loose format checks for customer fields.
"""

import re

_PHONE_ALLOWED = re.compile(r"^\+?[\d\s().\-]+$")

# Column width of customers.first_name and customers.last_name
NAME_MAX_LENGTH = 100


def validate_phone(phone: str) -> bool:
    """
    Checks that a phone number is phone-shaped.

    Args:
        phone: Raw phone text as typed by the user

    Returns:
        True if the text only uses phone characters and holds 7 to 15 digits

    Examples:
        >>> validate_phone('555-555-5555')
        True
        >>> validate_phone('+1 (425) 555-0100')
        True
        >>> validate_phone('call me')
        False
        >>> validate_phone('123')
        False
    """
    if not phone or not _PHONE_ALLOWED.match(phone):
        return False

    digits = re.sub(r"\D", "", phone)
    return 7 <= len(digits) <= 15


def is_empty(value: str | None) -> bool:
    """True for None or the empty string"""
    return value is None or value == ""


def is_valid_name(name: str | None) -> bool:
    """
    Non-empty and no longer than NAME_MAX_LENGTH

    Examples:
        >>> is_valid_name('Jon')
        True
        >>> is_valid_name('')
        False
        >>> is_valid_name('x' * 101)
        False
    """
    return not is_empty(name) and len(name) <= NAME_MAX_LENGTH
