"""
Phone Normalization

Converts arbitrary phone strings to canonical international digits
(e.g. "+55 (33) 99989-8026" -> "5533999898026").
"""

import re

DEFAULT_COUNTRY_CODE = "55"

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw: str | None, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """
    Normalize a phone number to international digits.

    Never raises: malformed input degrades to the stripped digits and the
    provider rejects genuinely invalid numbers.

    Args:
        raw: Phone number in any format
        country_code: Country prefix added to national numbers

    Returns:
        Digits only, with country code when the input looked national
    """
    if not raw:
        return ""

    digits = _NON_DIGITS.sub("", str(raw))

    # National number (area code + subscriber)
    if len(digits) in (10, 11) and not digits.startswith(country_code):
        return f"{country_code}{digits}"

    return digits


def mask_phone(phone: str | None) -> str:
    """Mask a phone number for logs, keeping only the last 4 digits."""
    digits = _NON_DIGITS.sub("", phone or "")
    if len(digits) < 8:
        return "*" * len(digits)
    return "*" * (len(digits) - 4) + digits[-4:]
