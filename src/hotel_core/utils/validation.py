"""Client-side validation for guest details.

These checks run before any write; the backend enforces its own
constraints too, and its rejections are translated by
hotel_core.models.errors.friendly_error_message.
"""

import re

from email_validator import EmailNotValidError
from email_validator import validate_email as check_email_syntax

from hotel_core.models.errors import BookingError, ErrorCode

# PH mobile numbers: 09XXXXXXXXX or 639XXXXXXXXX
PHONE_PATTERN = re.compile(r"^(09[0-9]{9}|639[0-9]{9})$")
POSTAL_CODE_PATTERN = re.compile(r"^[1-9][0-9]{3}$")
MIN_NAME_LENGTH = 2

FIELD_LIMITS: dict[str, int] = {
    "first_name": 50,
    "middle_name": 50,
    "last_name": 50,
    "email": 100,
    "address": 150,
    "city": 60,
}


def _fail(field: str, reason: str) -> BookingError:
    return BookingError(ErrorCode.VALIDATION_FAILED, details={"field": field, "reason": reason})


def validate_name(field: str, value: str | None) -> str:
    """Trim a name and require at least two characters.

    Returns:
        The trimmed name

    Raises:
        BookingError: VALIDATION_FAILED when empty, too short or too long
    """
    cleaned = (value or "").strip()
    if not cleaned:
        raise _fail(field, "required")
    if len(cleaned) < MIN_NAME_LENGTH:
        raise _fail(field, f"must be at least {MIN_NAME_LENGTH} characters")
    _check_length(field, cleaned)
    return cleaned


def validate_phone(value: str | None, required: bool = True) -> str | None:
    """Validate a PH mobile number.

    Returns:
        The trimmed number, or None when optional and blank
    """
    cleaned = (value or "").strip()
    if not cleaned:
        if required:
            raise _fail("phone", "required")
        return None
    if not PHONE_PATTERN.match(cleaned):
        raise _fail("phone", "Enter a valid PH phone number (e.g. 09123456789 or 639123456789)")
    return cleaned


def validate_postal_code(value: str | None) -> int | None:
    """Validate an optional 4-digit postal code (1000-9999)."""
    cleaned = (value or "").strip()
    if not cleaned:
        return None
    if not POSTAL_CODE_PATTERN.match(cleaned):
        raise _fail("postal_code", "Postal code must be 4 digits (1000-9999)")
    return int(cleaned)


def validate_email(value: str | None) -> str:
    """Trim an email and check its syntax.

    Deliverability is not checked; no DNS lookups are made. The trimmed
    value is returned as typed, since guest lookups match it exactly.

    Raises:
        BookingError: VALIDATION_FAILED when empty, malformed or too long
    """
    cleaned = (value or "").strip()
    if not cleaned:
        raise _fail("email", "A valid email address is required")
    try:
        check_email_syntax(cleaned, check_deliverability=False)
    except EmailNotValidError as e:
        raise _fail("email", "A valid email address is required") from e
    _check_length("email", cleaned)
    return cleaned


def validate_password(password: str, confirm: str | None = None) -> None:
    """Require at least 6 characters and, if given, a matching confirmation."""
    if confirm is not None and password != confirm:
        raise _fail("password", "Passwords do not match")
    if len(password) < 6:
        raise _fail("password", "Password must be at least 6 characters")


def clean_text(field: str, value: str | None, title_case: bool = False) -> str:
    """Trim free text, optionally title-casing it, and enforce its length limit."""
    cleaned = (value or "").strip()
    if title_case:
        cleaned = " ".join(word.capitalize() for word in cleaned.split())
    _check_length(field, cleaned)
    return cleaned


def _check_length(field: str, value: str) -> None:
    limit = FIELD_LIMITS.get(field)
    if limit is not None and len(value) > limit:
        raise _fail(field, f"must be at most {limit} characters")
