"""Standard error codes for hotel reservation operations.

All services raise BookingError with one of these codes so that any UI
layer can render a consistent, transient notification. Transport failures
from the data backend are raised separately as GatewayError.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes."""

    # Booking error codes (ERR_001-ERR_009)
    DATES_UNAVAILABLE = "ERR_001"
    ROOM_UNAVAILABLE = "ERR_002"
    ROOM_NOT_FOUND = "ERR_003"
    RESERVATION_NOT_FOUND = "ERR_004"
    INVALID_TRANSITION = "ERR_005"
    ROOM_STATUS_CONFLICT = "ERR_006"
    VALIDATION_FAILED = "ERR_007"
    GUEST_NOT_FOUND = "ERR_008"
    BACKEND_REJECTED = "ERR_009"

    # Authentication error codes (ERR_AUTH_001-ERR_AUTH_006)
    AUTH_REQUIRED = "ERR_AUTH_001"
    UNAUTHORIZED = "ERR_AUTH_002"
    FORBIDDEN = "ERR_AUTH_003"
    PROFILE_NOT_FOUND = "ERR_AUTH_004"
    INVALID_CREDENTIALS = "ERR_AUTH_005"
    SIGNUP_FAILED = "ERR_AUTH_006"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    # Booking errors
    ErrorCode.DATES_UNAVAILABLE: "The room is already reserved for the selected dates",
    ErrorCode.ROOM_UNAVAILABLE: "The room is under maintenance and cannot be booked",
    ErrorCode.ROOM_NOT_FOUND: "Room not found",
    ErrorCode.RESERVATION_NOT_FOUND: "Reservation not found",
    ErrorCode.INVALID_TRANSITION: "This status change is not allowed",
    ErrorCode.ROOM_STATUS_CONFLICT: "Room status conflicts with a reservation covering today",
    ErrorCode.VALIDATION_FAILED: "Some of the submitted details are invalid",
    ErrorCode.GUEST_NOT_FOUND: "Guest not found",
    ErrorCode.BACKEND_REJECTED: "The server rejected the request",
    # Authentication errors
    ErrorCode.AUTH_REQUIRED: "You must be logged in to perform this action",
    ErrorCode.UNAUTHORIZED: "No staff account found for these credentials",
    ErrorCode.FORBIDDEN: "Your role does not allow this action",
    ErrorCode.PROFILE_NOT_FOUND: "Signed in, but no guest or staff profile was found",
    ErrorCode.INVALID_CREDENTIALS: "Invalid email or password",
    ErrorCode.SIGNUP_FAILED: "The account could not be created",
}

# Hints shown next to the notification
ERROR_HINTS: dict[ErrorCode, str] = {
    # Booking error hints
    ErrorCode.DATES_UNAVAILABLE: "Pick different dates or another room",
    ErrorCode.ROOM_UNAVAILABLE: "Choose a room that is not under maintenance",
    ErrorCode.ROOM_NOT_FOUND: "Refresh the room list and try again",
    ErrorCode.RESERVATION_NOT_FOUND: "Refresh the reservation list and try again",
    ErrorCode.INVALID_TRANSITION: "Check the reservation's current status",
    ErrorCode.ROOM_STATUS_CONFLICT: "Check the guest out or cancel the reservation first",
    ErrorCode.VALIDATION_FAILED: "Correct the highlighted fields",
    ErrorCode.GUEST_NOT_FOUND: "Create the guest profile first",
    ErrorCode.BACKEND_REJECTED: "Try again or contact an administrator",
    # Authentication error hints
    ErrorCode.AUTH_REQUIRED: "Sign in and try again",
    ErrorCode.UNAUTHORIZED: "Use the guest login or ask a manager for access",
    ErrorCode.FORBIDDEN: "Ask a manager to perform this action",
    ErrorCode.PROFILE_NOT_FOUND: "Complete sign-up to create your profile",
    ErrorCode.INVALID_CREDENTIALS: "Check your credentials and try again",
    ErrorCode.SIGNUP_FAILED: "Try a different email or sign in if you already have an account",
}


class ErrorResult(BaseModel):
    """Standard error response format for failed operations."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    hint: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ErrorResult":
        """Create an ErrorResult from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResult with the message and hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            hint=ERROR_HINTS[code],
            details=details,
        )


class BookingError(Exception):
    """Exception raised by reservation operations.

    Can be caught and converted to an ErrorResult for UI responses.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.hint = ERROR_HINTS[code]
        self.details = details
        super().__init__(self.message)

    def to_error_result(self) -> ErrorResult:
        """Convert this exception to an ErrorResult."""
        return ErrorResult.from_code(self.code, self.details)


class GatewayError(Exception):
    """Non-success response (or transport failure) from the data backend.

    Attributes:
        message: Raw backend message, prefixed with the HTTP status
        code: HTTP status code, or None when the request never completed
    """

    def __init__(self, message: str, code: Optional[int] = None):
        self.message = message
        self.code = code
        super().__init__(message)

    @property
    def friendly_message(self) -> str:
        """User-facing rendition of the backend message."""
        return friendly_error_message(self.message)


# Known constraint-violation substrings and what to tell the user instead
CONSTRAINT_MESSAGES: tuple[tuple[str, str], ...] = (
    ("phone", "Enter a valid PH phone number (e.g. 09123456789 or 639123456789)"),
    ("postal_code", "Postal code must be 4 digits (1000-9999)"),
    ("first_name", "First name must contain letters only and be at least 2 characters"),
    ("last_name", "Last name must contain letters only and be at least 2 characters"),
    ("middle_name", "Middle name must contain letters only"),
    ("email", "This email address is already registered"),
    ("check_out", "Check-out date must be after check-in date"),
    ("violates foreign key constraint", "A referenced record no longer exists; refresh and try again"),
    ("duplicate key", "This record already exists"),
)


def friendly_error_message(raw: str | None) -> str:
    """Map a backend constraint violation to a friendlier message.

    Only messages that look like constraint violations are rewritten;
    anything else is returned unchanged.

    Args:
        raw: Raw backend error message

    Returns:
        Friendly message, or the raw message when nothing matches
    """
    if not raw:
        return ERROR_MESSAGES[ErrorCode.BACKEND_REJECTED]

    lowered = raw.lower()
    if "constraint" not in lowered and "duplicate key" not in lowered:
        return raw

    for needle, message in CONSTRAINT_MESSAGES:
        if needle in lowered:
            return message
    return raw
