"""FastAPI exception handlers for converting domain errors to HTTP responses.

The ErrorCode-to-HTTP status mapping follows REST conventions:
- 400 Bad Request: Validation failures
- 401 Unauthorized: Authentication required or failed
- 403 Forbidden: Role does not allow the action
- 404 Not Found: Resource not found
- 409 Conflict: Dates taken, room unavailable, illegal status change
- 502 Bad Gateway: Data backend rejected the request or was unreachable

Usage:
    from hotel_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_502_BAD_GATEWAY,
)

from hotel_core.models.errors import BookingError, ErrorCode, ErrorResult, GatewayError
from hotel_core.utils.logging import get_logger

logger = get_logger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Booking conflicts -> 409 Conflict
    ErrorCode.DATES_UNAVAILABLE: HTTP_409_CONFLICT,
    ErrorCode.ROOM_UNAVAILABLE: HTTP_409_CONFLICT,
    ErrorCode.INVALID_TRANSITION: HTTP_409_CONFLICT,
    ErrorCode.ROOM_STATUS_CONFLICT: HTTP_409_CONFLICT,
    # Validation -> 400 Bad Request
    ErrorCode.VALIDATION_FAILED: HTTP_400_BAD_REQUEST,
    # Not found errors -> 404 Not Found
    ErrorCode.ROOM_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.RESERVATION_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.GUEST_NOT_FOUND: HTTP_404_NOT_FOUND,
    # Backend -> 502 Bad Gateway
    ErrorCode.BACKEND_REJECTED: HTTP_502_BAD_GATEWAY,
    # Authentication errors -> 401 Unauthorized
    ErrorCode.AUTH_REQUIRED: HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_CREDENTIALS: HTTP_401_UNAUTHORIZED,
    ErrorCode.PROFILE_NOT_FOUND: HTTP_401_UNAUTHORIZED,
    # Authorization errors -> 403 Forbidden
    ErrorCode.UNAUTHORIZED: HTTP_403_FORBIDDEN,
    ErrorCode.FORBIDDEN: HTTP_403_FORBIDDEN,
    # Sign-up refused by the identity provider
    ErrorCode.SIGNUP_FAILED: HTTP_400_BAD_REQUEST,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Convert a BookingError to its ErrorResult JSON body."""
    return JSONResponse(
        status_code=get_http_status_for_error(exc.code),
        content=exc.to_error_result().model_dump(mode="json"),
    )


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Convert a GatewayError to a 502 with a user-facing message.

    The raw backend message stays in the logs; the body carries the
    translated message only.
    """
    logger.error(f"Backend request failed: {exc.message}", extra={"backend_status": exc.code})
    result = ErrorResult.from_code(
        ErrorCode.BACKEND_REJECTED,
        details={"reason": exc.friendly_message},
    )
    return JSONResponse(
        status_code=HTTP_502_BAD_GATEWAY,
        content=result.model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(BookingError, booking_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(GatewayError, gateway_error_handler)  # type: ignore[arg-type]
