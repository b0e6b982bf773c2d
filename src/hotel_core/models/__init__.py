"""Pydantic models for hotel reservation entities."""

from .auth import AuthenticatedUser, AuthSession, GuestProfile, StaffProfile
from .availability import PriceCalculation, RoomCalendar
from .enums import (
    ACTIVE_STATUSES,
    SETTLED_STATUSES,
    TERMINAL_STATUSES,
    ChangeEventType,
    DayStatus,
    GuestType,
    PaymentMethod,
    PaymentStatus,
    ReservationStatus,
    RoomStatus,
    StaffRole,
    StaffShift,
    StaffStatus,
    UserType,
)
from .errors import BookingError, ErrorCode, ErrorResult, GatewayError
from .guest import Guest, GuestCreate, GuestUpdate
from .metrics import DashboardMetrics, PaymentTotals, StaffWorkload
from .payment import Payment
from .reservation import (
    BookingOutcome,
    Reservation,
    ReservationGuest,
    ReservationRequest,
    SweepReport,
    WalkInRequest,
)
from .room import Room, RoomType
from .staff import Staff

__all__ = [
    # Enums
    "ACTIVE_STATUSES",
    "SETTLED_STATUSES",
    "TERMINAL_STATUSES",
    "ChangeEventType",
    "DayStatus",
    "GuestType",
    "PaymentMethod",
    "PaymentStatus",
    "ReservationStatus",
    "RoomStatus",
    "StaffRole",
    "StaffShift",
    "StaffStatus",
    "UserType",
    # Errors
    "BookingError",
    "ErrorCode",
    "ErrorResult",
    "GatewayError",
    # Auth
    "AuthenticatedUser",
    "AuthSession",
    "GuestProfile",
    "StaffProfile",
    # Guest
    "Guest",
    "GuestCreate",
    "GuestUpdate",
    # Rooms
    "Room",
    "RoomType",
    "RoomCalendar",
    # Staff
    "Staff",
    # Reservation
    "BookingOutcome",
    "Reservation",
    "ReservationGuest",
    "ReservationRequest",
    "SweepReport",
    "WalkInRequest",
    # Payment
    "Payment",
    # Pricing
    "PriceCalculation",
    # Metrics
    "DashboardMetrics",
    "PaymentTotals",
    "StaffWorkload",
]
