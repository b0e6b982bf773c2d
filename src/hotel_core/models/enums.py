"""Enumeration types for hotel data models."""

from enum import Enum


class ReservationStatus(str, Enum):
    """Status of a reservation."""

    PENDING = "Pending"
    BOOKED = "Booked"
    CHECKED_IN = "CheckedIn"
    CHECKED_OUT = "CheckedOut"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        """CheckedOut and Cancelled have no outgoing transitions."""
        return self in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        """Booked or CheckedIn (the stay is confirmed)."""
        return self in ACTIVE_STATUSES


TERMINAL_STATUSES = frozenset({ReservationStatus.CHECKED_OUT, ReservationStatus.CANCELLED})
ACTIVE_STATUSES = frozenset({ReservationStatus.BOOKED, ReservationStatus.CHECKED_IN})
# Statuses whose amounts count as revenue
SETTLED_STATUSES = frozenset(
    {
        ReservationStatus.BOOKED,
        ReservationStatus.CHECKED_IN,
        ReservationStatus.CHECKED_OUT,
    }
)


class RoomStatus(str, Enum):
    """Operational status of a room."""

    AVAILABLE = "Available"
    OCCUPIED = "Occupied"
    MAINTENANCE = "Maintenance"


class PaymentMethod(str, Enum):
    """Supported payment methods."""

    CASH = "Cash"
    CARD = "Card"
    GCASH = "GCash"
    PAYPAL = "PayPal"


class PaymentStatus(str, Enum):
    """Bookkeeping status of a payment row."""

    PENDING = "Pending"
    PAID = "Paid"
    REFUNDED = "Refunded"


class GuestType(str, Enum):
    """Role of a guest within a reservation."""

    PRIMARY = "Primary"
    ADDITIONAL = "Additional"


class StaffRole(str, Enum):
    """Staff roles; drive permission scoping."""

    MANAGER = "Manager"
    FRONT_DESK = "FrontDesk"
    HOUSEKEEPING = "Housekeeping"
    CONCIERGE = "Concierge"
    ACCOUNTANT = "Accountant"
    RESERVATION_AGENT = "ReservationAgent"


class StaffShift(str, Enum):
    """Working shift of a staff member."""

    DAY = "Day"
    NIGHT = "Night"
    ROTATING = "Rotating"


class StaffStatus(str, Enum):
    """Employment status of a staff member."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    ON_LEAVE = "OnLeave"


class UserType(str, Enum):
    """Kind of authenticated principal."""

    GUEST = "Guest"
    STAFF = "Staff"


class ChangeEventType(str, Enum):
    """Row change kinds delivered by the realtime channel."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class DayStatus(str, Enum):
    """Calendar severity of a single day for a room."""

    BOOKED = "booked"
    PENDING = "pending"
    AVAILABLE = "available"
