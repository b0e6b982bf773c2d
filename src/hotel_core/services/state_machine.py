"""Reservation status transitions and their side effects.

    Pending ──► Booked ──► CheckedIn ──► CheckedOut
       │          │            │
       └──────────┴────────────┴──────► Cancelled

Pending may also go straight to CheckedIn (front-desk check-in of an
unapproved booking, or approval on/after the check-in day).
"""

from hotel_core.models import BookingError, ErrorCode, ReservationStatus, RoomStatus

ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.BOOKED, ReservationStatus.CHECKED_IN, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.BOOKED: frozenset(
        {ReservationStatus.CHECKED_IN, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CHECKED_IN: frozenset(
        {ReservationStatus.CHECKED_OUT, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CHECKED_OUT: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
}

# Room status a reservation status forces on its room; absent means untouched
ROOM_STATUS_EFFECTS: dict[ReservationStatus, RoomStatus] = {
    ReservationStatus.CHECKED_IN: RoomStatus.OCCUPIED,
    ReservationStatus.CHECKED_OUT: RoomStatus.AVAILABLE,
    ReservationStatus.CANCELLED: RoomStatus.AVAILABLE,
}

AUDIT_ACTIONS: dict[ReservationStatus, str] = {
    ReservationStatus.BOOKED: "Approved",
    ReservationStatus.CANCELLED: "Cancelled",
    ReservationStatus.CHECKED_IN: "Checked In",
    ReservationStatus.CHECKED_OUT: "Checked Out",
}

REJECTED_ACTION = "Rejected"
WALK_IN_ACTION = "Walk-in Created"


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def validate_transition(current: ReservationStatus, target: ReservationStatus) -> None:
    """Reject a status change the lifecycle does not allow.

    Raises:
        BookingError: INVALID_TRANSITION with the attempted from/to statuses
    """
    if not can_transition(current, target):
        raise BookingError(
            ErrorCode.INVALID_TRANSITION,
            details={"from": current.value, "to": target.value},
        )


def room_effect(status: ReservationStatus) -> RoomStatus | None:
    """Room status implied by a reservation reaching `status`, if any."""
    return ROOM_STATUS_EFFECTS.get(status)


def audit_action(previous: ReservationStatus, new: ReservationStatus) -> str | None:
    """Audit label for a transition; cancelling a Pending booking is a rejection."""
    if new == ReservationStatus.CANCELLED and previous == ReservationStatus.PENDING:
        return REJECTED_ACTION
    return AUDIT_ACTIONS.get(new)
