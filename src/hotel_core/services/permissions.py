"""Role-based permissions for staff operations.

Checked in the service layer so that the HTTP API and direct callers of
the services enforce the same rules.
"""

from enum import Enum

from hotel_core.models import (
    AuthenticatedUser,
    BookingError,
    ErrorCode,
    ReservationStatus,
    StaffRole,
)


class Permission(str, Enum):
    """Staff actions that are restricted by role."""

    APPROVE_RESERVATION = "reservation:approve"
    CANCEL_RESERVATION = "reservation:cancel"
    CHECK_IN = "reservation:check_in"
    CHECK_OUT = "reservation:check_out"
    CREATE_WALK_IN = "reservation:walk_in"
    ROOM_STATUS_WRITE = "room:status_write"
    VIEW_REPORTS = "reports:view"


_FRONT_OFFICE = frozenset(
    {
        Permission.APPROVE_RESERVATION,
        Permission.CANCEL_RESERVATION,
        Permission.CHECK_IN,
        Permission.CHECK_OUT,
        Permission.CREATE_WALK_IN,
    }
)

ROLE_PERMISSIONS: dict[StaffRole, frozenset[Permission]] = {
    StaffRole.MANAGER: frozenset(Permission),
    StaffRole.FRONT_DESK: _FRONT_OFFICE | {Permission.ROOM_STATUS_WRITE},
    # Reservation agents see room status but cannot change it
    StaffRole.RESERVATION_AGENT: _FRONT_OFFICE,
    StaffRole.CONCIERGE: frozenset(
        {Permission.CHECK_IN, Permission.CHECK_OUT, Permission.CREATE_WALK_IN}
    ),
    StaffRole.HOUSEKEEPING: frozenset({Permission.ROOM_STATUS_WRITE, Permission.CHECK_OUT}),
    StaffRole.ACCOUNTANT: frozenset({Permission.VIEW_REPORTS}),
}

TRANSITION_PERMISSIONS: dict[ReservationStatus, Permission] = {
    ReservationStatus.BOOKED: Permission.APPROVE_RESERVATION,
    ReservationStatus.CANCELLED: Permission.CANCEL_RESERVATION,
    ReservationStatus.CHECKED_IN: Permission.CHECK_IN,
    ReservationStatus.CHECKED_OUT: Permission.CHECK_OUT,
}


def permissions_for(role: StaffRole | None) -> frozenset[Permission]:
    """Permissions granted to a role; staff without a role get none."""
    if role is None:
        return frozenset()
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(user: AuthenticatedUser | None, permission: Permission) -> bool:
    if user is None or not user.is_staff:
        return False
    return permission in permissions_for(user.role)


def require_staff(user: AuthenticatedUser | None) -> AuthenticatedUser:
    """Return the user if they are signed-in staff.

    Raises:
        BookingError: AUTH_REQUIRED otherwise
    """
    if user is None or not user.is_staff:
        raise BookingError(ErrorCode.AUTH_REQUIRED, details={"required": "staff"})
    return user


def require_permission(
    user: AuthenticatedUser | None,
    permission: Permission,
) -> AuthenticatedUser:
    """Return the user if their role grants `permission`.

    Raises:
        BookingError: AUTH_REQUIRED if not signed-in staff, FORBIDDEN if the
            role lacks the permission
    """
    staff = require_staff(user)
    if permission not in permissions_for(staff.role):
        raise BookingError(
            ErrorCode.FORBIDDEN,
            details={
                "permission": permission.value,
                "role": staff.role.value if staff.role else "none",
            },
        )
    return staff


def permission_for_transition(target: ReservationStatus) -> Permission | None:
    return TRANSITION_PERMISSIONS.get(target)
