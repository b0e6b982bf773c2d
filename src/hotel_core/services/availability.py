"""Availability service for room/date conflict checks.

A stay occupies the half-open interval [check_in, check_out): a guest
checking out on a day frees the room for a guest checking in that day.
"""

import datetime as dt
from typing import Callable, Iterable

from hotel_core.models import (
    Reservation,
    ReservationStatus,
    Room,
    RoomCalendar,
    RoomStatus,
    TERMINAL_STATUSES,
)

ReservationProvider = Callable[[], Iterable[Reservation]]
RoomProvider = Callable[[], Iterable[Room]]

# Statuses whose days show as booked on the room calendar
CALENDAR_BOOKED = frozenset({ReservationStatus.BOOKED, ReservationStatus.CHECKED_IN})


def has_conflict(
    reservation: Reservation,
    room_id: int,
    check_in: dt.date,
    check_out: dt.date,
) -> bool:
    """Whether an existing reservation blocks the requested stay.

    Args:
        reservation: Existing reservation
        room_id: Requested room
        check_in: Requested check-in
        check_out: Requested check-out (exclusive)

    Returns:
        True if same room, non-terminal and the intervals overlap
    """
    if reservation.room_id != room_id:
        return False
    if reservation.status in TERMINAL_STATUSES:
        return False
    return check_in < reservation.check_out and check_out > reservation.check_in


def _days(check_in: dt.date, check_out: dt.date) -> list[dt.date]:
    """Each day of [check_in, check_out)."""
    return [check_in + dt.timedelta(days=i) for i in range((check_out - check_in).days)]


class AvailabilityService:
    """Service for availability checking against in-memory reservations."""

    def __init__(
        self,
        reservations: ReservationProvider,
        rooms: RoomProvider | None = None,
    ) -> None:
        """Initialize availability service.

        Args:
            reservations: Callable returning the current reservation collection
            rooms: Callable returning the current room collection
        """
        self._reservations = reservations
        self._rooms = rooms or (lambda: [])

    def conflicting_reservations(
        self,
        room_id: int,
        check_in: dt.date,
        check_out: dt.date,
    ) -> list[Reservation]:
        """Reservations that overlap the requested stay in the same room."""
        return [
            r
            for r in self._reservations()
            if has_conflict(r, room_id, check_in, check_out)
        ]

    def is_available(self, room_id: int, check_in: dt.date, check_out: dt.date) -> bool:
        """Whether no active reservation overlaps the stay.

        Room status is not consulted here; see is_bookable.
        """
        return not any(
            has_conflict(r, room_id, check_in, check_out) for r in self._reservations()
        )

    def is_bookable(self, room: Room, check_in: dt.date, check_out: dt.date) -> bool:
        """Whether the room can be booked: not in Maintenance and available."""
        if room.status == RoomStatus.MAINTENANCE:
            return False
        return self.is_available(room.room_id, check_in, check_out)

    def available_rooms(self, check_in: dt.date, check_out: dt.date) -> list[Room]:
        """Rooms that can be booked for the whole stay, in room order."""
        return [
            room
            for room in sorted(self._rooms(), key=lambda r: r.room_id)
            if self.is_bookable(room, check_in, check_out)
        ]

    def unavailable_dates(self, room_id: int) -> RoomCalendar:
        """Booked and pending days for one room.

        Args:
            room_id: Room to inspect

        Returns:
            RoomCalendar with each occupied day of every non-terminal stay
        """
        booked: set[dt.date] = set()
        pending: set[dt.date] = set()

        for r in self._reservations():
            if r.room_id != room_id:
                continue
            if r.status in CALENDAR_BOOKED:
                booked.update(_days(r.check_in, r.check_out))
            elif r.status == ReservationStatus.PENDING:
                pending.update(_days(r.check_in, r.check_out))

        return RoomCalendar(room_id=room_id, booked=sorted(booked), pending=sorted(pending))
