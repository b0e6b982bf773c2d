"""Translation between wire records and domain models.

Wire records are flat and their field names vary in casing between
tables and backend versions ("room_id", "Room_ID", "roomId"). Relations
are resolved by in-memory lookup against sibling collections that were
already fetched, because the gateway's query primitive does not nest.

All functions are pure. Missing relations map to None; a record without
its own primary key cannot be represented and maps to None as well.
"""

import datetime as dt
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel, Field

from hotel_core.models import (
    Guest,
    GuestType,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Reservation,
    ReservationGuest,
    ReservationStatus,
    Room,
    RoomStatus,
    RoomType,
    Staff,
    StaffRole,
    StaffShift,
    StaffStatus,
)
from hotel_core.utils.logging import get_logger

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)


class RelatedTables(BaseModel):
    """Already-fetched sibling collections used to resolve foreign keys."""

    rooms: list[Room] = Field(default_factory=list)
    guests: list[Guest] = Field(default_factory=list)
    staff: list[Staff] = Field(default_factory=list)
    reservation_guests: list[ReservationGuest] = Field(default_factory=list)
    payments: list[Payment] = Field(default_factory=list)


class WireRecord:
    """Case- and underscore-insensitive view over a flat wire record."""

    def __init__(self, record: dict[str, Any]) -> None:
        self._index = {self._normalize(k): v for k, v in record.items()}

    @staticmethod
    def _normalize(key: str) -> str:
        return key.replace("_", "").lower()

    def get(self, key: str, default: Any = None) -> Any:
        value = self._index.get(self._normalize(key))
        return default if value is None else value


# Field parsing helpers


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _as_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def _as_date(value: Any) -> dt.date | None:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not value:
        return None
    try:
        # Accept plain dates and full timestamps
        return dt.date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _as_enum(enum_cls: type[E], value: Any) -> E | None:
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    text = str(value)
    for member in enum_cls:
        if member.value.lower() == text.lower():
            return member
    return None


def _as_phone(value: Any) -> str | None:
    """Phones stored as numbers lose their leading zero; put it back."""
    if value is None or value == "":
        return None
    text = str(value).strip()
    if isinstance(value, int) and len(text) == 10 and text.startswith("9"):
        return f"0{text}"
    return text


# Wire -> domain


def room_type_from_wire(wire: dict[str, Any]) -> RoomType | None:
    rec = WireRecord(wire)
    roomtype_id = _as_int(rec.get("roomtype_id"))
    if roomtype_id is None:
        return None
    rate = _as_decimal(rec.get("base_rate"))
    return RoomType(
        roomtype_id=roomtype_id,
        type_name=_as_str(rec.get("type_name")),
        base_rate=rate if rate >= 0 else Decimal("0"),
    )


def room_from_wire(wire: dict[str, Any], room_types: Iterable[RoomType]) -> Room | None:
    """Map a room record and attach its room type.

    Args:
        wire: Flat room record
        room_types: Already-mapped room types

    Returns:
        Room, or None when the record has no room_id
    """
    rec = WireRecord(wire)
    room_id = _as_int(rec.get("room_id"))
    if room_id is None:
        return None

    roomtype_id = _as_int(rec.get("roomtype_id"))
    room_type = next((rt for rt in room_types if rt.roomtype_id == roomtype_id), None)
    status = _as_enum(RoomStatus, rec.get("status"))
    if status is None:
        logger.warning(f"Room {room_id} has unknown status {rec.get('status')!r}; treating as Available")
        status = RoomStatus.AVAILABLE

    return Room(
        room_id=room_id,
        room_number=_as_str(rec.get("room_number")),
        roomtype_id=roomtype_id,
        status=status,
        room_type=room_type,
    )


def guest_from_wire(wire: dict[str, Any]) -> Guest | None:
    rec = WireRecord(wire)
    guest_id = _as_int(rec.get("guest_id"))
    if guest_id is None:
        return None
    return Guest(
        guest_id=guest_id,
        first_name=_as_str(rec.get("first_name")),
        middle_name=_as_str(rec.get("middle_name")),
        last_name=_as_str(rec.get("last_name")),
        email=_as_str(rec.get("email")),
        phone=_as_phone(rec.get("phone")),
        address=_as_str(rec.get("address")),
        city=_as_str(rec.get("city")),
        postal_code=_as_int(rec.get("postal_code")),
    )


def staff_from_wire(wire: dict[str, Any]) -> Staff | None:
    rec = WireRecord(wire)
    staff_id = _as_int(rec.get("staff_id"))
    if staff_id is None:
        return None
    return Staff(
        staff_id=staff_id,
        first_name=_as_str(rec.get("first_name")),
        last_name=_as_str(rec.get("last_name")),
        email=_as_str(rec.get("email")),
        role=_as_enum(StaffRole, rec.get("role")),
        shift=_as_enum(StaffShift, rec.get("shift")),
        status=_as_enum(StaffStatus, rec.get("status")),
    )


def payment_from_wire(wire: dict[str, Any]) -> Payment | None:
    rec = WireRecord(wire)
    payment_id = _as_int(rec.get("payment_id"))
    reservation_id = _as_int(rec.get("reservation_id"))
    if payment_id is None or reservation_id is None:
        return None
    amount = _as_decimal(rec.get("amount"))
    return Payment(
        payment_id=payment_id,
        reservation_id=reservation_id,
        amount=amount if amount >= 0 else Decimal("0"),
        method=_as_enum(PaymentMethod, rec.get("method")),
        status=_as_enum(PaymentStatus, rec.get("status")) or PaymentStatus.PENDING,
    )


def reservation_guest_from_wire(
    wire: dict[str, Any],
    guests: Iterable[Guest],
) -> ReservationGuest | None:
    rec = WireRecord(wire)
    resguest_id = _as_int(rec.get("resguest_id"))
    reservation_id = _as_int(rec.get("reservation_id"))
    guest_id = _as_int(rec.get("guest_id"))
    if resguest_id is None or reservation_id is None or guest_id is None:
        return None
    return ReservationGuest(
        resguest_id=resguest_id,
        reservation_id=reservation_id,
        guest_id=guest_id,
        guest_type=_as_enum(GuestType, rec.get("guest_type")) or GuestType.PRIMARY,
        guest=next((g for g in guests if g.guest_id == guest_id), None),
    )


def reservation_from_wire(
    wire: dict[str, Any],
    related: RelatedTables | None = None,
) -> Reservation | None:
    """Map a reservation record and resolve its relations.

    Args:
        wire: Flat reservation record
        related: Sibling collections for room, staff, guests and payment lookup

    Returns:
        Reservation with relations attached where they resolve, or None when
        the record lacks an id, room, dates or a known status
    """
    related = related or RelatedTables()
    rec = WireRecord(wire)

    reservation_id = _as_int(rec.get("reservation_id"))
    room_id = _as_int(rec.get("room_id"))
    check_in = _as_date(rec.get("check_in"))
    check_out = _as_date(rec.get("check_out"))
    status = _as_enum(ReservationStatus, rec.get("status"))

    if reservation_id is None or room_id is None or check_in is None or check_out is None:
        return None
    if status is None:
        logger.warning(
            f"Reservation {reservation_id} has unknown status {rec.get('status')!r}; skipping"
        )
        return None

    staff_id = _as_int(rec.get("staff_id"))
    total = _as_decimal(rec.get("total_amount"))

    return Reservation(
        reservation_id=reservation_id,
        room_id=room_id,
        staff_id=staff_id,
        check_in=check_in,
        check_out=check_out,
        status=status,
        total_amount=total if total >= 0 else Decimal("0"),
        room=next((r for r in related.rooms if r.room_id == room_id), None),
        staff=next((s for s in related.staff if s.staff_id == staff_id), None)
        if staff_id is not None
        else None,
        guests=[rg for rg in related.reservation_guests if rg.reservation_id == reservation_id],
        payment=next(
            (p for p in related.payments if p.reservation_id == reservation_id), None
        ),
    )


def reservations_from_wire(
    rows: Iterable[dict[str, Any]],
    related: RelatedTables | None = None,
) -> list[Reservation]:
    """Map many reservation records, dropping those that cannot be represented."""
    mapped = (reservation_from_wire(row, related) for row in rows)
    return [r for r in mapped if r is not None]


def map_many(rows: Iterable[dict[str, Any]], mapper: Any, *args: Any) -> list[Any]:
    """Apply a single-record mapper to many rows, dropping unmappable ones."""
    mapped = (mapper(row, *args) for row in rows)
    return [m for m in mapped if m is not None]


# Domain -> wire


def reservation_to_wire(reservation: Reservation) -> dict[str, Any]:
    """Flatten a reservation into the snake_case wire record."""
    return {
        "reservation_id": reservation.reservation_id,
        "room_id": reservation.room_id,
        "staff_id": reservation.staff_id,
        "check_in": reservation.check_in.isoformat(),
        "check_out": reservation.check_out.isoformat(),
        "status": reservation.status.value,
        "total_amount": float(reservation.total_amount),
    }


def room_to_wire(room: Room) -> dict[str, Any]:
    """Flatten a room into the snake_case wire record."""
    return {
        "room_id": room.room_id,
        "room_number": room.room_number,
        "roomtype_id": room.roomtype_id,
        "status": room.status.value,
    }
