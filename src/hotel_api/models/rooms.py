"""API models for room and availability endpoints."""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field

from hotel_core.models import Room, RoomStatus


class RoomResponse(BaseModel):
    """Room with its type flattened in."""

    room_id: int
    room_number: str
    type_name: str | None = None
    base_rate: Decimal = Field(default=Decimal("0"), description="Nightly rate in PHP")
    status: RoomStatus

    @classmethod
    def from_room(cls, room: Room) -> "RoomResponse":
        return cls(
            room_id=room.room_id,
            room_number=room.room_number,
            type_name=room.room_type.type_name if room.room_type else None,
            base_rate=room.base_rate,
            status=room.status,
        )


class RoomStatusUpdate(BaseModel):
    """Manual room status override."""

    status: RoomStatus = Field(..., examples=["Maintenance"])


class AvailabilityResponse(BaseModel):
    """Whether one room can be booked for a stay."""

    room_id: int
    check_in: dt.date
    check_out: dt.date
    is_available: bool = Field(..., description="No overlapping active reservation")
    is_bookable: bool = Field(..., description="Available and not under maintenance")
    conflicting_reservation_ids: list[int] = Field(default_factory=list)
