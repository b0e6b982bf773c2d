"""Availability endpoints.

All dates are in YYYY-MM-DD format; check_out is exclusive.
"""

import datetime as dt

from fastapi import APIRouter, Depends, Query

from hotel_api.dependencies import get_lifecycle_manager
from hotel_api.models.rooms import AvailabilityResponse, RoomResponse
from hotel_core.services.lifecycle import ReservationLifecycleManager

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get(
    "",
    summary="Check one room",
    response_model=AvailabilityResponse,
    responses={404: {"description": "Room not found"}},
)
async def check_availability(
    room_id: int = Query(..., description="Room to check"),
    check_in: dt.date = Query(..., examples=["2025-03-10"]),
    check_out: dt.date = Query(..., examples=["2025-03-12"]),
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
) -> AvailabilityResponse:
    room = manager.get_room(room_id)
    conflicts = manager.availability.conflicting_reservations(room_id, check_in, check_out)
    return AvailabilityResponse(
        room_id=room_id,
        check_in=check_in,
        check_out=check_out,
        is_available=not conflicts,
        is_bookable=manager.availability.is_bookable(room, check_in, check_out),
        conflicting_reservation_ids=[r.reservation_id for r in conflicts],
    )


@router.get("/rooms", summary="Bookable rooms for a stay", response_model=list[RoomResponse])
async def available_rooms(
    check_in: dt.date = Query(...),
    check_out: dt.date = Query(...),
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
) -> list[RoomResponse]:
    rooms = manager.availability.available_rooms(check_in, check_out)
    return [RoomResponse.from_room(r) for r in rooms]
