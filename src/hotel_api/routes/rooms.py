"""Room endpoints.

Provides REST endpoints for:
- Listing rooms, optionally filtered by status and room type
- Manual room status overrides (staff with room-status permission)
- Per-room occupancy calendar
"""

from fastapi import APIRouter, Depends, Query

from hotel_api.dependencies import get_lifecycle_manager
from hotel_api.models.rooms import RoomResponse, RoomStatusUpdate
from hotel_core.models import RoomCalendar, RoomStatus
from hotel_core.services.lifecycle import ReservationLifecycleManager

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("", summary="List rooms", response_model=list[RoomResponse])
async def list_rooms(
    status: RoomStatus | None = Query(default=None, description="Only rooms in this status"),
    room_type: str | None = Query(default=None, alias="type", description="Room type name"),
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
) -> list[RoomResponse]:
    return [RoomResponse.from_room(r) for r in manager.filter_rooms(status, room_type)]


@router.patch(
    "/{room_id}/status",
    summary="Override room status",
    response_model=RoomResponse,
    responses={
        403: {"description": "Role may not change room status"},
        404: {"description": "Room not found"},
        409: {"description": "A reservation covering today conflicts with the new status"},
    },
)
async def update_room_status(
    room_id: int,
    body: RoomStatusUpdate,
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
) -> RoomResponse:
    room = await manager.update_room_status(room_id, body.status)
    return RoomResponse.from_room(room)


@router.get(
    "/{room_id}/calendar",
    summary="Room occupancy calendar",
    description="""
Booked (Booked/CheckedIn) and pending days for one room.

Each reservation occupies check_in up to, but not including, check_out.
""",
    response_model=RoomCalendar,
    responses={404: {"description": "Room not found"}},
)
async def room_calendar(
    room_id: int,
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
) -> RoomCalendar:
    manager.get_room(room_id)
    return manager.availability.unavailable_dates(room_id)
