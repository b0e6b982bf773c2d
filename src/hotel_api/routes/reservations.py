"""Reservation endpoints.

Provides REST endpoints for:
- Searching reservations (staff)
- Listing the signed-in guest's reservations
- Guest self-booking and staff walk-in booking
- Status changes (approve, reject, check in, check out, cancel)
- Running the auto-checkout sweep on demand
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_201_CREATED

from hotel_api.dependencies import get_lifecycle_manager
from hotel_api.models.reservations import ReservationResponse, StatusUpdateRequest
from hotel_core.models import (
    BookingError,
    BookingOutcome,
    ErrorCode,
    ReservationRequest,
    SweepReport,
    WalkInRequest,
)
from hotel_core.services.lifecycle import ReservationLifecycleManager
from hotel_core.services.permissions import require_staff

router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.get(
    "",
    summary="Search reservations",
    response_model=list[ReservationResponse],
    responses={401: {"description": "Staff login required"}},
)
async def search_reservations(
    q: str = Query(default="", description="Room number or guest name"),
    tab: Literal["all", "pending", "active"] = Query(default="all"),
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
) -> list[ReservationResponse]:
    require_staff(manager.user)
    return [ReservationResponse.from_reservation(r) for r in manager.search_reservations(q, tab)]


@router.get(
    "/mine",
    summary="My reservations",
    response_model=list[ReservationResponse],
    responses={401: {"description": "Guest login required"}},
)
async def my_reservations(
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
) -> list[ReservationResponse]:
    user = manager.user
    if user is None or not user.is_guest or user.guest_id is None:
        raise BookingError(ErrorCode.AUTH_REQUIRED, details={"required": "guest"})
    return [
        ReservationResponse.from_reservation(r)
        for r in manager.reservations_for_guest(user.guest_id)
    ]


@router.get(
    "/{reservation_id}",
    summary="Get reservation",
    response_model=ReservationResponse,
    responses={404: {"description": "Reservation not found"}},
)
async def get_reservation(
    reservation_id: int,
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
) -> ReservationResponse:
    require_staff(manager.user)
    return ReservationResponse.from_reservation(manager.get_reservation(reservation_id))


@router.post(
    "",
    summary="Book a room",
    response_model=BookingOutcome,
    status_code=HTTP_201_CREATED,
    responses={
        401: {"description": "Guest login required"},
        404: {"description": "Room not found"},
        409: {"description": "Room under maintenance or dates taken"},
    },
)
async def create_reservation(
    body: ReservationRequest,
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
) -> BookingOutcome:
    return await manager.add_reservation(body)


@router.post(
    "/walk-in",
    summary="Create a walk-in booking",
    response_model=BookingOutcome,
    status_code=HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid guest details"},
        401: {"description": "Staff login required"},
        403: {"description": "Role may not create walk-ins"},
        409: {"description": "Room under maintenance or dates taken"},
    },
)
async def create_walk_in(
    body: WalkInRequest,
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
) -> BookingOutcome:
    return await manager.add_walk_in_reservation(body)


@router.patch(
    "/{reservation_id}/status",
    summary="Change reservation status",
    description="""
Approve (Booked), reject or cancel (Cancelled), check in (CheckedIn) or
check out (CheckedOut).

Approving a booking whose check-in date has arrived checks the guest in
immediately.
""",
    response_model=ReservationResponse,
    responses={
        401: {"description": "Staff login required"},
        403: {"description": "Role may not perform this change"},
        404: {"description": "Reservation not found"},
        409: {"description": "Status change not allowed"},
    },
)
async def update_status(
    reservation_id: int,
    body: StatusUpdateRequest,
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
) -> ReservationResponse:
    reservation = await manager.update_status(reservation_id, body.status)
    return ReservationResponse.from_reservation(reservation)


@router.post(
    "/sweep",
    summary="Run auto-checkout now",
    response_model=SweepReport,
    responses={401: {"description": "Staff login required"}},
)
async def run_sweep(
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
) -> SweepReport:
    require_staff(manager.user)
    return await manager.run_checkout_sweep()
