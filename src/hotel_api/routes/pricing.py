"""Pricing endpoints."""

import datetime as dt

from fastapi import APIRouter, Depends, Query

from hotel_api.dependencies import get_lifecycle_manager, get_pricing_service
from hotel_core.models import PriceCalculation
from hotel_core.services.lifecycle import ReservationLifecycleManager
from hotel_core.services.pricing import PricingService

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.get(
    "/quote",
    summary="Quote a stay",
    description="""
Price a stay in one room at its room type's nightly rate.

A stay is charged at least one night. Amounts are in PHP.
""",
    response_model=PriceCalculation,
    responses={404: {"description": "Room not found"}},
)
async def quote(
    room_id: int = Query(...),
    check_in: dt.date = Query(...),
    check_out: dt.date = Query(...),
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
    pricing: PricingService = Depends(get_pricing_service),
) -> PriceCalculation:
    room = manager.get_room(room_id)
    return pricing.price_for_room(room, check_in, check_out)
