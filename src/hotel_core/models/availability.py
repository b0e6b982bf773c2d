"""Availability and pricing result models."""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field

from .enums import DayStatus


class RoomCalendar(BaseModel):
    """Per-day occupancy of one room, for calendar highlighting.

    Days not listed in either set are available.
    """

    room_id: int
    booked: list[dt.date] = Field(default_factory=list, description="Booked or checked-in days")
    pending: list[dt.date] = Field(default_factory=list, description="Days requested by pending bookings")

    @property
    def disabled(self) -> list[dt.date]:
        """All days that cannot be selected."""
        return sorted(set(self.booked) | set(self.pending))

    def status_for(self, day: dt.date) -> DayStatus:
        """Severity of a single day; confirmed occupancy wins over pending."""
        if day in self.booked:
            return DayStatus.BOOKED
        if day in self.pending:
            return DayStatus.PENDING
        return DayStatus.AVAILABLE


class PriceCalculation(BaseModel):
    """Price breakdown for a stay."""

    check_in: dt.date
    check_out: dt.date
    nights: int = Field(..., ge=1)
    nightly_rate: Decimal = Field(..., ge=0)
    total_amount: Decimal = Field(..., ge=0)
