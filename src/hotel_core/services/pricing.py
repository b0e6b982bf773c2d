"""Pricing service for stay cost calculation.

Rates are per night in PHP. A stay is always charged at least one night,
so same-day or inverted ranges still price as a single night.
"""

import datetime as dt
import math
from decimal import ROUND_HALF_UP, Decimal

from hotel_core.models import PriceCalculation, Room

CENTAVO = Decimal("0.01")


def count_nights(check_in: dt.date | dt.datetime, check_out: dt.date | dt.datetime) -> int:
    """Number of billable nights: the ceiling of the day difference, at least 1."""
    if isinstance(check_in, dt.datetime) and isinstance(check_out, dt.datetime):
        days = (check_out - check_in).total_seconds() / 86400
    else:
        start = check_in.date() if isinstance(check_in, dt.datetime) else check_in
        end = check_out.date() if isinstance(check_out, dt.datetime) else check_out
        days = (end - start).days
    return max(1, math.ceil(days))


class PricingService:
    """Service for pricing calculations."""

    def calculate_price(
        self,
        base_rate: Decimal,
        check_in: dt.date,
        check_out: dt.date,
    ) -> PriceCalculation:
        """Calculate the total price for a stay.

        Args:
            base_rate: Nightly rate of the room type
            check_in: Check-in date
            check_out: Check-out date

        Returns:
            PriceCalculation with nights and total

        Raises:
            ValueError: If base_rate is negative
        """
        rate = Decimal(str(base_rate))
        if rate < 0:
            raise ValueError(f"Nightly rate cannot be negative: {rate}")

        nights = count_nights(check_in, check_out)
        total = (rate * nights).quantize(CENTAVO, rounding=ROUND_HALF_UP)

        return PriceCalculation(
            check_in=check_in,
            check_out=check_out,
            nights=nights,
            nightly_rate=rate,
            total_amount=total,
        )

    def compute_total(self, base_rate: Decimal, check_in: dt.date, check_out: dt.date) -> Decimal:
        """Total amount only."""
        return self.calculate_price(base_rate, check_in, check_out).total_amount

    def price_for_room(self, room: Room, check_in: dt.date, check_out: dt.date) -> PriceCalculation:
        """Price a stay at the room's type rate; an unresolved type prices at zero."""
        return self.calculate_price(room.base_rate, check_in, check_out)
