"""Derived dashboard and report figures."""

from decimal import Decimal

from pydantic import BaseModel, Field

from .enums import PaymentMethod, StaffRole


class DashboardMetrics(BaseModel):
    """Dashboard figures recomputed from in-memory collections."""

    total_revenue: Decimal = Field(default=Decimal("0"))
    active_reservations: int = 0
    available_rooms: int = 0
    average_stay_nights: float = 0.0
    payment_breakdown: dict[PaymentMethod, Decimal] = Field(default_factory=dict)


class PaymentTotals(BaseModel):
    """Paid versus pending payment sums."""

    paid: Decimal = Field(default=Decimal("0"))
    pending: Decimal = Field(default=Decimal("0"))


class StaffWorkload(BaseModel):
    """Number of reservations a staff member has handled."""

    staff_id: int
    name: str
    role: StaffRole | None = None
    reservations_handled: int = 0
