"""API models for reservation endpoints."""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field

from hotel_core.models import (
    PaymentMethod,
    PaymentStatus,
    PaymentTotals,
    Reservation,
    ReservationStatus,
    StaffWorkload,
)


class ReservationResponse(BaseModel):
    """Reservation with its relations flattened for display."""

    reservation_id: int
    room_id: int
    room_number: str | None = None
    guest_name: str | None = None
    staff_id: int | None = None
    check_in: dt.date
    check_out: dt.date
    nights: int
    status: ReservationStatus
    total_amount: Decimal
    payment_method: PaymentMethod | None = None
    payment_status: PaymentStatus | None = None

    @classmethod
    def from_reservation(cls, reservation: Reservation) -> "ReservationResponse":
        guest = reservation.primary_guest
        payment = reservation.payment
        return cls(
            reservation_id=reservation.reservation_id,
            room_id=reservation.room_id,
            room_number=reservation.room.room_number if reservation.room else None,
            guest_name=guest.full_name if guest else None,
            staff_id=reservation.staff_id,
            check_in=reservation.check_in,
            check_out=reservation.check_out,
            nights=reservation.stay_nights,
            status=reservation.status,
            total_amount=reservation.total_amount,
            payment_method=payment.method if payment else None,
            payment_status=payment.status if payment else None,
        )


class StatusUpdateRequest(BaseModel):
    """Requested reservation status."""

    status: ReservationStatus = Field(..., examples=["Booked"])


class StaffReportResponse(BaseModel):
    """Staff workload and payment totals."""

    workload: list[StaffWorkload] = Field(default_factory=list)
    payments: PaymentTotals
