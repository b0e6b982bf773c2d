"""Reservation model and booking requests."""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .enums import GuestType, PaymentMethod, ReservationStatus
from .guest import Guest
from .payment import Payment
from .room import Room
from .staff import Staff


class ReservationGuest(BaseModel):
    """Join row between a reservation and one of its guests."""

    model_config = ConfigDict(strict=True)

    resguest_id: int = Field(..., description="Unique link ID")
    reservation_id: int = Field(..., description="Reference to Reservation")
    guest_id: int = Field(..., description="Reference to Guest")
    guest_type: GuestType = Field(default=GuestType.PRIMARY)
    guest: Guest | None = Field(default=None, description="Resolved guest")


class Reservation(BaseModel):
    """A room booking for a date range.

    The stay covers the half-open interval [check_in, check_out).
    Reservations are never deleted; Cancelled and CheckedOut are terminal.
    """

    model_config = ConfigDict(strict=True)

    reservation_id: int = Field(..., description="Unique reservation ID")
    room_id: int = Field(..., description="Reference to Room")
    staff_id: int | None = Field(
        default=None,
        description="Staff member who acted on the booking; unassigned until then",
    )
    check_in: dt.date = Field(..., description="Check-in date")
    check_out: dt.date = Field(..., description="Check-out date (exclusive)")
    status: ReservationStatus = Field(default=ReservationStatus.PENDING)
    total_amount: Decimal = Field(default=Decimal("0"), ge=0, description="Total in PHP")

    # Resolved relations
    room: Room | None = None
    staff: Staff | None = None
    guests: list[ReservationGuest] = Field(default_factory=list)
    payment: Payment | None = None

    @property
    def primary_guest(self) -> Guest | None:
        """The guest designated as main contact, if resolved."""
        for link in self.guests:
            if link.guest_type == GuestType.PRIMARY and link.guest is not None:
                return link.guest
        return None

    @property
    def stay_nights(self) -> int:
        """Length of stay in days, clamped at zero."""
        return max(0, (self.check_out - self.check_in).days)


class ReservationRequest(BaseModel):
    """Guest self-booking request."""

    room_id: int
    check_in: dt.date
    check_out: dt.date
    payment_method: PaymentMethod = PaymentMethod.CASH


class WalkInRequest(BaseModel):
    """Staff-created booking for a guest who need not have an account."""

    room_id: int
    check_in: dt.date
    check_out: dt.date
    guest_first_name: str
    guest_last_name: str
    guest_email: str
    guest_phone: str | None = None
    payment_method: PaymentMethod = PaymentMethod.CASH


class BookingOutcome(BaseModel):
    """Result of a create path.

    A failed payment-row write does not undo the reservation; it shows up
    here as a warning instead.
    """

    reservation_id: int
    total_amount: Decimal
    nights: int
    status: ReservationStatus = ReservationStatus.PENDING
    guest_id: int | None = None
    payment_recorded: bool = True
    warnings: list[str] = Field(default_factory=list)


class SweepReport(BaseModel):
    """Outcome of one auto-checkout sweep."""

    run_date: dt.date
    checked_out: list[int] = Field(default_factory=list)
    failed: list[int] = Field(default_factory=list)
