"""Payment model for bookkeeping records.

Payments are not processed here; a row is written alongside each
reservation so that reports can break revenue down by method.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .enums import PaymentMethod, PaymentStatus


class Payment(BaseModel):
    """A payment record for a reservation. Amounts are in PHP."""

    model_config = ConfigDict(strict=True)

    payment_id: int = Field(..., description="Unique payment ID")
    reservation_id: int = Field(..., description="Reference to Reservation")
    amount: Decimal = Field(..., ge=0, description="Amount in PHP")
    method: PaymentMethod | None = Field(default=None, description="Payment method")
    status: PaymentStatus = Field(default=PaymentStatus.PENDING, description="Bookkeeping status")
