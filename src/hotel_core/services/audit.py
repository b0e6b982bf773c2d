"""Audit trail of reservation status changes (reservationlog table)."""

from typing import TYPE_CHECKING

from hotel_core.models import GatewayError, ReservationStatus
from hotel_core.utils.logging import get_logger, log_reservation_operation

from .gateway import MutationVerb

if TYPE_CHECKING:
    from .gateway import DataGateway

logger = get_logger(__name__)


class AuditLogService:
    """Writes one reservationlog row per status change.

    Audit writes are best-effort: a failed write is logged and never undoes
    the transition it describes.
    """

    TABLE = "reservationlog"

    def __init__(self, gateway: "DataGateway") -> None:
        self.gateway = gateway

    async def record(
        self,
        reservation_id: int,
        staff_id: int | None,
        action: str,
        previous: ReservationStatus | None,
        new: ReservationStatus,
        token: str | None = None,
    ) -> bool:
        """Append an audit entry.

        Args:
            reservation_id: Reservation the change applies to
            staff_id: Acting staff member, None for unattended changes
            action: Label such as "Approved" or "Checked Out"
            previous: Status before the change (None on creation)
            new: Status after the change
            token: Bearer token of the acting caller

        Returns:
            True if the row was written
        """
        body = {
            "reservation_id": reservation_id,
            "staff_id": staff_id,
            "action": action,
            "previous_status": previous.value if previous else None,
            "new_status": new.value,
        }
        try:
            await self.gateway.mutate(self.TABLE, MutationVerb.CREATE, body=body, token=token)
        except GatewayError as e:
            log_reservation_operation(
                logger,
                "audit_log",
                reservation_id=reservation_id,
                staff_id=staff_id,
                status=new.value,
                result="error",
                error=e.message,
                action=action,
            )
            return False

        log_reservation_operation(
            logger,
            "audit_log",
            reservation_id=reservation_id,
            staff_id=staff_id,
            status=new.value,
            result="success",
            action=action,
        )
        return True
