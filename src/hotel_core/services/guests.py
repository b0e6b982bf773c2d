"""Guest service for lookup, walk-in creation and profile updates."""

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from hotel_core.models import BookingError, ErrorCode, Guest, GuestCreate, GuestUpdate
from hotel_core.utils.logging import get_logger
from hotel_core.utils.validation import (
    clean_text,
    validate_email,
    validate_name,
    validate_phone,
    validate_postal_code,
)

from .gateway import MutationVerb
from .mapper import guest_from_wire, map_many

if TYPE_CHECKING:
    from .gateway import DataGateway

logger = get_logger(__name__)


class GuestService:
    """Service for guest records."""

    TABLE = "guest"

    def __init__(self, gateway: "DataGateway") -> None:
        """Initialize guest service.

        Args:
            gateway: Data gateway instance
        """
        self.gateway = gateway

    async def list_guests(self) -> list[Guest]:
        rows = await self.gateway.query(self.TABLE, order="guest_id.asc")
        return map_many(rows, guest_from_wire)

    async def find_by_email(self, email: str) -> Guest | None:
        """Exact, case-sensitive email lookup.

        Args:
            email: Email address to match

        Returns:
            The guest, or None if no row matches
        """
        rows = await self.gateway.query(
            self.TABLE,
            filters=f"email=eq.{quote(email.strip(), safe='@')}",
        )
        return guest_from_wire(rows[0]) if rows else None

    async def upsert_by_email(self, data: GuestCreate, token: str | None = None) -> Guest:
        """Return the guest with this email, creating it if none exists.

        A single atomic write keyed on the email unique constraint, so two
        walk-ins for the same new guest cannot create duplicate rows.

        Args:
            data: Guest details; names and phone are validated first
            token: Bearer token of the acting caller

        Returns:
            The existing or newly created guest

        Raises:
            BookingError: VALIDATION_FAILED for invalid details
            GatewayError: If the backend rejects the write
        """
        body = self.validated_body(data)
        row = await self.gateway.upsert(self.TABLE, body, on_conflict="email", token=token)
        guest = guest_from_wire(row)
        if guest is None:
            raise BookingError(ErrorCode.GUEST_NOT_FOUND, details={"email": body["email"]})

        logger.info(
            f"Resolved guest {guest.guest_id} for walk-in",
            extra={"guest_id": guest.guest_id},
        )
        return guest

    async def create(self, data: GuestCreate, token: str | None = None) -> Guest:
        """Insert a new guest row (sign-up path)."""
        row = await self.gateway.mutate(
            self.TABLE,
            MutationVerb.CREATE,
            body=self.validated_body(data),
            return_row=True,
            single=True,
            token=token,
        )
        guest = guest_from_wire(row) if isinstance(row, dict) else None
        if guest is None:
            raise BookingError(ErrorCode.GUEST_NOT_FOUND, details={"email": data.email})
        return guest

    async def update_profile(
        self,
        guest_id: int,
        update: GuestUpdate,
        token: str | None = None,
    ) -> Guest:
        """Validate and write profile changes.

        Only fields that were provided are written.

        Raises:
            BookingError: VALIDATION_FAILED for invalid fields, GUEST_NOT_FOUND
                if no row was updated
            GatewayError: If the backend rejects the write
        """
        body = self._update_body(update)
        if not body:
            rows = await self.gateway.query(
                self.TABLE, filters=f"guest_id=eq.{guest_id}", token=token
            )
            current = guest_from_wire(rows[0]) if rows else None
            if current is None:
                raise BookingError(ErrorCode.GUEST_NOT_FOUND, details={"guest_id": str(guest_id)})
            return current

        row = await self.gateway.mutate(
            self.TABLE,
            MutationVerb.UPDATE,
            body=body,
            filters=f"guest_id=eq.{guest_id}",
            return_row=True,
            single=True,
            token=token,
        )
        guest = guest_from_wire(row) if isinstance(row, dict) else None
        if guest is None:
            raise BookingError(ErrorCode.GUEST_NOT_FOUND, details={"guest_id": str(guest_id)})

        logger.info(f"Updated profile for guest {guest_id}", extra={"guest_id": guest_id})
        return guest

    def validated_body(self, data: GuestCreate) -> dict[str, Any]:
        return {
            "first_name": validate_name("first_name", data.first_name),
            "middle_name": clean_text("middle_name", data.middle_name),
            "last_name": validate_name("last_name", data.last_name),
            "email": validate_email(data.email),
            "phone": validate_phone(data.phone, required=False),
            "address": clean_text("address", data.address),
            "city": clean_text("city", data.city, title_case=True),
            "postal_code": validate_postal_code(data.postal_code),
        }

    def _update_body(self, update: GuestUpdate) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if update.first_name is not None:
            body["first_name"] = validate_name("first_name", update.first_name)
        if update.last_name is not None:
            body["last_name"] = validate_name("last_name", update.last_name)
        if update.phone is not None:
            body["phone"] = validate_phone(update.phone)
        if update.address is not None:
            body["address"] = clean_text("address", update.address)
        if update.city is not None:
            body["city"] = clean_text("city", update.city, title_case=True)
        if update.postal_code is not None:
            body["postal_code"] = validate_postal_code(update.postal_code)
        return body
