"""Reservation lifecycle: in-memory state, creation paths, status transitions
and the background auto-checkout sweep.

The manager applies status changes to local state first so that readers
see them immediately, then performs the authoritative write. A failed
write restores the row to its last server-confirmed state before the error
propagates. Each row carries a RowVersion so that realtime patches and
local confirmations can be merged without letting stale data win.
"""

import asyncio
import copy
import datetime as dt
from typing import Any, Callable, Iterable

from pydantic import BaseModel

from hotel_core.models import (
    ACTIVE_STATUSES,
    AuthenticatedUser,
    BookingError,
    BookingOutcome,
    ErrorCode,
    GatewayError,
    Guest,
    GuestCreate,
    GuestType,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Reservation,
    ReservationGuest,
    ReservationRequest,
    ReservationStatus,
    Room,
    RoomStatus,
    RoomType,
    Staff,
    SweepReport,
    WalkInRequest,
)
from hotel_core.utils.logging import get_logger, log_reservation_operation

from .audit import AuditLogService
from .availability import AvailabilityService
from .gateway import DataGateway, MutationVerb, SessionContext
from .guests import GuestService
from .mapper import (
    RelatedTables,
    WireRecord,
    guest_from_wire,
    map_many,
    payment_from_wire,
    reservation_guest_from_wire,
    reservations_from_wire,
    room_from_wire,
    room_type_from_wire,
    staff_from_wire,
)
from .permissions import (
    Permission,
    permission_for_transition,
    require_permission,
    require_staff,
)
from .pricing import PricingService
from .state_machine import WALK_IN_ACTION, audit_action, room_effect, validate_transition

logger = get_logger(__name__)

ROOM = "room"
RESERVATION = "reservation"


def parse_timestamp(value: Any) -> dt.datetime | None:
    """Parse a backend commit timestamp; naive values are taken as UTC."""
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.UTC)
    return parsed


class RowVersion(BaseModel):
    """Merge bookkeeping for one in-memory row.

    Only server commit timestamps are ever compared; the local clock plays
    no part in deciding which state wins.

    Attributes:
        confirmed_at: Commit time of the newest server push applied to the row
        pending: An optimistic local write is in flight
        server_spoke: A server push was applied while the write was in flight
    """

    confirmed_at: dt.datetime | None = None
    pending: bool = False
    server_spoke: bool = False


class ReservationStore:
    """In-memory collections for one client session.

    Rooms and reservations are versioned; the remaining collections are
    reference data replaced wholesale on refresh.
    """

    def __init__(self) -> None:
        self.room_types: list[RoomType] = []
        self.payments: list[Payment] = []
        self.guests: list[Guest] = []
        self.staff: list[Staff] = []
        self.reservation_guests: list[ReservationGuest] = []
        self._rooms: dict[int, Room] = {}
        self._reservations: dict[int, Reservation] = {}
        self._versions: dict[tuple[str, int], RowVersion] = {}
        # Last server-confirmed state of each row, for rollback
        self._confirmed: dict[tuple[str, int], BaseModel] = {}

    # Reads

    @property
    def rooms(self) -> list[Room]:
        return list(self._rooms.values())

    @property
    def reservations(self) -> list[Reservation]:
        return list(self._reservations.values())

    def get_room(self, room_id: int) -> Room | None:
        return self._rooms.get(room_id)

    def get_reservation(self, reservation_id: int) -> Reservation | None:
        return self._reservations.get(reservation_id)

    def version(self, kind: str, row_id: int) -> RowVersion:
        return self._versions.setdefault((kind, row_id), RowVersion())

    # Full replacement

    def replace_all(
        self,
        *,
        room_types: list[RoomType],
        rooms: list[Room],
        staff: list[Staff],
        reservations: list[Reservation],
        payments: list[Payment],
        guests: list[Guest],
        reservation_guests: list[ReservationGuest],
    ) -> None:
        """Replace every collection."""
        self.room_types = room_types
        self.staff = staff
        self._replace(ROOM, self._rooms, {r.room_id: r for r in rooms})
        self.replace_reservations(
            reservations=reservations,
            payments=payments,
            guests=guests,
            reservation_guests=reservation_guests,
        )

    def replace_reservations(
        self,
        *,
        reservations: list[Reservation],
        payments: list[Payment],
        guests: list[Guest],
        reservation_guests: list[ReservationGuest],
    ) -> None:
        """Replace reservations and the collections hanging off them."""
        self.payments = payments
        self.guests = guests
        self.reservation_guests = reservation_guests
        self._replace(RESERVATION, self._reservations, {r.reservation_id: r for r in reservations})

    def _replace(self, kind: str, target: dict[int, Any], rows: dict[int, Any]) -> None:
        # Rows that survive keep their push watermark; a fetch carries no commit time
        target.clear()
        target.update(rows)
        for key in [k for k in self._versions if k[0] == kind and k[1] not in rows]:
            del self._versions[key]
        for key in [k for k in self._confirmed if k[0] == kind]:
            del self._confirmed[key]
        for row_id, row in rows.items():
            version = self.version(kind, row_id)
            version.pending = False
            version.server_spoke = False
            self._confirmed[(kind, row_id)] = row

    # Optimistic writes

    def apply_optimistic(self, kind: str, row: Room | Reservation) -> None:
        """Show a local change immediately, remembering the confirmed state."""
        row_id = self._row_id(kind, row)
        key = (kind, row_id)
        version = self.version(kind, row_id)
        if not version.pending:
            current = self._collection(kind).get(row_id)
            if current is not None and key not in self._confirmed:
                self._confirmed[key] = current
            version.pending = True
            version.server_spoke = False
        self._collection(kind)[row_id] = row

    def confirm(self, kind: str, row: Room | Reservation) -> bool:
        """Record that the server accepted a local write.

        A server push applied while the write was in flight is newer server
        state than anything known locally, so it is kept; the push echoing
        this write follows it.

        Returns:
            False if a server push arrived meanwhile and was kept
        """
        row_id = self._row_id(kind, row)
        version = self.version(kind, row_id)
        version.pending = False

        if version.server_spoke:
            version.server_spoke = False
            return False

        self._collection(kind)[row_id] = row
        self._confirmed[(kind, row_id)] = row
        return True

    def rollback(self, kind: str, row_id: int) -> None:
        """Restore the last server-confirmed state after a failed write."""
        version = self.version(kind, row_id)
        version.pending = False
        version.server_spoke = False
        confirmed = self._confirmed.get((kind, row_id))
        if confirmed is not None:
            self._collection(kind)[row_id] = confirmed

    # Realtime merge

    def apply_remote_patch(
        self,
        kind: str,
        row_id: int,
        changes: dict[str, Any],
        commit_timestamp: dt.datetime | None = None,
    ) -> str:
        """Merge field changes pushed by the server.

        Returns:
            "patched", "stale" (committed before a push already applied) or
            "ignored" (row not held locally)
        """
        collection = self._collection(kind)
        current = collection.get(row_id)
        if current is None:
            return "ignored"

        version = self.version(kind, row_id)
        if (
            commit_timestamp is not None
            and version.confirmed_at is not None
            and commit_timestamp < version.confirmed_at
        ):
            return "stale"

        patched = current.model_copy(update=changes)
        collection[row_id] = patched
        self._confirmed[(kind, row_id)] = patched

        if commit_timestamp is not None:
            version.confirmed_at = commit_timestamp
        if version.pending:
            version.server_spoke = True
        return "patched"

    def _collection(self, kind: str) -> dict[int, Any]:
        return self._rooms if kind == ROOM else self._reservations

    @staticmethod
    def _row_id(kind: str, row: Room | Reservation) -> int:
        return row.room_id if kind == ROOM else row.reservation_id  # type: ignore[union-attr]


class ReservationLifecycleManager:
    """Orchestrates booking creation, status transitions and auto-checkout."""

    RESERVATION_TABLE = "reservation"
    ROOM_TABLE = "room"
    PAYMENT_TABLE = "payment"
    LINK_TABLE = "reservationguest"

    def __init__(
        self,
        gateway: DataGateway,
        session: SessionContext,
        store: ReservationStore | None = None,
        *,
        pricing: PricingService | None = None,
        audit: AuditLogService | None = None,
        guests: GuestService | None = None,
        today: Callable[[], dt.date] = dt.date.today,
        sweep_interval: float = 60.0,
        init_timeout: float = 10.0,
    ) -> None:
        """Initialize the lifecycle manager.

        Args:
            gateway: Data gateway instance
            session: Background session; shared-store reloads and the sweeper
                run under it
            store: In-memory state (a fresh one if omitted)
            pricing: Pricing service
            audit: Audit log service
            guests: Guest service used by walk-ins
            today: Clock returning the current local date
            sweep_interval: Seconds between auto-checkout sweeps
            init_timeout: Seconds after which load() stops waiting
        """
        self.gateway = gateway
        self.session = session
        self._loader_session = session
        self.store = store or ReservationStore()
        self.pricing = pricing or PricingService()
        self.audit = audit or AuditLogService(gateway)
        self.guests = guests or GuestService(gateway)
        self.availability = AvailabilityService(
            lambda: self.store.reservations,
            lambda: self.store.rooms,
        )
        self._today = today
        self._sweep_interval = sweep_interval
        self._init_timeout = init_timeout
        self._sweep_lock = asyncio.Lock()
        self._sweeper: asyncio.Task | None = None
        self._load_task: asyncio.Task | None = None
        self.ready = False

    @property
    def user(self) -> AuthenticatedUser | None:
        return self.session.user

    def bind(self, session: SessionContext) -> "ReservationLifecycleManager":
        """A view of this manager acting for one caller.

        The view shares the store, services and sweep lock; only the
        identity that permission checks and writes use is replaced.
        """
        view = copy.copy(self)
        view.session = session
        return view

    # Loading

    async def load(self) -> bool:
        """Initial load, bounded by the init safety timer.

        When the timer fires the caller is released and the fetch keeps
        running in the background.

        Returns:
            True if the data arrived before the timer fired
        """
        self._load_task = asyncio.ensure_future(self.refresh())
        try:
            await asyncio.wait_for(asyncio.shield(self._load_task), self._init_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Initial load still running after {self._init_timeout}s; continuing without it"
            )
            self._load_task.add_done_callback(self._log_late_load)
            self.ready = True
            return False
        self.ready = True
        return True

    @staticmethod
    def _log_late_load(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        if task.exception() is not None:
            logger.error(f"Initial load failed after safety timeout: {task.exception()}")
        else:
            logger.info("Initial load completed after safety timeout")

    async def refresh(self) -> None:
        """Fetch every collection and rebuild the store.

        Reads run under the background session whichever caller triggers
        them, so one caller's visibility never shapes the shared store.
        """
        token = self._loader_session.token
        rt_rows, room_rows, res_rows, pay_rows, guest_rows, link_rows = await asyncio.gather(
            self.gateway.query("roomtype", order="roomtype_id.asc", token=token),
            self.gateway.query(self.ROOM_TABLE, order="room_id.asc", token=token),
            self.gateway.query(self.RESERVATION_TABLE, order="reservation_id.asc", token=token),
            self.gateway.query(self.PAYMENT_TABLE, token=token),
            self.gateway.query(GuestService.TABLE, token=token),
            self.gateway.query(self.LINK_TABLE, token=token),
        )
        staff_rows = await self._fetch_staff()

        room_types = map_many(rt_rows, room_type_from_wire)
        rooms = map_many(room_rows, room_from_wire, room_types)
        staff = map_many(staff_rows, staff_from_wire)
        payments = map_many(pay_rows, payment_from_wire)
        guests = map_many(guest_rows, guest_from_wire)
        links = map_many(link_rows, reservation_guest_from_wire, guests)
        related = RelatedTables(
            rooms=rooms,
            guests=guests,
            staff=staff,
            reservation_guests=links,
            payments=payments,
        )

        self.store.replace_all(
            room_types=room_types,
            rooms=rooms,
            staff=staff,
            reservations=reservations_from_wire(res_rows, related),
            payments=payments,
            guests=guests,
            reservation_guests=links,
        )
        logger.info(
            f"Loaded {len(rooms)} rooms and {len(self.store.reservations)} reservations"
        )

    async def refresh_reservations(self) -> None:
        """Re-fetch reservations with their payments, guests and guest links."""
        token = self._loader_session.token
        res_rows, pay_rows, guest_rows, link_rows = await asyncio.gather(
            self.gateway.query(self.RESERVATION_TABLE, order="reservation_id.asc", token=token),
            self.gateway.query(self.PAYMENT_TABLE, token=token),
            self.gateway.query(GuestService.TABLE, token=token),
            self.gateway.query(self.LINK_TABLE, token=token),
        )
        payments = map_many(pay_rows, payment_from_wire)
        guests = map_many(guest_rows, guest_from_wire)
        links = map_many(link_rows, reservation_guest_from_wire, guests)
        related = RelatedTables(
            rooms=self.store.rooms,
            guests=guests,
            staff=self.store.staff,
            reservation_guests=links,
            payments=payments,
        )
        self.store.replace_reservations(
            reservations=reservations_from_wire(res_rows, related),
            payments=payments,
            guests=guests,
            reservation_guests=links,
        )

    async def _fetch_staff(self) -> list[dict[str, Any]]:
        # The staff table is readable only with a staff session
        loader = self._loader_session
        if loader.user is None or not loader.user.is_staff:
            return []
        try:
            return await self.gateway.query("staff", order="staff_id.asc", token=loader.token)
        except GatewayError as e:
            logger.warning(f"Could not load staff list: {e.message}")
            return []

    # Creation

    async def add_reservation(self, request: ReservationRequest) -> BookingOutcome:
        """Guest self-booking.

        Args:
            request: Room, dates and payment method

        Returns:
            BookingOutcome; a failed payment write shows up as a warning

        Raises:
            BookingError: AUTH_REQUIRED, ROOM_NOT_FOUND, ROOM_UNAVAILABLE or
                DATES_UNAVAILABLE
            GatewayError: If the reservation write fails
        """
        user = self.user
        if user is None or not user.is_guest or not self.session.token:
            raise BookingError(ErrorCode.AUTH_REQUIRED, details={"required": "guest"})

        room = self._bookable_room(request.room_id, request.check_in, request.check_out)
        outcome = await self._create(
            room,
            request.check_in,
            request.check_out,
            payment_method=request.payment_method,
            guest_id=user.guest_id,
            staff_id=None,
        )
        await self.refresh_reservations()
        return outcome

    async def add_walk_in_reservation(self, request: WalkInRequest) -> BookingOutcome:
        """Staff-created booking for a guest identified by email.

        The guest row is reused when the email already exists, otherwise
        created, in one atomic write.

        Raises:
            BookingError: AUTH_REQUIRED, FORBIDDEN, VALIDATION_FAILED,
                ROOM_NOT_FOUND, ROOM_UNAVAILABLE or DATES_UNAVAILABLE
            GatewayError: If the guest or reservation write fails
        """
        staff = require_permission(self.user, Permission.CREATE_WALK_IN)
        room = self._bookable_room(request.room_id, request.check_in, request.check_out)

        guest = await self.guests.upsert_by_email(
            GuestCreate(
                first_name=request.guest_first_name,
                last_name=request.guest_last_name,
                email=request.guest_email,
                phone=request.guest_phone,
            ),
            token=self.session.token,
        )
        outcome = await self._create(
            room,
            request.check_in,
            request.check_out,
            payment_method=request.payment_method,
            guest_id=guest.guest_id,
            staff_id=staff.staff_id,
        )
        await self.audit.record(
            outcome.reservation_id,
            staff.staff_id,
            WALK_IN_ACTION,
            None,
            ReservationStatus.PENDING,
            token=self.session.token,
        )
        await self.refresh_reservations()
        return outcome

    def _bookable_room(self, room_id: int, check_in: dt.date, check_out: dt.date) -> Room:
        room = self.store.get_room(room_id)
        if room is None:
            raise BookingError(ErrorCode.ROOM_NOT_FOUND, details={"room_id": str(room_id)})
        if room.status == RoomStatus.MAINTENANCE:
            raise BookingError(
                ErrorCode.ROOM_UNAVAILABLE,
                details={"room_number": room.room_number, "status": room.status.value},
            )
        conflicts = self.availability.conflicting_reservations(room_id, check_in, check_out)
        if conflicts:
            raise BookingError(
                ErrorCode.DATES_UNAVAILABLE,
                details={
                    "room_number": room.room_number,
                    "conflicts": ",".join(str(r.reservation_id) for r in conflicts),
                },
            )
        return room

    async def _create(
        self,
        room: Room,
        check_in: dt.date,
        check_out: dt.date,
        *,
        payment_method: PaymentMethod,
        guest_id: int | None,
        staff_id: int | None,
    ) -> BookingOutcome:
        price = self.pricing.price_for_room(room, check_in, check_out)
        token = self.session.token
        row = await self.gateway.mutate(
            self.RESERVATION_TABLE,
            MutationVerb.CREATE,
            body={
                "room_id": room.room_id,
                "staff_id": staff_id,
                "check_in": check_in.isoformat(),
                "check_out": check_out.isoformat(),
                "status": ReservationStatus.PENDING.value,
                "total_amount": float(price.total_amount),
            },
            return_row=True,
            single=True,
            token=token,
        )
        reservation_id = WireRecord(row).get("reservation_id") if isinstance(row, dict) else None
        if reservation_id is None:
            raise GatewayError(f"Reservation insert for room {room.room_number} returned no id")
        reservation_id = int(reservation_id)

        if guest_id is not None:
            await self.gateway.mutate(
                self.LINK_TABLE,
                MutationVerb.CREATE,
                body={
                    "reservation_id": reservation_id,
                    "guest_id": guest_id,
                    "guest_type": GuestType.PRIMARY.value,
                },
                token=token,
            )

        outcome = BookingOutcome(
            reservation_id=reservation_id,
            total_amount=price.total_amount,
            nights=price.nights,
            guest_id=guest_id,
        )

        try:
            await self.gateway.mutate(
                self.PAYMENT_TABLE,
                MutationVerb.CREATE,
                body={
                    "reservation_id": reservation_id,
                    "amount": float(price.total_amount),
                    "method": payment_method.value,
                    "status": PaymentStatus.PENDING.value,
                },
                token=token,
            )
        except GatewayError as e:
            outcome.payment_recorded = False
            outcome.warnings.append(
                f"Reservation created, but the payment record could not be saved: {e.friendly_message}"
            )

        log_reservation_operation(
            logger,
            "create",
            reservation_id=reservation_id,
            room_id=room.room_id,
            staff_id=staff_id,
            status=ReservationStatus.PENDING.value,
            result="success" if outcome.payment_recorded else "partial",
            nights=price.nights,
            total_amount=str(price.total_amount),
        )
        return outcome

    # Transitions

    async def update_status(
        self,
        reservation_id: int,
        status: ReservationStatus,
    ) -> Reservation:
        """Move a reservation to a new status.

        Approving a booking whose check-in date has arrived checks it in
        straight away. The room status follows the final status; the audit
        entry records the staff action that was taken (an approval stays
        "Approved" even when it ends in CheckedIn).

        Args:
            reservation_id: Reservation to change
            status: Requested status

        Returns:
            The reservation as now held in memory

        Raises:
            BookingError: AUTH_REQUIRED, FORBIDDEN, RESERVATION_NOT_FOUND or
                INVALID_TRANSITION, all before any change
            GatewayError: If a write fails; local state is rolled back first
        """
        staff = require_staff(self.user)
        reservation = self.get_reservation(reservation_id)
        validate_transition(reservation.status, status)
        permission = permission_for_transition(status)
        if permission is not None:
            require_permission(staff, permission)

        previous = reservation.status
        final = status
        if status == ReservationStatus.BOOKED and reservation.check_in <= self._today():
            final = ReservationStatus.CHECKED_IN

        assign_staff = final in ACTIVE_STATUSES or reservation.staff_id is None
        staff_id = staff.staff_id if assign_staff else reservation.staff_id

        body: dict[str, Any] = {"status": status.value}
        if assign_staff:
            body["staff_id"] = staff_id

        updated = await self._write_reservation(
            reservation,
            body,
            reservation.model_copy(update={"status": final, "staff_id": staff_id}),
            promote_to=final if final != status else None,
        )
        action = audit_action(previous, status)
        if action:
            await self.audit.record(
                reservation_id, staff.staff_id, action, previous, final, token=self.session.token
            )

        await self._apply_room_effect(reservation.room_id, final)

        log_reservation_operation(
            logger,
            "update_status",
            reservation_id=reservation_id,
            room_id=reservation.room_id,
            staff_id=staff.staff_id,
            status=final.value,
            result="success",
            previous_status=previous.value,
        )
        return updated

    async def _write_reservation(
        self,
        before: Reservation,
        body: dict[str, Any],
        after: Reservation,
        promote_to: ReservationStatus | None = None,
    ) -> Reservation:
        """Optimistically apply `after`, write `body`, and confirm or roll back.

        With `promote_to`, a second write moves the row on from the status in
        `body`; if only that second write fails the row rolls back to the
        intermediate status the server already holds.
        """
        reservation_id = before.reservation_id
        filters = f"reservation_id=eq.{reservation_id}"
        self.store.apply_optimistic(RESERVATION, after)

        try:
            await self.gateway.mutate(
                self.RESERVATION_TABLE,
                MutationVerb.UPDATE,
                body=body,
                filters=filters,
                token=self.session.token,
            )
        except GatewayError as e:
            self.store.rollback(RESERVATION, reservation_id)
            self._log_failure("update_status", before, e)
            raise

        if promote_to is not None:
            intermediate = before.model_copy(
                update={"status": ReservationStatus(body["status"]), "staff_id": after.staff_id}
            )
            self.store.confirm(RESERVATION, intermediate)
            self.store.apply_optimistic(RESERVATION, after)
            try:
                await self.gateway.mutate(
                    self.RESERVATION_TABLE,
                    MutationVerb.UPDATE,
                    body={"status": promote_to.value},
                    filters=filters,
                    token=self.session.token,
                )
            except GatewayError as e:
                self.store.rollback(RESERVATION, reservation_id)
                self._log_failure("auto_check_in", before, e)
                raise

        self.store.confirm(RESERVATION, after)
        return self.store.get_reservation(reservation_id) or after

    async def _apply_room_effect(self, room_id: int, status: ReservationStatus) -> None:
        effect = room_effect(status)
        room = self.store.get_room(room_id)
        if effect is None or room is None:
            return
        await self._write_room(room, effect)

    async def _write_room(self, room: Room, status: RoomStatus) -> Room:
        after = room.model_copy(update={"status": status})
        self.store.apply_optimistic(ROOM, after)
        try:
            await self.gateway.mutate(
                self.ROOM_TABLE,
                MutationVerb.UPDATE,
                body={"status": status.value},
                filters=f"room_id=eq.{room.room_id}",
                token=self.session.token,
            )
        except GatewayError as e:
            self.store.rollback(ROOM, room.room_id)
            logger.error(
                f"Room {room.room_number} status write failed: {e.message}",
                extra={"room_id": room.room_id},
            )
            raise
        self.store.confirm(ROOM, after)
        return self.store.get_room(room.room_id) or after

    def _log_failure(self, operation: str, reservation: Reservation, error: GatewayError) -> None:
        log_reservation_operation(
            logger,
            operation,
            reservation_id=reservation.reservation_id,
            room_id=reservation.room_id,
            result="error",
            error=error.message,
        )

    async def update_room_status(self, room_id: int, status: RoomStatus) -> Room:
        """Manual room status override.

        Raises:
            BookingError: AUTH_REQUIRED, FORBIDDEN, ROOM_NOT_FOUND, or
                ROOM_STATUS_CONFLICT when a reservation covering today makes
                the new status wrong
            GatewayError: If the write fails; local state is rolled back first
        """
        require_permission(self.user, Permission.ROOM_STATUS_WRITE)
        room = self.get_room(room_id)

        today = self._today()
        covering = [
            r
            for r in self.store.reservations
            if r.room_id == room_id and r.check_in <= today < r.check_out
        ]
        if status == RoomStatus.AVAILABLE:
            blocking = [r for r in covering if r.status in ACTIVE_STATUSES]
        elif status == RoomStatus.MAINTENANCE:
            blocking = [r for r in covering if r.status == ReservationStatus.CHECKED_IN]
        else:
            blocking = []
        if blocking:
            raise BookingError(
                ErrorCode.ROOM_STATUS_CONFLICT,
                details={
                    "room_number": room.room_number,
                    "reservation_id": str(blocking[0].reservation_id),
                    "reservation_status": blocking[0].status.value,
                },
            )

        return await self._write_room(room, status)

    # Auto-checkout

    async def run_checkout_sweep(self) -> SweepReport:
        """Check out every Booked/CheckedIn stay whose check-out day has come.

        Each reservation is handled independently; one failure does not
        stop the rest. Running it again finds nothing left to do.
        """
        async with self._sweep_lock:
            today = self._today()
            report = SweepReport(run_date=today)
            due = [
                r
                for r in self.store.reservations
                if r.status in ACTIVE_STATUSES and r.check_out <= today
            ]
            actor = self.user.staff_id if self.user and self.user.is_staff else None

            for reservation in due:
                try:
                    await self._expire(reservation, actor)
                except GatewayError:
                    report.failed.append(reservation.reservation_id)
                else:
                    report.checked_out.append(reservation.reservation_id)

            if due:
                logger.info(
                    f"Auto-checkout sweep for {today}: {len(report.checked_out)} checked out, "
                    f"{len(report.failed)} failed",
                    extra={"checked_out": report.checked_out, "failed": report.failed},
                )
            return report

    async def _expire(self, reservation: Reservation, actor: int | None) -> None:
        # Forced expiry: Booked stays go straight to CheckedOut
        previous = reservation.status
        final = ReservationStatus.CHECKED_OUT
        await self._write_reservation(
            reservation,
            {"status": final.value},
            reservation.model_copy(update={"status": final}),
        )
        await self.audit.record(
            reservation.reservation_id,
            actor,
            audit_action(previous, final) or "Checked Out",
            previous,
            final,
            token=self.session.token,
        )
        await self._apply_room_effect(reservation.room_id, final)
        log_reservation_operation(
            logger,
            "auto_checkout",
            reservation_id=reservation.reservation_id,
            room_id=reservation.room_id,
            status=final.value,
            result="success",
        )

    def start_sweeper(self) -> None:
        """Run the sweep now and then every sweep interval, in the background."""
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.ensure_future(self._sweep_loop())

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def _sweep_loop(self) -> None:
        while True:
            try:
                await self.run_checkout_sweep()
            except Exception as e:
                logger.exception(f"Auto-checkout sweep crashed: {e}")
            await asyncio.sleep(self._sweep_interval)

    # Queries

    def get_reservation(self, reservation_id: int) -> Reservation:
        reservation = self.store.get_reservation(reservation_id)
        if reservation is None:
            raise BookingError(
                ErrorCode.RESERVATION_NOT_FOUND,
                details={"reservation_id": str(reservation_id)},
            )
        return reservation

    def get_room(self, room_id: int) -> Room:
        room = self.store.get_room(room_id)
        if room is None:
            raise BookingError(ErrorCode.ROOM_NOT_FOUND, details={"room_id": str(room_id)})
        return room

    def reservations_for_guest(self, guest_id: int) -> list[Reservation]:
        """A guest's bookings, newest check-in first."""
        owned = [
            r for r in self.store.reservations if any(g.guest_id == guest_id for g in r.guests)
        ]
        return _newest_first(owned)

    def search_reservations(self, term: str = "", tab: str = "all") -> list[Reservation]:
        """Search by room number or guest name within a tab.

        Args:
            term: Case-insensitive fragment of the room number or a guest's name
            tab: "all", "pending" or "active" (Booked and CheckedIn)

        Returns:
            Matching reservations, newest check-in first
        """
        needle = term.strip().lower()
        matches = []
        for r in self.store.reservations:
            if tab == "pending" and r.status != ReservationStatus.PENDING:
                continue
            if tab == "active" and r.status not in ACTIVE_STATUSES:
                continue
            if needle and not _matches(r, needle, self.store.get_room(r.room_id)):
                continue
            matches.append(r)
        return _newest_first(matches)

    def filter_rooms(
        self,
        status: RoomStatus | None = None,
        type_name: str | None = None,
    ) -> list[Room]:
        rooms = sorted(self.store.rooms, key=lambda r: r.room_id)
        if status is not None:
            rooms = [r for r in rooms if r.status == status]
        if type_name:
            rooms = [
                r for r in rooms if r.room_type and r.room_type.type_name.lower() == type_name.lower()
            ]
        return rooms


def _newest_first(reservations: Iterable[Reservation]) -> list[Reservation]:
    return sorted(reservations, key=lambda r: (r.check_in, r.reservation_id), reverse=True)


def _matches(reservation: Reservation, needle: str, room: Room | None) -> bool:
    room = room or reservation.room
    if room is not None and needle in room.room_number.lower():
        return True
    return any(
        link.guest is not None and needle in link.guest.full_name.lower()
        for link in reservation.guests
    )
