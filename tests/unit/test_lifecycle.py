"""Unit tests for ReservationLifecycleManager.

The gateway is mocked; every write the manager performs is inspected via
gateway.mutate's await history.
"""

import asyncio
from datetime import date, timedelta
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock

import pytest

from hotel_core.models import (
    BookingError,
    ErrorCode,
    GatewayError,
    PaymentMethod,
    ReservationRequest,
    ReservationStatus,
    RoomStatus,
    WalkInRequest,
)
from hotel_core.services.gateway import MutationVerb, SessionContext
from hotel_core.services.lifecycle import RESERVATION, ROOM, ReservationLifecycleManager

TODAY = date(2025, 3, 10)

S = ReservationStatus


def writes(gateway, table: str) -> list[Any]:
    """Awaited mutate calls against one table, in order."""
    return [c for c in gateway.mutate.await_args_list if c.args[0] == table]


def written_tables(gateway) -> list[str]:
    return [c.args[0] for c in gateway.mutate.await_args_list]


def fail_on(gateway, table: str, filters: str | None = None, after: int = 0) -> None:
    """Make writes to `table` fail once `after` of them have succeeded."""
    seen = {"count": 0}

    async def mutate(collection: str, verb: MutationVerb, **kwargs: Any) -> None:
        if collection == table and (filters is None or kwargs.get("filters") == filters):
            seen["count"] += 1
            if seen["count"] > after:
                raise GatewayError("HTTP 500: backend unavailable", 500)
        return None

    gateway.mutate.side_effect = mutate


class TestUpdateStatus:
    """Tests for status transitions."""

    def test_approve_future_booking(self, manager, gateway, session, seed, make_reservation, front_desk_user) -> None:
        seed(make_reservation(1, check_in=TODAY + timedelta(days=5)))
        session.set_session("tok", front_desk_user)

        result = asyncio.run(manager.update_status(1, S.BOOKED))

        assert result.status == S.BOOKED
        assert result.staff_id == 5
        [res_write] = writes(gateway, "reservation")
        assert res_write.kwargs["body"] == {"status": "Booked", "staff_id": 5}
        assert res_write.kwargs["filters"] == "reservation_id=eq.1"
        [audit] = writes(gateway, "reservationlog")
        assert audit.kwargs["body"] == {
            "reservation_id": 1,
            "staff_id": 5,
            "action": "Approved",
            "previous_status": "Pending",
            "new_status": "Booked",
        }
        assert writes(gateway, "room") == []
        assert manager.store.version(RESERVATION, 1).pending is False

    @pytest.mark.parametrize("offset", [0, -1])
    def test_approve_on_or_after_check_in_day_checks_in(
        self, manager, gateway, session, seed, make_reservation, front_desk_user, offset
    ) -> None:
        seed(make_reservation(1, check_in=TODAY + timedelta(days=offset)))
        session.set_session("tok", front_desk_user)

        result = asyncio.run(manager.update_status(1, S.BOOKED))

        assert result.status == S.CHECKED_IN
        bodies = [c.kwargs["body"] for c in writes(gateway, "reservation")]
        assert bodies == [{"status": "Booked", "staff_id": 5}, {"status": "CheckedIn"}]
        [audit] = writes(gateway, "reservationlog")
        assert audit.kwargs["body"]["action"] == "Approved"
        assert audit.kwargs["body"]["previous_status"] == "Pending"
        assert audit.kwargs["body"]["new_status"] == "CheckedIn"
        [room_write] = writes(gateway, "room")
        assert room_write.kwargs["body"] == {"status": "Occupied"}
        assert room_write.kwargs["filters"] == "room_id=eq.1"
        assert manager.store.get_room(1).status == RoomStatus.OCCUPIED
        assert manager.store.get_reservation(1).status == S.CHECKED_IN

    def test_check_out_frees_room_after_audit(
        self, manager, gateway, session, seed, make_reservation, front_desk_user, rooms
    ) -> None:
        seed(make_reservation(1, status=S.CHECKED_IN, staff_id=5))
        manager.store.confirm(ROOM, rooms[0].model_copy(update={"status": RoomStatus.OCCUPIED}))
        session.set_session("tok", front_desk_user)

        result = asyncio.run(manager.update_status(1, S.CHECKED_OUT))

        assert result.status == S.CHECKED_OUT
        assert manager.store.get_room(1).status == RoomStatus.AVAILABLE
        assert written_tables(gateway) == ["reservation", "reservationlog", "room"]

    def test_cancel_pending_is_logged_as_rejection(
        self, manager, gateway, session, seed, make_reservation, front_desk_user
    ) -> None:
        seed(make_reservation(1))
        session.set_session("tok", front_desk_user)

        asyncio.run(manager.update_status(1, S.CANCELLED))

        [audit] = writes(gateway, "reservationlog")
        assert audit.kwargs["body"]["action"] == "Rejected"
        [room_write] = writes(gateway, "room")
        assert room_write.kwargs["body"] == {"status": "Available"}

    def test_cancel_keeps_assigned_staff(
        self, manager, gateway, session, seed, make_reservation, manager_user
    ) -> None:
        seed(make_reservation(1, status=S.BOOKED, staff_id=9))
        session.set_session("tok", manager_user)

        result = asyncio.run(manager.update_status(1, S.CANCELLED))

        assert result.staff_id == 9
        [res_write] = writes(gateway, "reservation")
        assert res_write.kwargs["body"] == {"status": "Cancelled"}

    def test_invalid_transition_changes_nothing(
        self, manager, gateway, session, seed, make_reservation, front_desk_user
    ) -> None:
        seed(make_reservation(1, status=S.CHECKED_OUT))
        session.set_session("tok", front_desk_user)

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(manager.update_status(1, S.BOOKED))

        assert exc_info.value.code == ErrorCode.INVALID_TRANSITION
        gateway.mutate.assert_not_awaited()
        assert manager.store.get_reservation(1).status == S.CHECKED_OUT

    def test_role_without_permission_is_forbidden(
        self, manager, gateway, session, seed, make_reservation, housekeeping_user
    ) -> None:
        seed(make_reservation(1))
        session.set_session("tok", housekeeping_user)

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(manager.update_status(1, S.BOOKED))

        assert exc_info.value.code == ErrorCode.FORBIDDEN
        gateway.mutate.assert_not_awaited()

    def test_guest_cannot_change_status(
        self, manager, gateway, session, seed, make_reservation, guest_user
    ) -> None:
        seed(make_reservation(1))
        session.set_session("tok", guest_user)

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(manager.update_status(1, S.CANCELLED))

        assert exc_info.value.code == ErrorCode.AUTH_REQUIRED

    def test_unknown_reservation(self, manager, session, front_desk_user) -> None:
        session.set_session("tok", front_desk_user)

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(manager.update_status(404, S.BOOKED))

        assert exc_info.value.code == ErrorCode.RESERVATION_NOT_FOUND

    def test_failed_write_rolls_back(
        self, manager, gateway, session, seed, make_reservation, front_desk_user
    ) -> None:
        seed(make_reservation(1, check_in=TODAY + timedelta(days=5)))
        session.set_session("tok", front_desk_user)
        gateway.mutate.side_effect = GatewayError("HTTP 500: boom", 500)

        with pytest.raises(GatewayError):
            asyncio.run(manager.update_status(1, S.BOOKED))

        reservation = manager.store.get_reservation(1)
        assert reservation.status == S.PENDING
        assert reservation.staff_id is None
        assert manager.store.version(RESERVATION, 1).pending is False

    def test_failed_promotion_keeps_approval(
        self, manager, gateway, session, seed, make_reservation, front_desk_user
    ) -> None:
        seed(make_reservation(1))
        session.set_session("tok", front_desk_user)
        fail_on(gateway, "reservation", after=1)

        with pytest.raises(GatewayError):
            asyncio.run(manager.update_status(1, S.BOOKED))

        assert manager.store.get_reservation(1).status == S.BOOKED
        assert manager.store.get_room(1).status == RoomStatus.AVAILABLE

    def test_failed_room_write_rolls_back_room_only(
        self, manager, gateway, session, seed, make_reservation, front_desk_user
    ) -> None:
        seed(make_reservation(1, status=S.BOOKED))
        session.set_session("tok", front_desk_user)
        fail_on(gateway, "room")

        with pytest.raises(GatewayError):
            asyncio.run(manager.update_status(1, S.CHECKED_IN))

        assert manager.store.get_reservation(1).status == S.CHECKED_IN
        assert manager.store.get_room(1).status == RoomStatus.AVAILABLE
        assert manager.store.version(ROOM, 1).pending is False


class TestRoomStatusOverride:
    """Tests for update_room_status."""

    def test_sets_maintenance(self, manager, gateway, session, housekeeping_user) -> None:
        session.set_session("tok", housekeeping_user)

        room = asyncio.run(manager.update_room_status(1, RoomStatus.MAINTENANCE))

        assert room.status == RoomStatus.MAINTENANCE
        [room_write] = writes(gateway, "room")
        assert room_write.kwargs["body"] == {"status": "Maintenance"}

    @pytest.mark.parametrize(
        "reservation_status,room_status",
        [
            (S.CHECKED_IN, RoomStatus.AVAILABLE),
            (S.CHECKED_IN, RoomStatus.MAINTENANCE),
            (S.BOOKED, RoomStatus.AVAILABLE),
        ],
    )
    def test_conflicts_with_stay_covering_today(
        self, manager, gateway, session, seed, make_reservation, front_desk_user,
        reservation_status, room_status,
    ) -> None:
        seed(make_reservation(1, check_in=TODAY - timedelta(days=1), status=reservation_status))
        session.set_session("tok", front_desk_user)

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(manager.update_room_status(1, room_status))

        assert exc_info.value.code == ErrorCode.ROOM_STATUS_CONFLICT
        assert exc_info.value.details["reservation_id"] == "1"
        gateway.mutate.assert_not_awaited()

    def test_booked_stay_allows_maintenance(
        self, manager, session, seed, make_reservation, front_desk_user
    ) -> None:
        seed(make_reservation(1, status=S.BOOKED))
        session.set_session("tok", front_desk_user)

        room = asyncio.run(manager.update_room_status(1, RoomStatus.MAINTENANCE))

        assert room.status == RoomStatus.MAINTENANCE

    def test_stay_ending_today_does_not_block(
        self, manager, session, seed, make_reservation, front_desk_user
    ) -> None:
        seed(
            make_reservation(
                1, check_in=TODAY - timedelta(days=2), check_out=TODAY, status=S.CHECKED_IN
            )
        )
        session.set_session("tok", front_desk_user)

        room = asyncio.run(manager.update_room_status(1, RoomStatus.AVAILABLE))

        assert room.status == RoomStatus.AVAILABLE

    def test_reservation_agent_is_read_only(self, manager, session, agent_user) -> None:
        session.set_session("tok", agent_user)

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(manager.update_room_status(1, RoomStatus.MAINTENANCE))

        assert exc_info.value.code == ErrorCode.FORBIDDEN

    def test_unknown_room(self, manager, session, manager_user) -> None:
        session.set_session("tok", manager_user)

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(manager.update_room_status(99, RoomStatus.MAINTENANCE))

        assert exc_info.value.code == ErrorCode.ROOM_NOT_FOUND


class TestCheckoutSweep:
    """Tests for the auto-checkout sweep."""

    @pytest.fixture
    def due(self, seed, make_reservation):
        seed(
            make_reservation(1, check_in=TODAY - timedelta(days=2), check_out=TODAY, status=S.BOOKED),
            make_reservation(
                2, room_id=2, check_in=TODAY - timedelta(days=3),
                check_out=TODAY - timedelta(days=1), status=S.CHECKED_IN,
            ),
            make_reservation(3, room_id=1, check_in=TODAY, status=S.CHECKED_IN),
            make_reservation(
                4, room_id=2, check_in=TODAY - timedelta(days=3),
                check_out=TODAY - timedelta(days=1), status=S.PENDING,
            ),
        )

    def test_checks_out_due_stays(self, manager, gateway, due) -> None:
        report = asyncio.run(manager.run_checkout_sweep())

        assert report.run_date == TODAY
        assert sorted(report.checked_out) == [1, 2]
        assert report.failed == []
        assert manager.store.get_reservation(1).status == S.CHECKED_OUT
        assert manager.store.get_reservation(2).status == S.CHECKED_OUT
        assert manager.store.get_reservation(3).status == S.CHECKED_IN
        assert manager.store.get_reservation(4).status == S.PENDING
        audits = [c.kwargs["body"] for c in writes(gateway, "reservationlog")]
        assert {(a["reservation_id"], a["previous_status"]) for a in audits} == {
            (1, "Booked"),
            (2, "CheckedIn"),
        }
        assert all(a["action"] == "Checked Out" and a["staff_id"] is None for a in audits)
        assert manager.store.get_room(2).status == RoomStatus.AVAILABLE

    def test_writes_audit_before_room(self, manager, gateway, seed, make_reservation) -> None:
        seed(make_reservation(1, check_in=TODAY - timedelta(days=1), check_out=TODAY, status=S.CHECKED_IN))

        asyncio.run(manager.run_checkout_sweep())

        assert written_tables(gateway) == ["reservation", "reservationlog", "room"]

    def test_second_run_does_nothing(self, manager, gateway, due) -> None:
        asyncio.run(manager.run_checkout_sweep())
        gateway.mutate.reset_mock()

        report = asyncio.run(manager.run_checkout_sweep())

        assert report.checked_out == []
        gateway.mutate.assert_not_awaited()

    def test_one_failure_does_not_stop_the_rest(self, manager, gateway, due) -> None:
        fail_on(gateway, "reservation", filters="reservation_id=eq.2")

        report = asyncio.run(manager.run_checkout_sweep())

        assert report.checked_out == [1]
        assert report.failed == [2]
        assert manager.store.get_reservation(2).status == S.CHECKED_IN

    def test_records_acting_staff(self, manager, gateway, session, due, manager_user) -> None:
        session.set_session("tok", manager_user)

        asyncio.run(manager.run_checkout_sweep())

        assert {c.kwargs["body"]["staff_id"] for c in writes(gateway, "reservationlog")} == {1}

    def test_sweeper_runs_in_background(self, manager) -> None:
        manager.run_checkout_sweep = AsyncMock(side_effect=RuntimeError("boom"))

        async def scenario() -> None:
            manager.start_sweeper()
            manager.start_sweeper()
            await asyncio.sleep(0)
            await manager.stop_sweeper()

        asyncio.run(scenario())

        manager.run_checkout_sweep.assert_awaited_once()


def creation_backend(gateway, reservation_row: Any = None, fail_payment: bool = False) -> None:
    """Reservation inserts return `reservation_row`; payment writes optionally fail."""
    row = {"reservation_id": 42} if reservation_row is None else reservation_row

    async def mutate(collection: str, verb: MutationVerb, **kwargs: Any) -> Any:
        if collection == "reservation" and verb == MutationVerb.CREATE:
            return row
        if collection == "payment" and fail_payment:
            raise GatewayError("HTTP 400: payment rejected", 400)
        return None

    gateway.mutate.side_effect = mutate


class TestAddReservation:
    """Tests for guest self-booking."""

    @pytest.fixture
    def request_body(self) -> ReservationRequest:
        return ReservationRequest(
            room_id=1,
            check_in=TODAY + timedelta(days=10),
            check_out=TODAY + timedelta(days=12),
            payment_method=PaymentMethod.GCASH,
        )

    def test_creates_pending_reservation(
        self, manager, gateway, session, guest_user, request_body
    ) -> None:
        session.set_session("tok", guest_user)
        creation_backend(gateway)

        outcome = asyncio.run(manager.add_reservation(request_body))

        assert outcome.reservation_id == 42
        assert outcome.nights == 2
        assert outcome.total_amount == Decimal("3000.00")
        assert outcome.status == S.PENDING
        assert outcome.guest_id == 10
        assert outcome.payment_recorded is True
        assert outcome.warnings == []

        [res_write] = writes(gateway, "reservation")
        assert res_write.args[1] == MutationVerb.CREATE
        assert res_write.kwargs["body"] == {
            "room_id": 1,
            "staff_id": None,
            "check_in": "2025-03-20",
            "check_out": "2025-03-22",
            "status": "Pending",
            "total_amount": 3000.0,
        }
        [link] = writes(gateway, "reservationguest")
        assert link.kwargs["body"] == {"reservation_id": 42, "guest_id": 10, "guest_type": "Primary"}
        [payment] = writes(gateway, "payment")
        assert payment.kwargs["body"]["method"] == "GCash"
        assert payment.kwargs["body"]["status"] == "Pending"
        assert any(c.args[0] == "reservation" for c in gateway.query.await_args_list)

    def test_payment_failure_becomes_warning(
        self, manager, gateway, session, guest_user, request_body
    ) -> None:
        session.set_session("tok", guest_user)
        creation_backend(gateway, fail_payment=True)

        outcome = asyncio.run(manager.add_reservation(request_body))

        assert outcome.reservation_id == 42
        assert outcome.payment_recorded is False
        assert len(outcome.warnings) == 1
        assert "payment record could not be saved" in outcome.warnings[0]

    def test_insert_without_id_fails(self, manager, gateway, session, guest_user, request_body) -> None:
        session.set_session("tok", guest_user)
        creation_backend(gateway, reservation_row={})

        with pytest.raises(GatewayError, match="returned no id"):
            asyncio.run(manager.add_reservation(request_body))

        assert writes(gateway, "payment") == []

    def test_requires_signed_in_guest(self, manager, gateway, session, front_desk_user, request_body) -> None:
        session.set_session("tok", front_desk_user)

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(manager.add_reservation(request_body))

        assert exc_info.value.code == ErrorCode.AUTH_REQUIRED
        gateway.mutate.assert_not_awaited()

    def test_requires_token(self, manager, session, guest_user, request_body) -> None:
        session.set_session(None, guest_user)

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(manager.add_reservation(request_body))

        assert exc_info.value.code == ErrorCode.AUTH_REQUIRED

    def test_maintenance_room_refused(self, manager, gateway, session, guest_user, request_body) -> None:
        session.set_session("tok", guest_user)

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(manager.add_reservation(request_body.model_copy(update={"room_id": 3})))

        assert exc_info.value.code == ErrorCode.ROOM_UNAVAILABLE
        gateway.mutate.assert_not_awaited()

    def test_overlapping_dates_refused(
        self, manager, gateway, session, seed, make_reservation, guest_user, request_body
    ) -> None:
        seed(make_reservation(7, check_in=request_body.check_in + timedelta(days=1)))
        session.set_session("tok", guest_user)

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(manager.add_reservation(request_body))

        assert exc_info.value.code == ErrorCode.DATES_UNAVAILABLE
        assert exc_info.value.details["conflicts"] == "7"
        gateway.mutate.assert_not_awaited()

    def test_unknown_room(self, manager, session, guest_user, request_body) -> None:
        session.set_session("tok", guest_user)

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(manager.add_reservation(request_body.model_copy(update={"room_id": 99})))

        assert exc_info.value.code == ErrorCode.ROOM_NOT_FOUND


class TestWalkIn:
    """Tests for staff walk-in bookings."""

    @pytest.fixture
    def walk_in(self) -> WalkInRequest:
        return WalkInRequest(
            room_id=2,
            check_in=TODAY,
            check_out=TODAY + timedelta(days=1),
            guest_first_name=" Maria ",
            guest_last_name="Santos",
            guest_email="maria@example.com",
            guest_phone="09171234567",
        )

    def test_creates_guest_booking_and_audit(
        self, manager, gateway, session, front_desk_user, walk_in
    ) -> None:
        session.set_session("tok", front_desk_user)
        creation_backend(gateway)
        gateway.upsert.return_value = {
            "guest_id": 77,
            "first_name": "Maria",
            "last_name": "Santos",
            "email": "maria@example.com",
        }

        outcome = asyncio.run(manager.add_walk_in_reservation(walk_in))

        assert outcome.guest_id == 77
        assert outcome.nights == 1
        assert outcome.total_amount == Decimal("3200.50")
        upsert = gateway.upsert.await_args
        assert upsert.args[0] == "guest"
        assert upsert.args[1]["first_name"] == "Maria"
        assert upsert.kwargs["on_conflict"] == "email"
        [res_write] = writes(gateway, "reservation")
        assert res_write.kwargs["body"]["staff_id"] == 5
        [audit] = writes(gateway, "reservationlog")
        assert audit.kwargs["body"] == {
            "reservation_id": 42,
            "staff_id": 5,
            "action": "Walk-in Created",
            "previous_status": None,
            "new_status": "Pending",
        }

    def test_role_without_walk_in_permission(
        self, manager, gateway, session, accountant_user, walk_in
    ) -> None:
        session.set_session("tok", accountant_user)

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(manager.add_walk_in_reservation(walk_in))

        assert exc_info.value.code == ErrorCode.FORBIDDEN
        gateway.upsert.assert_not_awaited()

    def test_invalid_guest_details_write_nothing(
        self, manager, gateway, session, front_desk_user, walk_in
    ) -> None:
        session.set_session("tok", front_desk_user)

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(
                manager.add_walk_in_reservation(walk_in.model_copy(update={"guest_first_name": "M"}))
            )

        assert exc_info.value.code == ErrorCode.VALIDATION_FAILED
        gateway.upsert.assert_not_awaited()
        gateway.mutate.assert_not_awaited()


class TestLoading:
    """Tests for load / refresh."""

    def test_load_builds_store_with_relations(
        self, manager, session, tables, wire_tables, front_desk_user
    ) -> None:
        tables.update(wire_tables)
        session.set_session("tok", front_desk_user)

        assert asyncio.run(manager.load()) is True

        assert manager.ready is True
        store = manager.store
        assert len(store.rooms) == 2
        assert store.get_room(2).status == RoomStatus.OCCUPIED
        assert store.get_room(2).room_type.type_name == "Deluxe"
        stay = store.get_reservation(1)
        assert stay.status == S.CHECKED_IN
        assert stay.room.room_number == "102"
        assert stay.primary_guest.phone == "09123456789"
        assert stay.payment.method == PaymentMethod.GCASH
        assert stay.staff.full_name == "Ana Reyes"
        assert store.get_reservation(2).total_amount == Decimal("2400.00")

    def test_staff_table_skipped_for_guests(self, manager, gateway, session, tables, wire_tables, guest_user) -> None:
        tables.update(wire_tables)
        session.set_session("tok", guest_user)

        asyncio.run(manager.refresh())

        assert all(c.args[0] != "staff" for c in gateway.query.await_args_list)
        assert manager.store.staff == []

    def test_staff_table_failure_is_tolerated(
        self, manager, gateway, session, tables, wire_tables, front_desk_user
    ) -> None:
        tables.update(wire_tables)
        session.set_session("tok", front_desk_user)
        serve = gateway.query.side_effect

        async def query(collection: str, **kwargs: Any) -> Any:
            if collection == "staff":
                raise GatewayError("HTTP 403: permission denied", 403)
            return await serve(collection, **kwargs)

        gateway.query.side_effect = query

        asyncio.run(manager.refresh())

        assert manager.store.staff == []
        assert len(manager.store.reservations) == 2

    def test_load_gives_up_waiting_after_timeout(self, gateway, session, store) -> None:
        async def slow_query(collection: str, **kwargs: Any) -> list:
            await asyncio.sleep(5)
            return []

        gateway.query.side_effect = slow_query
        slow = ReservationLifecycleManager(gateway, session, store, init_timeout=0.01)

        assert asyncio.run(slow.load()) is False
        assert slow.ready is True


class TestCallerBinding:
    """Tests for views bound to one caller's session."""

    def test_bound_view_writes_with_caller_token(
        self, manager, gateway, session, manager_user, guest_user
    ) -> None:
        session.set_session("staff-token", manager_user)
        creation_backend(gateway)
        caller = manager.bind(SessionContext("guest-token", guest_user))

        outcome = asyncio.run(
            caller.add_reservation(
                ReservationRequest(
                    room_id=1,
                    check_in=TODAY + timedelta(days=10),
                    check_out=TODAY + timedelta(days=12),
                    payment_method=PaymentMethod.CASH,
                )
            )
        )

        assert outcome.guest_id == 10
        assert {c.kwargs["token"] for c in gateway.mutate.await_args_list} == {"guest-token"}
        # The shared store is reloaded under the background session
        assert {c.kwargs["token"] for c in gateway.query.await_args_list} == {"staff-token"}
        assert caller.store is manager.store
        assert manager.user == manager_user

    def test_anonymous_view_ignores_background_staff(
        self, manager, gateway, session, seed, make_reservation, manager_user
    ) -> None:
        seed(make_reservation(1))
        session.set_session("staff-token", manager_user)
        anonymous = manager.bind(SessionContext())

        with pytest.raises(BookingError) as exc_info:
            asyncio.run(anonymous.update_status(1, S.BOOKED))

        assert exc_info.value.code == ErrorCode.AUTH_REQUIRED
        gateway.mutate.assert_not_awaited()

    def test_guest_view_cannot_act_as_background_staff(
        self, manager, gateway, session, seed, make_reservation, manager_user, guest_user
    ) -> None:
        seed(make_reservation(1))
        session.set_session("staff-token", manager_user)
        caller = manager.bind(SessionContext("guest-token", guest_user))

        with pytest.raises(BookingError):
            asyncio.run(caller.update_status(1, S.BOOKED))

        gateway.mutate.assert_not_awaited()
        assert manager.store.get_reservation(1).status == S.PENDING


class TestQueries:
    """Tests for search and filtering."""

    @pytest.fixture
    def seeded(self, seed, make_reservation, guest):
        seed(
            make_reservation(1, check_in=TODAY, guest=guest),
            make_reservation(2, room_id=2, check_in=TODAY + timedelta(days=3), status=S.BOOKED),
            make_reservation(3, check_in=TODAY - timedelta(days=5), status=S.CANCELLED),
        )

    def test_search_all_newest_first(self, manager, seeded) -> None:
        assert [r.reservation_id for r in manager.search_reservations()] == [2, 1, 3]

    @pytest.mark.parametrize(
        "term,tab,expected",
        [
            ("juan", "all", [1]),
            ("DELA", "all", [1]),
            ("102", "all", [2]),
            ("101", "all", [1, 3]),
            ("", "pending", [1]),
            ("", "active", [2]),
            ("101", "active", []),
        ],
    )
    def test_search_terms_and_tabs(self, manager, seeded, term, tab, expected) -> None:
        assert [r.reservation_id for r in manager.search_reservations(term, tab)] == expected

    def test_reservations_for_guest(self, manager, seeded, guest) -> None:
        assert [r.reservation_id for r in manager.reservations_for_guest(guest.guest_id)] == [1]

    def test_filter_rooms(self, manager) -> None:
        assert [r.room_number for r in manager.filter_rooms(RoomStatus.MAINTENANCE)] == ["201"]
        assert [r.room_number for r in manager.filter_rooms(type_name="single")] == ["101", "201"]
        assert len(manager.filter_rooms()) == 3

    def test_get_room_unknown(self, manager) -> None:
        with pytest.raises(BookingError) as exc_info:
            manager.get_room(99)

        assert exc_info.value.code == ErrorCode.ROOM_NOT_FOUND
