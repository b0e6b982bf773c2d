"""Pytest configuration and fixtures for the hotel reservation tests.

This module provides reusable fixtures for testing:
- Sample reference data (room types, rooms, guests, staff)
- Signed-in users for each role
- A mocked data gateway and a lifecycle manager wired to it
- Raw wire rows as the backend returns them
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from hotel_core.config import reset_settings
from hotel_core.models import (
    AuthenticatedUser,
    Guest,
    GuestProfile,
    GuestType,
    Reservation,
    ReservationGuest,
    ReservationStatus,
    Room,
    RoomStatus,
    RoomType,
    StaffProfile,
    StaffRole,
    UserType,
)
from hotel_core.services.gateway import DataGateway, SessionContext
from hotel_core.services.lifecycle import ReservationLifecycleManager, ReservationStore

# Fixed "today" for every lifecycle test
TODAY = date(2025, 3, 10)


@pytest.fixture(autouse=True)
def reset_settings_singleton() -> Any:
    """Ensure each test resolves settings from its own environment."""
    reset_settings()
    yield
    reset_settings()


# === Reference Data ===


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def room_types() -> list[RoomType]:
    return [
        RoomType(roomtype_id=1, type_name="Single", base_rate=Decimal("1500.00")),
        RoomType(roomtype_id=2, type_name="Deluxe", base_rate=Decimal("3200.50")),
    ]


@pytest.fixture
def rooms(room_types: list[RoomType]) -> list[Room]:
    """Room 101 and 102 available, 201 under maintenance."""
    single, deluxe = room_types
    return [
        Room(room_id=1, room_number="101", roomtype_id=1, room_type=single),
        Room(room_id=2, room_number="102", roomtype_id=2, room_type=deluxe),
        Room(
            room_id=3,
            room_number="201",
            roomtype_id=1,
            status=RoomStatus.MAINTENANCE,
            room_type=single,
        ),
    ]


@pytest.fixture
def guest() -> Guest:
    return Guest(
        guest_id=10,
        first_name="Juan",
        last_name="Dela Cruz",
        email="juan@example.com",
        phone="09123456789",
    )


@pytest.fixture
def make_reservation(rooms: list[Room]) -> Callable[..., Reservation]:
    """Factory for reservations in the sample rooms.

    Defaults to a Pending two-night stay in Room 101 starting today.
    """

    def _make(
        reservation_id: int,
        room_id: int = 1,
        check_in: date = TODAY,
        check_out: date | None = None,
        status: ReservationStatus = ReservationStatus.PENDING,
        staff_id: int | None = None,
        total_amount: Decimal = Decimal("3000.00"),
        guest: Guest | None = None,
    ) -> Reservation:
        links = []
        if guest is not None:
            links.append(
                ReservationGuest(
                    resguest_id=reservation_id * 100,
                    reservation_id=reservation_id,
                    guest_id=guest.guest_id,
                    guest_type=GuestType.PRIMARY,
                    guest=guest,
                )
            )
        return Reservation(
            reservation_id=reservation_id,
            room_id=room_id,
            staff_id=staff_id,
            check_in=check_in,
            check_out=check_out or check_in + timedelta(days=2),
            status=status,
            total_amount=total_amount,
            room=next((r for r in rooms if r.room_id == room_id), None),
            guests=links,
        )

    return _make


# === Users ===


def _staff_user(staff_id: int, email: str, role: StaffRole | None) -> AuthenticatedUser:
    return AuthenticatedUser(
        email=email,
        user_type=UserType.STAFF,
        staff_id=staff_id,
        staff_data=StaffProfile(first_name="Staff", last_name=str(staff_id), role=role),
    )


@pytest.fixture
def manager_user() -> AuthenticatedUser:
    return _staff_user(1, "manager@hotel.ph", StaffRole.MANAGER)


@pytest.fixture
def front_desk_user() -> AuthenticatedUser:
    return _staff_user(5, "frontdesk@hotel.ph", StaffRole.FRONT_DESK)


@pytest.fixture
def agent_user() -> AuthenticatedUser:
    return _staff_user(6, "agent@hotel.ph", StaffRole.RESERVATION_AGENT)


@pytest.fixture
def housekeeping_user() -> AuthenticatedUser:
    return _staff_user(7, "housekeeping@hotel.ph", StaffRole.HOUSEKEEPING)


@pytest.fixture
def accountant_user() -> AuthenticatedUser:
    return _staff_user(8, "accounts@hotel.ph", StaffRole.ACCOUNTANT)


@pytest.fixture
def guest_user(guest: Guest) -> AuthenticatedUser:
    return AuthenticatedUser(
        email=guest.email,
        user_type=UserType.GUEST,
        guest_id=guest.guest_id,
        guest_data=GuestProfile(
            first_name=guest.first_name,
            last_name=guest.last_name,
            email=guest.email,
        ),
    )


# === Gateway and Manager ===


@pytest.fixture
def session() -> SessionContext:
    return SessionContext()


@pytest.fixture
def tables() -> dict[str, list[dict[str, Any]]]:
    """Rows returned by the mocked gateway's query, keyed by table name."""
    return {}


@pytest.fixture
def gateway(session: SessionContext, tables: dict[str, list[dict[str, Any]]]) -> MagicMock:
    """Mocked DataGateway.

    query() serves rows from the `tables` fixture; mutate() succeeds and
    returns nothing unless a test overrides it.
    """

    async def query(collection: str, **kwargs: Any) -> list[dict[str, Any]]:
        return list(tables.get(collection, []))

    mock = MagicMock(spec=DataGateway)
    mock.session = session
    mock.query = AsyncMock(side_effect=query)
    mock.mutate = AsyncMock(return_value=None)
    mock.upsert = AsyncMock()
    mock.aclose = AsyncMock()
    return mock


@pytest.fixture
def store(room_types: list[RoomType], rooms: list[Room], guest: Guest) -> ReservationStore:
    store = ReservationStore()
    store.replace_all(
        room_types=room_types,
        rooms=rooms,
        staff=[],
        reservations=[],
        payments=[],
        guests=[guest],
        reservation_guests=[],
    )
    return store


@pytest.fixture
def manager(
    gateway: MagicMock,
    session: SessionContext,
    store: ReservationStore,
) -> ReservationLifecycleManager:
    return ReservationLifecycleManager(
        gateway,
        session,
        store,
        today=lambda: TODAY,
        init_timeout=1.0,
    )


@pytest.fixture
def seed(store: ReservationStore) -> Callable[..., None]:
    """Replace the store's reservations with the given ones."""

    def _seed(*reservations: Reservation) -> None:
        store.replace_reservations(
            reservations=list(reservations),
            payments=store.payments,
            guests=store.guests,
            reservation_guests=[link for r in reservations for link in r.guests],
        )

    return _seed


# === Wire Rows ===


@pytest.fixture
def wire_tables() -> dict[str, list[dict[str, Any]]]:
    """A consistent snapshot of every table, with mixed key casing."""
    return {
        "roomtype": [
            {"roomtype_id": 1, "type_name": "Single", "base_rate": "1200.00"},
            {"RoomType_ID": 2, "Type_Name": "Deluxe", "Base_Rate": 2500},
        ],
        "room": [
            {"room_id": 1, "room_number": "101", "roomtype_id": 1, "status": "Available"},
            {"Room_ID": 2, "Room_Number": "102", "RoomType_ID": 2, "Status": "occupied"},
        ],
        "reservation": [
            {
                "reservation_id": 1,
                "room_id": 2,
                "staff_id": 5,
                "check_in": "2025-03-09",
                "check_out": "2025-03-12",
                "status": "CheckedIn",
                "total_amount": 7500.0,
            },
            {
                "reservation_id": 2,
                "room_id": 1,
                "staff_id": None,
                "check_in": "2025-03-20T00:00:00+00:00",
                "check_out": "2025-03-22T00:00:00+00:00",
                "status": "Pending",
                "total_amount": "2400.00",
            },
        ],
        "payment": [
            {"payment_id": 1, "reservation_id": 1, "amount": 7500, "method": "GCash", "status": "Paid"},
        ],
        "guest": [
            {
                "guest_id": 10,
                "first_name": "Juan",
                "last_name": "Dela Cruz",
                "email": "juan@example.com",
                "phone": 9123456789,
            },
        ],
        "reservationguest": [
            {"resguest_id": 100, "reservation_id": 1, "guest_id": 10, "guest_type": "Primary"},
        ],
        "staff": [
            {
                "staff_id": 5,
                "first_name": "Ana",
                "last_name": "Reyes",
                "email": "frontdesk@hotel.ph",
                "role": "FrontDesk",
                "shift": "Day",
                "status": "Active",
            },
        ],
    }
