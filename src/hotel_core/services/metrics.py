"""Dashboard and report figures.

Pure functions over the in-memory collections, recomputed on every read.
"""

from decimal import Decimal
from typing import Iterable

from hotel_core.models import (
    ACTIVE_STATUSES,
    SETTLED_STATUSES,
    DashboardMetrics,
    Payment,
    PaymentStatus,
    PaymentTotals,
    Reservation,
    Room,
    RoomStatus,
    Staff,
    StaffRole,
    StaffWorkload,
)


def compute_metrics(
    reservations: Iterable[Reservation],
    rooms: Iterable[Room],
    payments: Iterable[Payment],
) -> DashboardMetrics:
    """Compute dashboard figures.

    Revenue counts Booked, CheckedIn and CheckedOut reservations only, and
    the payment breakdown is restricted to payments of those reservations.
    Available rooms is the count of rooms whose status is Available.

    Args:
        reservations: All reservations
        rooms: All rooms
        payments: All payments

    Returns:
        DashboardMetrics
    """
    reservations = list(reservations)

    settled = [r for r in reservations if r.status in SETTLED_STATUSES]
    total_revenue = sum((r.total_amount for r in settled), Decimal("0"))
    active = sum(1 for r in reservations if r.status in ACTIVE_STATUSES)
    available = sum(1 for room in rooms if room.status == RoomStatus.AVAILABLE)

    average_stay = (
        sum(r.stay_nights for r in reservations) / len(reservations) if reservations else 0.0
    )

    settled_ids = {r.reservation_id for r in settled}
    breakdown: dict = {}
    for payment in payments:
        if payment.reservation_id not in settled_ids or payment.method is None:
            continue
        breakdown[payment.method] = breakdown.get(payment.method, Decimal("0")) + payment.amount

    return DashboardMetrics(
        total_revenue=total_revenue,
        active_reservations=active,
        available_rooms=available,
        average_stay_nights=float(average_stay),
        payment_breakdown=breakdown,
    )


def payment_totals(payments: Iterable[Payment]) -> PaymentTotals:
    """Sum of paid and of pending payments."""
    paid = Decimal("0")
    pending = Decimal("0")
    for payment in payments:
        if payment.status == PaymentStatus.PAID:
            paid += payment.amount
        elif payment.status == PaymentStatus.PENDING:
            pending += payment.amount
    return PaymentTotals(paid=paid, pending=pending)


def staff_workload(
    staff: Iterable[Staff],
    reservations: Iterable[Reservation],
) -> list[StaffWorkload]:
    """Reservations handled per staff member, busiest first; managers excluded."""
    reservations = list(reservations)
    workload = [
        StaffWorkload(
            staff_id=member.staff_id,
            name=member.full_name,
            role=member.role,
            reservations_handled=sum(1 for r in reservations if r.staff_id == member.staff_id),
        )
        for member in staff
        if member.role != StaffRole.MANAGER
    ]
    return sorted(workload, key=lambda w: w.reservations_handled, reverse=True)
