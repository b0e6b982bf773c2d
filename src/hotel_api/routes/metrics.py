"""Dashboard metrics and staff reports."""

from fastapi import APIRouter, Depends

from hotel_api.dependencies import get_lifecycle_manager
from hotel_api.models.reservations import StaffReportResponse
from hotel_core.models import DashboardMetrics
from hotel_core.services.lifecycle import ReservationLifecycleManager
from hotel_core.services.metrics import compute_metrics, payment_totals, staff_workload
from hotel_core.services.permissions import Permission, require_permission, require_staff

router = APIRouter(tags=["metrics"])


@router.get(
    "/metrics",
    summary="Dashboard figures",
    response_model=DashboardMetrics,
    responses={401: {"description": "Staff login required"}},
)
async def dashboard_metrics(
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
) -> DashboardMetrics:
    require_staff(manager.user)
    store = manager.store
    return compute_metrics(store.reservations, store.rooms, store.payments)


@router.get(
    "/reports/staff",
    summary="Staff workload and payment totals",
    response_model=StaffReportResponse,
    responses={
        401: {"description": "Staff login required"},
        403: {"description": "Role may not view reports"},
    },
)
async def staff_report(
    manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
) -> StaffReportResponse:
    require_permission(manager.user, Permission.VIEW_REPORTS)
    store = manager.store
    return StaffReportResponse(
        workload=staff_workload(store.staff, store.reservations),
        payments=payment_totals(store.payments),
    )
