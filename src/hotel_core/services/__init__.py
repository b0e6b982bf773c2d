"""Services for the hotel reservation engine."""

from .audit import AuditLogService
from .availability import AvailabilityService, has_conflict
from .gateway import DataGateway, MutationVerb, SessionContext
from .guests import GuestService
from .identity import AuthService, IdentityProvider, SupabaseIdentityProvider
from .lifecycle import ReservationLifecycleManager, ReservationStore, RowVersion
from .metrics import compute_metrics, payment_totals, staff_workload
from .permissions import Permission, require_permission
from .pricing import PricingService, count_nights
from .realtime import (
    ChangeFeed,
    ChangeNotification,
    RealtimeReconciler,
    SupabaseChangeFeed,
)

__all__ = [
    "AuditLogService",
    "AvailabilityService",
    "has_conflict",
    "DataGateway",
    "MutationVerb",
    "SessionContext",
    "GuestService",
    "AuthService",
    "IdentityProvider",
    "SupabaseIdentityProvider",
    "ReservationLifecycleManager",
    "ReservationStore",
    "RowVersion",
    "compute_metrics",
    "payment_totals",
    "staff_workload",
    "Permission",
    "require_permission",
    "PricingService",
    "count_nights",
    "ChangeFeed",
    "ChangeNotification",
    "RealtimeReconciler",
    "SupabaseChangeFeed",
]
