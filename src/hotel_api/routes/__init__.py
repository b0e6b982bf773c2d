"""API routes package.

Routers are organized by domain:

- auth: Sign-in, sign-up and the current user
- availability: Room availability for a date range
- pricing: Stay quotes
- reservations: Booking creation, status changes and the checkout sweep
- rooms: Room listing, status overrides and calendars
- metrics: Dashboard figures and staff reports

All routers are registered in main.py with /api prefix.
"""

from hotel_api.routes.auth import router as auth_router
from hotel_api.routes.availability import router as availability_router
from hotel_api.routes.metrics import router as metrics_router
from hotel_api.routes.pricing import router as pricing_router
from hotel_api.routes.reservations import router as reservations_router
from hotel_api.routes.rooms import router as rooms_router

__all__ = [
    "auth_router",
    "availability_router",
    "metrics_router",
    "pricing_router",
    "reservations_router",
    "rooms_router",
]
