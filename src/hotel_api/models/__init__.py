"""API-specific request/response models.

Domain models (Reservation, Room, etc.) live in hotel_core.models and are
reused here where their shape fits the response.

Modules:
- auth: Login, sign-up and profile requests
- rooms: Room listing, status override and availability
- reservations: Reservation listing, status changes and reports
"""

__all__: list[str] = []
