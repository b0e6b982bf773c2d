"""FastAPI dependency providers for the hotel session.

One HotelSession per process holds the wiring of the core services. It
is built in the application lifespan and stored on app.state; routes
reach it through the providers below. Each request acts as the caller
named by its bearer token; the process-wide session only drives the
shared store, the sweeper and realtime.

Usage in routes:
    from hotel_api.dependencies import get_lifecycle_manager

    @router.get("/rooms")
    async def list_rooms(
        manager: ReservationLifecycleManager = Depends(get_lifecycle_manager),
    ):
        ...

Testing:
    Override get_hotel_session with app.dependency_overrides.
"""

from functools import lru_cache

from fastapi import Depends, Request

from hotel_core.config import Settings
from hotel_core.models import AuthenticatedUser
from hotel_core.services.gateway import DataGateway, SessionContext
from hotel_core.services.guests import GuestService
from hotel_core.services.identity import (
    AuthService,
    IdentityProvider,
    SupabaseIdentityProvider,
)
from hotel_core.services.lifecycle import ReservationLifecycleManager, ReservationStore
from hotel_core.services.pricing import PricingService
from hotel_core.services.realtime import ChangeFeed, RealtimeReconciler, SupabaseChangeFeed
from hotel_core.utils.logging import get_logger

logger = get_logger(__name__)


class HotelSession:
    """Core services wired together for one client session.

    Service graph:
        SessionContext (owned by AuthService)
        DataGateway
            ├── GuestService
            ├── AuthService
            └── ReservationLifecycleManager (ReservationStore)
                    └── RealtimeReconciler (ChangeFeed)
    """

    def __init__(
        self,
        settings: Settings,
        provider: IdentityProvider,
        feed: ChangeFeed,
        gateway: DataGateway | None = None,
    ) -> None:
        self.settings = settings
        self.session = gateway.session if gateway else SessionContext()
        self.gateway = gateway or DataGateway.from_settings(settings, self.session)
        self.guests = GuestService(self.gateway)
        self.pricing = PricingService()
        self.store = ReservationStore()
        self.manager = ReservationLifecycleManager(
            self.gateway,
            self.session,
            self.store,
            pricing=self.pricing,
            guests=self.guests,
            sweep_interval=settings.sweep_interval_seconds,
            init_timeout=settings.init_timeout_seconds,
        )
        self.auth = AuthService(provider, self.gateway, self.session, guests=self.guests)
        self.reconciler = RealtimeReconciler(self.manager, feed)

    @classmethod
    async def create(cls, settings: Settings) -> "HotelSession":
        """Build a session backed by supabase identity and realtime."""
        provider = await SupabaseIdentityProvider.create(settings)
        feed = await SupabaseChangeFeed.create(settings)
        return cls(settings, provider, feed)

    async def start(self) -> None:
        """Load data, start the sweep and subscribe to changes."""
        self.auth.add_listener(self._reload_for_identity)
        self.auth.add_listener(self.reconciler.on_identity_changed)
        self.auth.bind_provider_events()

        await self.manager.load()
        self.manager.start_sweeper()
        await self.reconciler.start()
        logger.info("Hotel session started")

    async def close(self) -> None:
        self.auth.unbind_provider_events()
        await self.manager.stop_sweeper()
        await self.reconciler.stop()
        await self.gateway.aclose()
        logger.info("Hotel session closed")

    async def _reload_for_identity(self, user: AuthenticatedUser | None) -> None:
        # What a session may read depends on who is signed in
        await self.manager.refresh()


def get_hotel_session(request: Request) -> HotelSession:
    """Get the HotelSession created by the application lifespan."""
    return request.app.state.hotel


def bearer_token(request: Request) -> str | None:
    """Bearer token from the Authorization header, if one was sent."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_request_session(
    request: Request,
    hotel: HotelSession = Depends(get_hotel_session),
) -> SessionContext:
    """The calling user's session, resolved from their bearer token.

    Requests without a token are anonymous; the background session is
    never lent to them.

    Raises:
        BookingError: AUTH_REQUIRED for an invalid or expired token
    """
    token = bearer_token(request)
    if token is None:
        return SessionContext()
    return await hotel.auth.authenticate(token)


def get_lifecycle_manager(
    hotel: HotelSession = Depends(get_hotel_session),
    session: SessionContext = Depends(get_request_session),
) -> ReservationLifecycleManager:
    return hotel.manager.bind(session)


def get_auth_service(hotel: HotelSession = Depends(get_hotel_session)) -> AuthService:
    return hotel.auth


@lru_cache
def get_pricing_service() -> PricingService:
    """Get cached PricingService instance (stateless)."""
    return PricingService()


def get_current_user(
    session: SessionContext = Depends(get_request_session),
) -> AuthenticatedUser | None:
    return session.user
