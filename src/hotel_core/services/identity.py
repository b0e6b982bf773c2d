"""Authentication: sign-in, sign-up and the signed-in user projection.

The identity provider issues bearer tokens; who the user *is* (guest or
staff, and which row) is always read back from the guest and staff tables
by the session email.

Two kinds of SessionContext exist. Each API caller gets its own, resolved
from the bearer token it presents (AuthService.authenticate). The
process-wide background session, which the initial load, the
auto-checkout sweeper and realtime subscriptions run under, is written
only by AuthService and only ever holds a staff identity.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Protocol
from urllib.parse import quote

from supabase import AsyncClient, AuthError, acreate_client

from hotel_core.config import Settings
from hotel_core.models import (
    AuthenticatedUser,
    AuthSession,
    BookingError,
    ErrorCode,
    GatewayError,
    Guest,
    GuestCreate,
    GuestProfile,
    GuestUpdate,
    StaffProfile,
    UserType,
)
from hotel_core.utils.logging import get_logger
from hotel_core.utils.validation import validate_password

from .gateway import DataGateway, MutationVerb, SessionContext
from .guests import GuestService
from .mapper import guest_from_wire, staff_from_wire

logger = get_logger(__name__)

AuthListener = Callable[[AuthenticatedUser | None], Awaitable[None]]
AuthEventCallback = Callable[[str, AuthSession | None], None]


class IdentityProvider(Protocol):
    """Password-based identity provider."""

    async def sign_in(self, email: str, password: str) -> AuthSession: ...

    async def sign_up(self, email: str, password: str) -> AuthSession | None: ...

    async def sign_out(self) -> None: ...

    async def get_user(self, access_token: str) -> AuthSession | None: ...

    def on_auth_state_change(self, callback: AuthEventCallback) -> Callable[[], None]: ...


def _to_auth_session(session: Any) -> AuthSession | None:
    if session is None or not getattr(session, "access_token", None):
        return None
    user = getattr(session, "user", None)
    return AuthSession(
        access_token=session.access_token,
        email=getattr(user, "email", None),
        user_id=str(user.id) if user is not None and getattr(user, "id", None) else None,
    )


class SupabaseIdentityProvider:
    """IdentityProvider backed by the supabase async auth client."""

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    @classmethod
    async def create(cls, settings: Settings) -> "SupabaseIdentityProvider":
        client = await acreate_client(settings.supabase_url, settings.supabase_anon_key)
        return cls(client)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            response = await self._client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as e:
            raise BookingError(ErrorCode.INVALID_CREDENTIALS, details={"reason": e.message}) from e

        session = _to_auth_session(response.session)
        if session is None:
            raise BookingError(ErrorCode.INVALID_CREDENTIALS, details={"reason": "no session issued"})
        return session

    async def sign_up(self, email: str, password: str) -> AuthSession | None:
        try:
            response = await self._client.auth.sign_up({"email": email, "password": password})
        except AuthError as e:
            raise BookingError(ErrorCode.SIGNUP_FAILED, details={"reason": e.message}) from e
        # No session until the email is confirmed, depending on project settings
        return _to_auth_session(response.session)

    async def sign_out(self) -> None:
        await self._client.auth.sign_out()

    async def get_user(self, access_token: str) -> AuthSession | None:
        """Verify a bearer token with the provider.

        Returns:
            The token's owner, or None if the token is invalid or expired
        """
        try:
            response = await self._client.auth.get_user(access_token)
        except AuthError as e:
            logger.info(f"Bearer token rejected by identity provider: {e.message}")
            return None
        user = getattr(response, "user", None) if response is not None else None
        if user is None:
            return None
        return AuthSession(
            access_token=access_token,
            email=getattr(user, "email", None),
            user_id=str(user.id) if getattr(user, "id", None) else None,
        )

    def on_auth_state_change(self, callback: AuthEventCallback) -> Callable[[], None]:
        subscription = self._client.auth.on_auth_state_change(
            lambda event, session: callback(str(event), _to_auth_session(session))
        )
        return subscription.unsubscribe


class AuthService:
    """Service for sign-in, sign-up and session state.

    Listeners registered with add_listener are awaited, in order, after
    every change of the background identity.
    """

    STAFF_TABLE = "staff"
    ACCOUNT_TABLE = "useraccount"

    # Resolved bearer tokens are re-verified with the provider after this long
    TOKEN_CACHE_TTL_SECONDS = 300.0
    TOKEN_CACHE_SIZE = 1024

    def __init__(
        self,
        provider: IdentityProvider,
        gateway: DataGateway,
        session: SessionContext,
        guests: GuestService | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize auth service.

        Args:
            provider: Identity provider
            gateway: Data gateway for profile lookups
            session: Background session context this service owns
            guests: Guest service (built on the gateway if omitted)
            clock: Monotonic clock for the token cache
        """
        self.provider = provider
        self.gateway = gateway
        self.session = session
        self.guests = guests or GuestService(gateway)
        self._clock = clock
        self._listeners: list[AuthListener] = []
        self._unsubscribe: Callable[[], None] | None = None
        self._pending_events: set[asyncio.Task] = set()
        self._sessions: dict[str, tuple[float, SessionContext]] = {}
        # Token of the session the provider client itself currently holds
        self._provider_token: str | None = None

    @property
    def user(self) -> AuthenticatedUser | None:
        """The background identity."""
        return self.session.user

    def add_listener(self, listener: AuthListener) -> Callable[[], None]:
        """Register an identity-change listener.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def bind_provider_events(self) -> None:
        """Follow auth state changes reported by the provider."""
        if self._unsubscribe is not None:
            return

        def on_event(event: str, auth: AuthSession | None) -> None:
            task = asyncio.ensure_future(self.handle_auth_event(event, auth))
            self._pending_events.add(task)
            task.add_done_callback(self._pending_events.discard)

        self._unsubscribe = self.provider.on_auth_state_change(on_event)

    def unbind_provider_events(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def login(
        self,
        email: str,
        password: str,
        user_type: UserType = UserType.GUEST,
    ) -> SessionContext:
        """Sign in and resolve the user's guest or staff profile.

        A staff login for an email with no staff row is signed straight back
        out. A staff login also becomes the background identity; guest
        logins never touch it.

        Args:
            email: Account email
            password: Account password
            user_type: Which login the user chose

        Returns:
            The caller's session: its bearer token and user

        Raises:
            BookingError: INVALID_CREDENTIALS, UNAUTHORIZED (staff login
                without a staff row) or PROFILE_NOT_FOUND
        """
        email = email.strip()
        auth = await self.provider.sign_in(email, password)
        self._provider_token = auth.access_token

        if user_type == UserType.STAFF:
            staff_rows = await self.gateway.query(
                self.STAFF_TABLE,
                filters=self._email_filter(email),
                token=auth.access_token,
            )
            if not staff_rows:
                self._provider_token = None
                await self.provider.sign_out()
                logger.warning(f"Staff login refused for {email}: no staff account")
                raise BookingError(ErrorCode.UNAUTHORIZED, details={"email": email})

        user = await self.resolve_user(email, auth.access_token)
        if user is None:
            raise BookingError(ErrorCode.PROFILE_NOT_FOUND, details={"email": email})

        context = self._remember(auth.access_token, user)
        if user.is_staff:
            await self._set_background(auth.access_token, user)

        logger.info(
            f"Signed in {user.user_type.value.lower()} {email}",
            extra={"user_type": user.user_type.value},
        )
        return context

    async def authenticate(self, token: str) -> SessionContext:
        """Resolve a bearer token to its caller's session.

        Resolutions are cached per token for TOKEN_CACHE_TTL_SECONDS.

        Raises:
            BookingError: AUTH_REQUIRED for an invalid or expired token,
                PROFILE_NOT_FOUND when the account has no guest or staff row
        """
        cached = self._sessions.get(token)
        if cached is not None:
            resolved_at, context = cached
            if self._clock() - resolved_at < self.TOKEN_CACHE_TTL_SECONDS:
                return context
            del self._sessions[token]

        identity = await self.provider.get_user(token)
        if identity is None or not identity.email:
            raise BookingError(ErrorCode.AUTH_REQUIRED, details={"reason": "invalid or expired token"})

        user = await self.resolve_user(identity.email, token)
        if user is None:
            raise BookingError(ErrorCode.PROFILE_NOT_FOUND, details={"email": identity.email})
        return self._remember(token, user)

    async def signup(
        self,
        email: str,
        password: str,
        profile: GuestCreate,
        confirm_password: str | None = None,
    ) -> Guest:
        """Create an account and its guest profile.

        The user account link row is auxiliary; a failure to write it is
        logged and does not fail the sign-up.

        Raises:
            BookingError: VALIDATION_FAILED before any call, SIGNUP_FAILED if
                the provider refuses the account
            GatewayError: If the guest row cannot be written
        """
        email = email.strip()
        validate_password(password, confirm_password)
        data = profile.model_copy(update={"email": email})
        self.guests.validated_body(data)

        auth = await self.provider.sign_up(email, password)
        token = auth.access_token if auth else None

        guest = await self.guests.create(data, token=token)

        try:
            await self.gateway.mutate(
                self.ACCOUNT_TABLE,
                MutationVerb.CREATE,
                body={
                    "email": email,
                    "password_hash": "provider-managed",
                    "user_type": UserType.GUEST.value,
                    "guest_id": guest.guest_id,
                },
                token=token,
            )
        except GatewayError as e:
            logger.error(f"Could not link user account for guest {guest.guest_id}: {e.message}")

        logger.info(f"Created guest account {guest.guest_id}", extra={"guest_id": guest.guest_id})
        return guest

    async def logout(self, session: SessionContext | None = None) -> None:
        """Sign a caller out (the background session when none is given).

        The token is forgotten straight away. The provider is only asked to
        sign out when it holds this very token, and the background session
        is cleared only when it belongs to this token.
        """
        context = session or self.session
        token = context.token
        if token is None:
            return

        background = token == self.session.token
        self._sessions.pop(token, None)
        try:
            if token == self._provider_token:
                self._provider_token = None
                await self.provider.sign_out()
        finally:
            context.clear()
            if background:
                await self._set_background(None, None)

    async def resolve_user(self, email: str, token: str | None = None) -> AuthenticatedUser | None:
        """Build the user projection, checking staff before guests.

        Returns:
            The user, or None when neither table has a row for the email
        """
        staff_rows = await self._lookup(self.STAFF_TABLE, email, token)
        staff = staff_from_wire(staff_rows[0]) if staff_rows else None
        if staff is not None:
            return AuthenticatedUser(
                email=email,
                user_type=UserType.STAFF,
                staff_id=staff.staff_id,
                staff_data=StaffProfile(
                    first_name=staff.first_name,
                    last_name=staff.last_name,
                    role=staff.role,
                ),
            )

        guest_rows = await self._lookup(GuestService.TABLE, email, token)
        guest = guest_from_wire(guest_rows[0]) if guest_rows else None
        if guest is not None:
            return AuthenticatedUser(
                email=email,
                user_type=UserType.GUEST,
                guest_id=guest.guest_id,
                guest_data=_guest_profile(guest),
            )

        logger.warning(f"Authenticated {email} has no guest or staff record")
        return None

    async def handle_auth_event(
        self,
        event: str,
        auth: AuthSession | None,
    ) -> AuthenticatedUser | None:
        """Follow the provider client's own session.

        A refreshed or new staff session becomes the background identity. A
        sign-out clears the background identity only if it was the session
        the provider held.
        """
        if auth is None or not auth.email:
            signed_out, self._provider_token = self._provider_token, None
            if signed_out is not None and signed_out == self.session.token:
                await self._set_background(None, None)
            return None

        self._provider_token = auth.access_token
        try:
            user = await self.resolve_user(auth.email, auth.access_token)
        except GatewayError as e:
            logger.error(f"Profile lookup failed on {event}: {e.message}")
            return None

        if user is None:
            return None
        self._remember(auth.access_token, user)
        if user.is_staff:
            await self._set_background(auth.access_token, user)
        return user

    async def update_guest_profile(
        self,
        update: GuestUpdate,
        session: SessionContext | None = None,
    ) -> Guest:
        """Update the signed-in guest's own profile.

        Raises:
            BookingError: AUTH_REQUIRED unless a guest is signed in, or
                VALIDATION_FAILED
        """
        context = session or self.session
        user = context.user
        if user is None or not user.is_guest or user.guest_id is None:
            raise BookingError(ErrorCode.AUTH_REQUIRED, details={"required": "guest"})

        guest = await self.guests.update_profile(user.guest_id, update, token=context.token)
        context.set_user(user.model_copy(update={"guest_data": _guest_profile(guest)}))
        return guest

    def _remember(self, token: str, user: AuthenticatedUser) -> SessionContext:
        cached = self._sessions.get(token)
        context = cached[1] if cached else SessionContext(token, user)
        context.set_session(token, user)
        self._sessions.pop(token, None)
        if len(self._sessions) >= self.TOKEN_CACHE_SIZE:
            del self._sessions[next(iter(self._sessions))]
        self._sessions[token] = (self._clock(), context)
        return context

    async def _set_background(self, token: str | None, user: AuthenticatedUser | None) -> None:
        self.session.set_session(token, user)
        await self._notify(user)

    async def _lookup(self, table: str, email: str, token: str | None) -> list[dict[str, Any]]:
        return await self.gateway.query(table, filters=self._email_filter(email), token=token)

    @staticmethod
    def _email_filter(email: str) -> str:
        return f"email=eq.{quote(email, safe='@')}"

    async def _notify(self, user: AuthenticatedUser | None) -> None:
        for listener in list(self._listeners):
            try:
                await listener(user)
            except Exception as e:
                logger.error(f"Auth listener failed: {e}")


def _guest_profile(guest: Guest) -> GuestProfile:
    return GuestProfile(
        first_name=guest.first_name,
        last_name=guest.last_name,
        email=guest.email,
        phone=guest.phone,
        address=guest.address,
        city=guest.city,
        postal_code=guest.postal_code,
    )
