"""Remote data gateway for the hosted REST data API.

A thin request layer: filtered/ordered reads and insert/update/delete
writes against named collections. It keeps no state beyond the injected
SessionContext, performs no retries and caches no results.

Usage:
    session = SessionContext()
    gateway = DataGateway.from_settings(get_settings(), session)
    rooms = await gateway.query("room", order="room_id.asc")
    await gateway.mutate(
        "reservation",
        MutationVerb.UPDATE,
        body={"status": "Booked"},
        filters="reservation_id=eq.5",
    )
"""

from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx

from hotel_core.config import Settings
from hotel_core.models.auth import AuthenticatedUser
from hotel_core.models.errors import GatewayError
from hotel_core.utils.logging import get_logger

logger = get_logger(__name__)


class MutationVerb(str, Enum):
    """Write verbs and the HTTP methods they map to."""

    CREATE = "POST"
    UPDATE = "PATCH"
    DELETE = "DELETE"


class SessionContext:
    """Holder of a bearer token and the user it belongs to.

    The process-wide context is owned by the auth service, which replaces
    its contents wholesale on every auth transition. Request contexts are
    built per caller from the request's bearer token.
    """

    def __init__(self, token: str | None = None, user: AuthenticatedUser | None = None) -> None:
        self._token = token
        self._user = user

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def user(self) -> AuthenticatedUser | None:
        return self._user

    def set_session(self, token: str | None, user: AuthenticatedUser | None = None) -> None:
        """Replace the token and user together."""
        self._token = token
        self._user = user

    def set_user(self, user: AuthenticatedUser | None) -> None:
        """Replace the user, keeping the token."""
        self._user = user

    def clear(self) -> None:
        self._token = None
        self._user = None


class DataGateway:
    """Async client for the REST data API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        session: SessionContext | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = 30.0,
    ) -> None:
        """Initialize the gateway.

        Args:
            base_url: Backend base URL (without /rest/v1)
            api_key: Static API key sent as the apikey header
            session: Session context supplying the default bearer token
            client: Optional pre-built httpx client (tests inject a mock transport)
            timeout: Request timeout in seconds when the gateway owns its client
        """
        self._rest_url = f"{base_url.rstrip('/')}/rest/v1"
        self._api_key = api_key
        self.session = session or SessionContext()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session: SessionContext | None = None,
    ) -> "DataGateway":
        """Build a gateway from application settings."""
        return cls(
            base_url=settings.supabase_url,
            api_key=settings.supabase_anon_key,
            session=session,
            timeout=settings.http_timeout_seconds,
        )

    async def aclose(self) -> None:
        """Close the underlying client if this gateway created it."""
        if self._owns_client:
            await self._client.aclose()

    def _headers(self, token: str | None, prefer: str | None = None) -> dict[str, str]:
        bearer = token or self.session.token or self._api_key
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {bearer}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def query(
        self,
        collection: str,
        *,
        fields: str = "*",
        filters: str | None = None,
        order: str | None = None,
        token: str | None = None,
    ) -> list[dict[str, Any]]:
        """Read rows from a collection.

        Args:
            collection: Table name (e.g. "reservation")
            fields: Column list for the select clause
            filters: Backend-native predicates, e.g. "room_id=eq.1&status=eq.Booked"
            order: Ordering clause, e.g. "room_id.asc"
            token: Bearer token overriding the session token

        Returns:
            List of flat records

        Raises:
            GatewayError: On any non-2xx response or transport failure
        """
        url = f"{self._rest_url}/{collection}?select={quote(fields, safe=',*')}"
        if filters:
            url += f"&{filters}"
        if order:
            url += f"&order={order}"

        response = await self._send("GET", url, self._headers(token))
        data = self._decode(response)
        return data if isinstance(data, list) else []

    async def mutate(
        self,
        collection: str,
        verb: MutationVerb,
        *,
        body: dict[str, Any] | list[dict[str, Any]] | None = None,
        filters: str | None = None,
        return_row: bool = False,
        single: bool = False,
        token: str | None = None,
    ) -> dict[str, Any] | list[dict[str, Any]] | None:
        """Insert, update or delete rows.

        Args:
            collection: Table name
            verb: CREATE, UPDATE or DELETE
            body: Row (or rows) to write
            filters: Target predicate; required for UPDATE and DELETE
            return_row: Ask the backend to return the written row(s)
            single: Return only the first written row
            token: Bearer token overriding the session token

        Returns:
            Written row(s) when return_row is set, otherwise None

        Raises:
            ValueError: If UPDATE/DELETE is attempted without filters
            GatewayError: On any non-2xx response or transport failure
        """
        if verb in (MutationVerb.UPDATE, MutationVerb.DELETE) and not filters:
            raise ValueError(f"{verb.name} on '{collection}' requires a filter expression")

        url = f"{self._rest_url}/{collection}"
        if filters:
            url += f"?{filters}"

        prefer = None
        if return_row:
            prefer = "return=representation,count=exact" if single else "return=representation"

        response = await self._send(verb.value, url, self._headers(token, prefer), body)

        if not return_row:
            return None

        data = self._decode(response)
        if single:
            if isinstance(data, list):
                return data[0] if data else None
            return data
        return data

    async def upsert(
        self,
        collection: str,
        body: dict[str, Any],
        *,
        on_conflict: str,
        token: str | None = None,
    ) -> dict[str, Any]:
        """Insert a row, or return the existing row with the same conflict key.

        The insert is a single atomic request against the backend's unique
        constraint on `on_conflict`; concurrent callers cannot both create
        a row. When the backend ignores the duplicate, the existing row is
        read back by that key.

        Args:
            collection: Table name
            body: Row to insert; must contain the on_conflict column
            on_conflict: Unique column, e.g. "email"
            token: Bearer token overriding the session token

        Returns:
            The inserted or pre-existing row

        Raises:
            GatewayError: On any non-2xx response, or if the row cannot be read back
        """
        url = f"{self._rest_url}/{collection}?on_conflict={on_conflict}"
        prefer = "resolution=ignore-duplicates,return=representation"

        response = await self._send("POST", url, self._headers(token, prefer), body)
        data = self._decode(response)
        if isinstance(data, list) and data:
            return data[0]
        if isinstance(data, dict) and data:
            return data

        key = body.get(on_conflict)
        existing = await self.query(
            collection,
            filters=f"{on_conflict}=eq.{quote(str(key), safe='@')}",
            token=token,
        )
        if not existing:
            raise GatewayError(
                f"Upsert on '{collection}' returned no row for {on_conflict}={key}"
            )
        return existing[0]

    async def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: Any = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method,
                url,
                headers=headers,
                json=body if body is not None else None,
            )
        except httpx.HTTPError as e:
            logger.error(f"Gateway transport failure: {method} {url}: {e}")
            raise GatewayError(str(e) or e.__class__.__name__) from e

        if not response.is_success:
            message = f"HTTP {response.status_code}: {response.text}"
            logger.warning(f"Gateway request rejected: {method} {url}: {message}")
            raise GatewayError(message, response.status_code)

        return response

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        return response.json()
