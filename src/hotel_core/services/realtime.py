"""Realtime reconciliation of server-pushed row changes.

Room and reservation updates pushed by the backend are merged into the
lifecycle manager's in-memory store as field patches; newly inserted
reservations trigger a re-fetch, since their relations cannot be built
from the notification alone.

Usage:
    feed = await SupabaseChangeFeed.create(get_settings())
    reconciler = RealtimeReconciler(manager, feed)
    await reconciler.start()
    auth.add_listener(reconciler.on_identity_changed)
"""

import asyncio
import datetime as dt
import uuid
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, Protocol

from pydantic import BaseModel, Field
from supabase import AsyncClient, acreate_client

from hotel_core.config import Settings
from hotel_core.models import AuthenticatedUser, ChangeEventType, GatewayError
from hotel_core.utils.logging import get_logger, log_realtime_event

from .lifecycle import RESERVATION, ROOM, parse_timestamp
from .mapper import WireRecord, reservation_from_wire, room_from_wire

if TYPE_CHECKING:
    from .lifecycle import ReservationLifecycleManager

logger = get_logger(__name__)


class ChangeNotification(BaseModel):
    """One row change pushed by the backend."""

    event_type: ChangeEventType
    table: str
    new: dict[str, Any] = Field(default_factory=dict)
    old: dict[str, Any] = Field(default_factory=dict)
    commit_timestamp: dt.datetime | None = None

    @classmethod
    def from_payload(
        cls,
        payload: dict[str, Any],
        table: str | None = None,
    ) -> "ChangeNotification | None":
        """Normalize a postgres-changes payload.

        Accepts both the wrapped shape ({"data": {"type", "record", ...}})
        and the flat shape ({"eventType", "new", "old", ...}).

        Returns:
            The notification, or None when the event type is missing or unknown
        """
        data = payload.get("data", payload) if isinstance(payload, dict) else {}
        raw_type = data.get("type") or data.get("eventType")
        try:
            event_type = ChangeEventType(str(raw_type).upper())
        except ValueError:
            return None

        return cls(
            event_type=event_type,
            table=data.get("table") or table or "",
            new=data.get("record") or data.get("new") or {},
            old=data.get("old_record") or data.get("old") or {},
            commit_timestamp=parse_timestamp(data.get("commit_timestamp")),
        )


ChangeHandler = Callable[[ChangeNotification], Awaitable[None]]


class ChangeFeed(Protocol):
    """Source of row-change notifications."""

    async def subscribe(
        self,
        table: str,
        events: Iterable[ChangeEventType],
        handler: ChangeHandler,
    ) -> Any: ...

    async def unsubscribe(self, handle: Any) -> None: ...

    async def set_auth(self, token: str | None) -> None: ...


class SupabaseChangeFeed:
    """ChangeFeed over supabase realtime postgres-changes channels."""

    def __init__(
        self,
        client: AsyncClient,
        schema: str = "public",
        anon_key: str | None = None,
    ) -> None:
        self._client = client
        self._anon_key = anon_key
        self._schema = schema
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    async def create(cls, settings: Settings) -> "SupabaseChangeFeed":
        client = await acreate_client(settings.supabase_url, settings.supabase_anon_key)
        return cls(client, anon_key=settings.supabase_anon_key)

    async def subscribe(
        self,
        table: str,
        events: Iterable[ChangeEventType],
        handler: ChangeHandler,
    ) -> Any:
        channel = self._client.channel(f"hotel-{table}-{uuid.uuid4().hex[:8]}")
        callback = self._dispatcher(table, handler)
        for event in events:
            channel.on_postgres_changes(
                event.value,
                schema=self._schema,
                table=table,
                callback=callback,
            )
        await channel.subscribe()
        logger.info(f"Subscribed to {table} changes")
        return channel

    async def unsubscribe(self, handle: Any) -> None:
        await self._client.remove_channel(handle)

    async def set_auth(self, token: str | None) -> None:
        """Authorize subsequent channel joins with a bearer token (anon when None)."""
        await self._client.realtime.set_auth(token or self._anon_key)

    def _dispatcher(self, table: str, handler: ChangeHandler) -> Callable[[dict[str, Any]], None]:
        # Channel callbacks are synchronous; run the handler as a task
        def callback(payload: dict[str, Any]) -> None:
            notification = ChangeNotification.from_payload(payload, table)
            if notification is None:
                log_realtime_event(logger, table, "UNKNOWN", result="ignored")
                return
            task = asyncio.ensure_future(handler(notification))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        return callback


class RealtimeReconciler:
    """Applies pushed changes to the lifecycle manager's store."""

    SUBSCRIPTIONS: tuple[tuple[str, tuple[ChangeEventType, ...]], ...] = (
        (ROOM, (ChangeEventType.UPDATE,)),
        (RESERVATION, (ChangeEventType.UPDATE, ChangeEventType.INSERT)),
    )

    def __init__(self, manager: "ReservationLifecycleManager", feed: ChangeFeed) -> None:
        self.manager = manager
        self.feed = feed
        self._handles: list[Any] = []

    @property
    def subscribed(self) -> bool:
        return bool(self._handles)

    async def start(self) -> None:
        """Subscribe to room and reservation changes (no-op if already subscribed)."""
        if self._handles:
            return
        for table, events in self.SUBSCRIPTIONS:
            self._handles.append(await self.feed.subscribe(table, events, self.handle))

    async def stop(self) -> None:
        """Tear down every subscription."""
        handles, self._handles = self._handles, []
        for handle in handles:
            try:
                await self.feed.unsubscribe(handle)
            except Exception as e:
                logger.warning(f"Failed to remove realtime subscription: {e}")

    async def on_identity_changed(self, user: AuthenticatedUser | None) -> None:
        """Re-subscribe under the new identity.

        Channels are joined with the background session's token, so row
        visibility follows the signed-in staff member.
        """
        await self.stop()
        await self.feed.set_auth(self.manager.session.token)
        await self.start()
        logger.info(
            "Realtime subscriptions re-established",
            extra={"user_type": user.user_type.value if user else None},
        )

    async def handle(self, notification: ChangeNotification) -> str:
        """Merge one notification.

        Returns:
            The outcome: patched, refetched, stale, ignored or error
        """
        if notification.table == ROOM and notification.event_type == ChangeEventType.UPDATE:
            result, row_id = self._patch_room(notification)
        elif notification.table == RESERVATION and notification.event_type == ChangeEventType.UPDATE:
            result, row_id = self._patch_reservation(notification)
        elif notification.table == RESERVATION and notification.event_type == ChangeEventType.INSERT:
            row_id = WireRecord(notification.new).get("reservation_id")
            try:
                await self.manager.refresh_reservations()
            except GatewayError as e:
                log_realtime_event(
                    logger,
                    notification.table,
                    notification.event_type.value,
                    row_id=row_id,
                    result="error",
                    error=e.message,
                )
                return "error"
            result = "refetched"
        else:
            result, row_id = "ignored", None

        log_realtime_event(
            logger,
            notification.table,
            notification.event_type.value,
            row_id=row_id,
            result=result,
        )
        return result

    def _patch_room(self, notification: ChangeNotification) -> tuple[str, int | None]:
        if WireRecord(notification.new).get("status") is None:
            return "ignored", None
        room = room_from_wire(notification.new, [])
        if room is None:
            return "ignored", None
        result = self.manager.store.apply_remote_patch(
            ROOM,
            room.room_id,
            {"status": room.status},
            notification.commit_timestamp,
        )
        return result, room.room_id

    def _patch_reservation(self, notification: ChangeNotification) -> tuple[str, int | None]:
        reservation = reservation_from_wire(notification.new)
        if reservation is None:
            return "ignored", WireRecord(notification.new).get("reservation_id")
        result = self.manager.store.apply_remote_patch(
            RESERVATION,
            reservation.reservation_id,
            {"status": reservation.status, "staff_id": reservation.staff_id},
            notification.commit_timestamp,
        )
        return result, reservation.reservation_id
