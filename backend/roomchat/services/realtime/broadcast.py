# backend/roomchat/services/realtime/broadcast.py
"""
Realtime broadcast core.

Receives change notifications from admitted connections, re-validates them
against the identity bound at handshake time, re-fetches canonical state,
and fans it out:

    created -> receiveMessage, full message, every connection incl. originator
    edited  -> editMessage,    full message, every connection except originator
    deleted -> deleteMessage,  bare id,      every connection except originator

The core never writes to the store. Any failure while handling one
notification is logged and the notification is dropped; the sender gets
no error frame and other connections are unaffected.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from ...core.metrics import REALTIME_DELIVERIES_TOTAL, REALTIME_NOTIFICATIONS_TOTAL
from .events import (
    INBOUND_EVENTS,
    ChangeKind,
    ChangeNotification,
    RealtimeEvent,
    parse_notification,
)
from .registry import Connection, ConnectionRegistry, FrameTransport
from .store import fetch_hydrated_message

logger = logging.getLogger(__name__)

MessageFetcher = Callable[[str], Awaitable[Optional[Dict[str, Any]]]]


class BroadcastCore:
    """One instance per application, stored on `app.state.realtime`."""

    def __init__(
        self,
        registry: Optional[ConnectionRegistry] = None,
        fetch_message: MessageFetcher = fetch_hydrated_message,
    ) -> None:
        self.registry = registry if registry is not None else ConnectionRegistry()
        self._fetch_message = fetch_message

    async def admit(self, transport: FrameTransport, user_id: str) -> Connection:
        """Register an authenticated transport and tell it the handshake succeeded."""
        connection = Connection(user_id=user_id, transport=transport)
        self.registry.add(connection)
        logger.info(
            f"[REALTIME] Connection {connection.connection_id} admitted for user {user_id}",
            extra={"connection_id": connection.connection_id, "user_id": user_id},
        )
        await connection.send(
            RealtimeEvent.CONNECT,
            {"connectionId": connection.connection_id, "userId": user_id},
        )
        return connection

    def release(self, connection: Connection) -> None:
        if self.registry.discard(connection) is not None:
            logger.info(
                f"[REALTIME] Connection {connection.connection_id} closed for user {connection.user_id}",
                extra={"connection_id": connection.connection_id, "user_id": connection.user_id},
            )

    async def dispatch(self, connection: Connection, event: Any, data: Any) -> int:
        """
        Handle one inbound frame from `connection`.

        Returns the number of frames delivered. Never raises.
        """
        if not connection.is_open:
            logger.info(
                f"[REALTIME] Ignoring {event!r} from closed connection {connection.connection_id}"
            )
            return 0

        kind = INBOUND_EVENTS.get(event) if isinstance(event, str) else None
        if kind is None:
            logger.warning(
                f"[REALTIME] Unknown event {event!r} from connection {connection.connection_id}"
            )
            # Client-supplied names are not used as label values
            REALTIME_NOTIFICATIONS_TOTAL.labels(event="unknown", outcome="unknown_event").inc()
            return 0

        notification = parse_notification(kind, data)
        try:
            return await self.handle(connection, notification)
        except Exception as e:
            logger.error(
                f"[REALTIME] Failed to process {event} from user {connection.user_id}: {e}",
                exc_info=True,
                extra={"connection_id": connection.connection_id, "message_id": notification.message_id},
            )
            REALTIME_NOTIFICATIONS_TOTAL.labels(event=event, outcome="error").inc()
            return 0

    async def handle(self, connection: Connection, notification: ChangeNotification) -> int:
        if notification.kind is ChangeKind.CREATED:
            return await self.handle_message_created(connection, notification)
        if notification.kind is ChangeKind.EDITED:
            return await self.handle_message_edited(connection, notification)
        return await self.handle_message_deleted(connection, notification)

    async def handle_message_created(
        self, connection: Connection, notification: ChangeNotification
    ) -> int:
        payload = await self._validated_fetch(connection, notification, RealtimeEvent.SEND_MESSAGE)
        if payload is None:
            return 0
        return await self.broadcast(RealtimeEvent.RECEIVE_MESSAGE, payload)

    async def handle_message_edited(
        self, connection: Connection, notification: ChangeNotification
    ) -> int:
        payload = await self._validated_fetch(connection, notification, RealtimeEvent.EDIT_MESSAGE)
        if payload is None:
            return 0
        return await self.broadcast(RealtimeEvent.EDIT_MESSAGE, payload, exclude=connection)

    async def handle_message_deleted(
        self, connection: Connection, notification: ChangeNotification
    ) -> int:
        # Ownership was enforced by the REST delete; only the id is checked here
        if not notification.message_id:
            logger.warning(
                f"[REALTIME] deleteMessage payload missing _id from user {connection.user_id}"
            )
            self._count(RealtimeEvent.DELETE_MESSAGE, "missing_id")
            return 0
        self._count(RealtimeEvent.DELETE_MESSAGE, "accepted")
        return await self.broadcast(
            RealtimeEvent.DELETE_MESSAGE, notification.message_id, exclude=connection
        )

    async def broadcast(
        self,
        event: RealtimeEvent,
        payload: Any,
        exclude: Optional[Connection] = None,
    ) -> int:
        """
        Send one frame to every open connection except `exclude`.

        Connections whose send fails are evicted and their sockets closed;
        the rest still receive the frame. Returns the number of successful deliveries.
        """
        targets = [c for c in self.registry.snapshot() if c.is_open and c is not exclude]
        if not targets:
            return 0

        results = await asyncio.gather(
            *(target.send(event, payload) for target in targets), return_exceptions=True
        )

        delivered = 0
        evicted = []
        for target, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.warning(
                    f"[REALTIME] Dropping connection {target.connection_id} after failed send: {result}"
                )
                self.registry.discard(target)
                evicted.append(target)
            else:
                delivered += 1

        if evicted:
            await asyncio.gather(*(target.terminate() for target in evicted))

        if delivered:
            REALTIME_DELIVERIES_TOTAL.labels(event=event.value).inc(delivered)
        logger.debug(f"[REALTIME] {event.value} delivered to {delivered}/{len(targets)} connections")
        return delivered

    async def _validated_fetch(
        self,
        connection: Connection,
        notification: ChangeNotification,
        event: RealtimeEvent,
    ) -> Optional[Dict[str, Any]]:
        """Check the claimed sender against the bound identity, then load the message."""
        claimed = notification.claimed_sender_id
        if claimed is None or claimed != connection.user_id:
            logger.warning(
                f"[REALTIME] {event.value} sender mismatch or missing. "
                f"Connection user id: {connection.user_id}, claimed sender: {claimed}. Ignoring event.",
                extra={"connection_id": connection.connection_id},
            )
            self._count(event, "sender_mismatch")
            return None

        if not notification.message_id:
            logger.warning(f"[REALTIME] {event.value} payload missing _id from user {claimed}")
            self._count(event, "missing_id")
            return None

        payload = await self._fetch_message(notification.message_id)
        if payload is None:
            logger.info(
                f"[REALTIME] {event.value} for message {notification.message_id} not found, skipping"
            )
            self._count(event, "not_found")
            return None

        self._count(event, "accepted")
        return payload

    @staticmethod
    def _count(event: RealtimeEvent, outcome: str) -> None:
        REALTIME_NOTIFICATIONS_TOTAL.labels(event=event.value, outcome=outcome).inc()
