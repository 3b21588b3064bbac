# backend/roomchat/services/realtime/registry.py
"""
Connection registry for the realtime push channel.

Each BroadcastCore owns one registry. It is mutated only from the event
loop, and broadcasts iterate over `snapshot()` so connections can come and
go mid fan-out.
"""

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, Iterator, List, Optional, Protocol
import uuid

from starlette import status

from ...core.metrics import REALTIME_OPEN_CONNECTIONS
from .events import RealtimeEvent, build_frame

logger = logging.getLogger(__name__)


class FrameTransport(Protocol):
    """The part of a WebSocket the core needs. Starlette's WebSocket satisfies it."""

    async def send_json(self, data: Any, mode: str = "text") -> None: ...

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None: ...


@dataclass(eq=False)
class Connection:
    """An admitted push-channel connection bound to one authenticated user."""

    user_id: str
    transport: FrameTransport
    connection_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    is_open: bool = True

    async def send(self, event: RealtimeEvent, data: Any) -> None:
        await self.transport.send_json(build_frame(event, data))

    def close(self) -> None:
        self.is_open = False

    async def terminate(
        self, code: int = status.WS_1011_INTERNAL_ERROR, reason: Optional[str] = None
    ) -> None:
        """Mark the connection closed and close the underlying socket."""
        self.close()
        try:
            await self.transport.close(code=code, reason=reason)
        except Exception as e:
            # The socket is usually already gone when this is called
            logger.debug(f"[REALTIME] Close of connection {self.connection_id} failed: {e}")


class ConnectionRegistry:
    """Open connections keyed by connection id."""

    def __init__(self) -> None:
        self._connections: Dict[str, Connection] = {}

    def add(self, connection: Connection) -> None:
        self._connections[connection.connection_id] = connection
        REALTIME_OPEN_CONNECTIONS.inc()

    def discard(self, connection: Connection) -> Optional[Connection]:
        """Remove and close a connection. Removing an unknown connection is a no-op."""
        connection.close()
        removed = self._connections.pop(connection.connection_id, None)
        if removed is not None:
            REALTIME_OPEN_CONNECTIONS.dec()
        return removed

    def snapshot(self) -> List[Connection]:
        return list(self._connections.values())

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[Connection]:
        return iter(self.snapshot())

    def __contains__(self, connection: object) -> bool:
        return (
            isinstance(connection, Connection)
            and self._connections.get(connection.connection_id) is connection
        )
