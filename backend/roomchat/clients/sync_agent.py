"""
Client sync agent.

One agent per connected client. Every user action goes through REST
first; only after the API accepts it does the agent announce the change on
the push channel. Pushed events are merged into the local log with
idempotent semantics:

    receiveMessage -> upsert by id (replaces any optimistic placeholder)
    editMessage    -> replace in place, position unchanged
    deleteMessage  -> remove by id; unknown ids are ignored

Dropped broadcasts are never retried by the server; `refresh()` reloads
the full list from REST to reconcile.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from typing import Any, Awaitable, Callable
from uuid import uuid4

from .api_client import ChatApiClient
from .message_log import LocalMessageLog

logger = logging.getLogger(__name__)

Emitter = Callable[[str, Any], Awaitable[None]]

SEND_MESSAGE = "sendMessage"
RECEIVE_MESSAGE = "receiveMessage"
EDIT_MESSAGE = "editMessage"
DELETE_MESSAGE = "deleteMessage"
CONNECT = "connect"


@dataclass
class PendingOperation:
    """An optimistic send awaiting its canonical record."""

    temp_id: str
    content: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SyncAgent:
    """Keeps a LocalMessageLog in step with the server for one user."""

    def __init__(
        self,
        api: ChatApiClient,
        emit: Emitter,
        user_id: str,
        username: str = "",
        log: LocalMessageLog | None = None,
    ) -> None:
        self.api = api
        self.emit = emit
        self.user_id = user_id
        self.username = username
        self.log = log if log is not None else LocalMessageLog()
        self.pending: dict[str, PendingOperation] = {}
        self.connection_id: str | None = None

    @property
    def messages(self) -> list[dict]:
        return self.log.messages

    async def refresh(self) -> list[dict]:
        """Replace the local log with the server's full ordered list."""
        messages = await self.api.list_messages()
        self.log.reset(messages)
        for pending in self.pending.values():
            self.log.add_placeholder(pending.temp_id, pending.content, self._sender())
        return self.log.messages

    async def send(self, content: str) -> dict:
        """
        Post a message optimistically.

        A placeholder is shown at once and the REST response replaces it. The
        later receiveMessage for the same id is an idempotent upsert. On REST
        failure the placeholder is removed and the error re-raised; nothing is
        emitted.
        """
        temp_id = uuid4().hex
        operation = PendingOperation(temp_id=temp_id, content=content)
        self.pending[temp_id] = operation
        self.log.add_placeholder(temp_id, content, self._sender())

        try:
            message = await self.api.create_message(content)
        except Exception:
            self.pending.pop(temp_id, None)
            self.log.drop_placeholder(temp_id)
            raise

        self._resolve(operation, message)
        await self.emit(SEND_MESSAGE, {"_id": message["_id"], "sender": message["sender"]})
        return message

    async def edit(self, message_id: str, content: str) -> dict:
        message = await self.api.update_message(message_id, content)
        self.log.replace(message)
        await self.emit(EDIT_MESSAGE, message)
        return message

    async def delete(self, message_id: str) -> None:
        await self.api.delete_message(message_id)
        self.log.remove(message_id)
        await self.emit(DELETE_MESSAGE, {"_id": message_id})

    def apply_event(self, event: str, data: Any) -> None:
        """Merge one pushed frame into the local log."""
        if event == RECEIVE_MESSAGE and isinstance(data, dict):
            self.log.upsert(data)
        elif event == EDIT_MESSAGE and isinstance(data, dict):
            self.log.replace(data)
        elif event == DELETE_MESSAGE:
            message_id = data.get("_id") if isinstance(data, dict) else data
            if isinstance(message_id, str):
                self.log.remove(message_id)
        elif event == CONNECT and isinstance(data, dict):
            self.connection_id = data.get("connectionId")
        else:
            logger.debug("Ignoring push event %r", event)

    def apply_frame(self, frame: dict) -> None:
        self.apply_event(frame.get("event", ""), frame.get("data"))

    def _resolve(self, operation: PendingOperation, message: dict) -> None:
        self.pending.pop(operation.temp_id, None)
        self.log.resolve_placeholder(operation.temp_id, message)

    def _sender(self) -> dict:
        return {"_id": self.user_id, "username": self.username}
