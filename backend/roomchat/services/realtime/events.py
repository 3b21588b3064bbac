# backend/roomchat/services/realtime/events.py
"""
Realtime event names, frame builder, and change-notification parsing.

All frames on the push channel, in both directions, follow this structure:
{
    "event": str,   # Event name (see RealtimeEvent)
    "data": Any     # Event-specific payload
}

Inbound notifications carry a claimed sender that clients send in one of
two shapes: a bare id, or a sender object with `_id` or `id`. Both are
parsed into the `Sender` union and compared through `normalize_sender`.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class RealtimeEvent(str, Enum):
    """Event names used on the push channel."""

    # Client -> server
    SEND_MESSAGE = "sendMessage"
    # Server -> client
    RECEIVE_MESSAGE = "receiveMessage"
    CONNECT = "connect"
    # Both directions
    EDIT_MESSAGE = "editMessage"
    DELETE_MESSAGE = "deleteMessage"


class ChangeKind(str, Enum):
    """What happened to a message, as announced by the client that changed it."""

    CREATED = "created"
    EDITED = "edited"
    DELETED = "deleted"


# Inbound event name -> notification kind
INBOUND_EVENTS: Dict[str, ChangeKind] = {
    RealtimeEvent.SEND_MESSAGE.value: ChangeKind.CREATED,
    RealtimeEvent.EDIT_MESSAGE.value: ChangeKind.EDITED,
    RealtimeEvent.DELETE_MESSAGE.value: ChangeKind.DELETED,
}


@dataclass(frozen=True)
class SenderId:
    """Sender given as a bare id."""

    value: Any


@dataclass(frozen=True)
class SenderRef:
    """Sender given as an object; `_id` wins over `id` when both are set."""

    fields: Dict[str, Any]


Sender = Union[SenderId, SenderRef]


def parse_sender(raw: Any) -> Optional[Sender]:
    if raw is None:
        return None
    if isinstance(raw, dict):
        return SenderRef(fields=raw)
    return SenderId(value=raw)


def normalize_sender(sender: Optional[Sender]) -> Optional[str]:
    """
    Reduce either sender shape to a comparable id string.

    Returns None when no usable id is present (missing, null, empty, or a
    nested structure), which callers treat as a mismatch.
    """
    if sender is None:
        return None
    if isinstance(sender, SenderRef):
        value = sender.fields.get("_id")
        if value is None:
            value = sender.fields.get("id")
    else:
        value = sender.value

    if value is None or isinstance(value, (bool, dict, list)):
        return None
    text = str(value)
    return text or None


@dataclass(frozen=True)
class ChangeNotification:
    """
    A client's announcement that it changed a message through REST.

    Consumed once by the broadcast core and never queued or retried.
    """

    kind: ChangeKind
    message_id: Optional[str]
    claimed_sender: Optional[Sender] = None

    @property
    def claimed_sender_id(self) -> Optional[str]:
        return normalize_sender(self.claimed_sender)


def _message_id(data: Dict[str, Any]) -> Optional[str]:
    value = data.get("_id")
    if value is None or isinstance(value, (bool, dict, list)):
        return None
    text = str(value)
    return text or None


def parse_notification(kind: ChangeKind, data: Any) -> ChangeNotification:
    """Build a notification from an inbound frame payload. Non-object payloads carry nothing."""
    if not isinstance(data, dict):
        return ChangeNotification(kind=kind, message_id=None)
    claimed = None if kind is ChangeKind.DELETED else parse_sender(data.get("sender"))
    return ChangeNotification(kind=kind, message_id=_message_id(data), claimed_sender=claimed)


def build_frame(event: Union[RealtimeEvent, str], data: Any) -> Dict[str, Any]:
    """Build a push-channel frame ready for JSON encoding."""
    name = event.value if isinstance(event, RealtimeEvent) else event
    return {"event": name, "data": data}
