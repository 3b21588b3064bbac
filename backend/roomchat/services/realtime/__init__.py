# backend/roomchat/services/realtime/__init__.py
"""
Realtime push channel: connection registry, change-notification handling,
and fan-out of canonical message state.
"""

from .broadcast import BroadcastCore
from .events import (
    ChangeKind,
    ChangeNotification,
    RealtimeEvent,
    SenderId,
    SenderRef,
    build_frame,
    normalize_sender,
    parse_notification,
    parse_sender,
)
from .registry import Connection, ConnectionRegistry
from .store import fetch_hydrated_message

__all__ = [
    "BroadcastCore",
    "ChangeKind",
    "ChangeNotification",
    "Connection",
    "ConnectionRegistry",
    "RealtimeEvent",
    "SenderId",
    "SenderRef",
    "build_frame",
    "fetch_hydrated_message",
    "normalize_sender",
    "parse_notification",
    "parse_sender",
]
