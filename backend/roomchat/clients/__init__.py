"""Python client for roomchat: REST wrapper and the sync agent that merges pushed events."""

from .api_client import (
    ChatApiClient,
    ChatAuthError,
    ChatClientError,
    ChatConnectionError,
    ChatForbiddenError,
    ChatNotFoundError,
    ChatRequestError,
    ChatValidationError,
)
from .message_log import LocalMessageLog
from .sync_agent import PendingOperation, SyncAgent

__all__ = [
    "ChatApiClient",
    "ChatAuthError",
    "ChatClientError",
    "ChatConnectionError",
    "ChatForbiddenError",
    "ChatNotFoundError",
    "ChatRequestError",
    "ChatValidationError",
    "LocalMessageLog",
    "PendingOperation",
    "SyncAgent",
]
