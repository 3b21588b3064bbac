"""A client's local, ordered view of the room."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterator

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _parse_created_at(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return _EPOCH
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return _EPOCH


def _sort_key(entry: dict) -> tuple[datetime, str]:
    return _parse_created_at(entry.get("createdAt")), str(entry.get("_id") or "")


class LocalMessageLog:
    """
    Messages in wire format, ordered by createdAt.

    Server messages are keyed by `_id`. Optimistic placeholders have no
    `_id` yet; they carry `tempId` and `pending: True` until resolved.
    """

    def __init__(self, messages: list[dict] | None = None) -> None:
        self._entries: list[dict] = []
        if messages:
            self.reset(messages)

    @property
    def messages(self) -> list[dict]:
        return list(self._entries)

    @property
    def ids(self) -> list[str | None]:
        return [entry.get("_id") for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[dict]:
        return iter(self.messages)

    def __contains__(self, message_id: object) -> bool:
        return self.index_of(message_id) is not None

    def index_of(self, message_id: object) -> int | None:
        if message_id is None:
            return None
        for index, entry in enumerate(self._entries):
            if entry.get("_id") == message_id:
                return index
        return None

    def get(self, message_id: str) -> dict | None:
        index = self.index_of(message_id)
        return self._entries[index] if index is not None else None

    def reset(self, messages: list[dict]) -> None:
        self._entries = sorted((dict(m) for m in messages), key=_sort_key)

    def upsert(self, message: dict) -> None:
        """Insert by createdAt, or replace in place if the id is already present."""
        index = self.index_of(message.get("_id"))
        if index is not None:
            self._entries[index] = dict(message)
            return
        self._insert_sorted(dict(message))

    def replace(self, message: dict) -> bool:
        """Replace an existing message in place. Unknown ids are ignored."""
        index = self.index_of(message.get("_id"))
        if index is None:
            return False
        self._entries[index] = dict(message)
        return True

    def remove(self, message_id: str) -> bool:
        """Remove by id. Removing an absent id is a no-op."""
        index = self.index_of(message_id)
        if index is None:
            return False
        del self._entries[index]
        return True

    def add_placeholder(self, temp_id: str, content: str, sender: dict) -> dict:
        placeholder = {
            "_id": None,
            "tempId": temp_id,
            "pending": True,
            "sender": dict(sender),
            "content": content,
            "createdAt": datetime.now(timezone.utc).isoformat(),
            "updatedAt": None,
        }
        self._entries.append(placeholder)
        return placeholder

    def drop_placeholder(self, temp_id: str) -> bool:
        for index, entry in enumerate(self._entries):
            if entry.get("tempId") == temp_id:
                del self._entries[index]
                return True
        return False

    def resolve_placeholder(self, temp_id: str, message: dict) -> None:
        """Swap a placeholder for the canonical message, keeping ids unique."""
        self.drop_placeholder(temp_id)
        self.upsert(message)

    def _insert_sorted(self, entry: dict) -> None:
        key = _sort_key(entry)
        for index, existing in enumerate(self._entries):
            if existing.get("pending"):
                # Placeholders stay at the tail until resolved
                self._entries.insert(index, entry)
                return
            if _sort_key(existing) > key:
                self._entries.insert(index, entry)
                return
        self._entries.append(entry)
