# backend/roomchat/repositories/message_repository.py
"""
Message Repository for roomchat

Handles data access for room messages. Every read used by the API and the
realtime channel returns messages hydrated with their sender, so callers
can render `sender.username` without a second query.
"""

from typing import List, Optional

from sqlalchemy.orm import Query, Session, joinedload

from ..models.message import Message
from .base_repository import BaseRepository


class MessageRepository(BaseRepository[Message]):
    """Repository for message data access."""

    def __init__(self, db: Session):
        super().__init__(db, Message)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Message.sender))

    def list_with_sender(self) -> List[Message]:
        """All messages, oldest first. Ties on created_at fall back to the ULID."""
        query = self._apply_eager_loading(self.db.query(Message)).order_by(
            Message.created_at.asc(), Message.id.asc()
        )
        return self._execute_query(query)

    def get_with_sender(self, message_id: str) -> Optional[Message]:
        return self.get_by_id(message_id, load_relationships=True)
