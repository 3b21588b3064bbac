# backend/roomchat/services/realtime/store.py
"""
Non-blocking reads of canonical message state for the broadcast core.

The SQLAlchemy query runs in a worker thread via asyncio.to_thread() so a
slow store never stalls the event loop that serves every connection. Each
call opens and closes its own session; nothing is held between events.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from ...database import SessionLocal
from ...repositories.message_repository import MessageRepository
from ...schemas.message import MessageResponse

logger = logging.getLogger(__name__)


def _sync_fetch_hydrated(message_id: str) -> Optional[Dict[str, Any]]:
    db = SessionLocal()
    try:
        message = MessageRepository(db).get_with_sender(message_id)
        if message is None:
            return None
        return MessageResponse.model_validate(message).to_wire()
    finally:
        db.close()


async def fetch_hydrated_message(message_id: str) -> Optional[Dict[str, Any]]:
    """
    Load a message with its sender username, in wire format.

    Returns None if the message does not exist (for example, deleted
    between the REST call and the notification). Store failures propagate
    as RepositoryException.
    """
    return await asyncio.to_thread(_sync_fetch_hydrated, message_id)
