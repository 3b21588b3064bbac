# backend/roomchat/services/message_service.py
"""
Message Service for roomchat

Business logic for the shared room: content rules and the ownership
contract on edits and deletes. The REST layer calls this service; the
realtime channel only ever reads, through `fetch_hydrated_message`.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import ERROR_MESSAGE_NOT_FOUND, ERROR_NOT_AUTHORIZED
from ..core.exceptions import ForbiddenException, NotFoundException, ValidationException
from ..models.message import Message
from ..repositories.message_repository import MessageRepository
from ..schemas.message import MessageResponse
from .base import BaseService

logger = logging.getLogger(__name__)


def normalize_content(content: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Trim message content and enforce the length rules.

    Raises:
        ValidationException: If the trimmed content is empty or too long
    """
    limit = settings.message_max_length if max_length is None else max_length
    trimmed = (content or "").strip()
    if not trimmed:
        raise ValidationException("Content is required", code="content_required")
    if len(trimmed) > limit:
        raise ValidationException(
            f"Content cannot exceed {limit} characters",
            code="content_too_long",
            details={"max_length": limit, "length": len(trimmed)},
        )
    return trimmed


class MessageService(BaseService):
    """Service for room message CRUD."""

    def __init__(self, db: Session, message_repository: Optional[MessageRepository] = None):
        super().__init__(db)
        self.repository = message_repository or MessageRepository(db)

    @BaseService.measure_operation("list_messages")
    def list_messages(self) -> List[MessageResponse]:
        """Every message in the room, ordered by creation time ascending."""
        return [MessageResponse.model_validate(m) for m in self.repository.list_with_sender()]

    @BaseService.measure_operation("get_message")
    def get_message(self, message_id: str) -> MessageResponse:
        message = self.repository.get_with_sender(message_id)
        if message is None:
            raise NotFoundException(ERROR_MESSAGE_NOT_FOUND, code="message_not_found")
        return MessageResponse.model_validate(message)

    @BaseService.measure_operation("create_message")
    def create_message(self, sender_id: str, content: str) -> MessageResponse:
        trimmed = normalize_content(content)
        with self.transaction():
            message = self.repository.create(sender_id=sender_id, content=trimmed)
            message_id = message.id

        self.log_operation("create_message", message_id=message_id, sender_id=sender_id)
        return self._hydrated(message_id)

    @BaseService.measure_operation("edit_message")
    def edit_message(self, message_id: str, user_id: str, content: str) -> MessageResponse:
        """
        Replace the content of a message owned by `user_id`.

        Raises:
            ValidationException: Content empty or too long after trimming
            NotFoundException: No message with this id
            ForbiddenException: Caller is not the original sender
        """
        trimmed = normalize_content(content)
        with self.transaction():
            self._get_owned(message_id, user_id)
            self.repository.update(message_id, content=trimmed)

        self.log_operation("edit_message", message_id=message_id, sender_id=user_id)
        return self._hydrated(message_id)

    @BaseService.measure_operation("delete_message")
    def delete_message(self, message_id: str, user_id: str) -> None:
        """
        Delete a message owned by `user_id`.

        Raises:
            NotFoundException: No message with this id
            ForbiddenException: Caller is not the original sender
        """
        with self.transaction():
            self._get_owned(message_id, user_id)
            self.repository.delete(message_id)

        self.log_operation("delete_message", message_id=message_id, sender_id=user_id)

    def _get_owned(self, message_id: str, user_id: str) -> Message:
        message = self.repository.get_by_id(message_id, load_relationships=False)
        if message is None:
            raise NotFoundException(ERROR_MESSAGE_NOT_FOUND, code="message_not_found")
        if str(message.sender_id) != str(user_id):
            logger.warning(
                f"User {user_id} attempted to modify message {message_id} owned by {message.sender_id}"
            )
            raise ForbiddenException(ERROR_NOT_AUTHORIZED, code="not_message_owner")
        return message

    def _hydrated(self, message_id: str) -> MessageResponse:
        # Re-read after commit so timestamps and sender reflect stored state
        self.db.expire_all()
        return self.get_message(message_id)
