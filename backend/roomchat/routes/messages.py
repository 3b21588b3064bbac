# backend/roomchat/routes/messages.py
"""
Message routes for the shared room.

All business logic is delegated to MessageService. These handlers never
talk to the realtime channel: after a successful mutation the client
announces the change over its own WebSocket connection.

Endpoints:
    GET    /api/messages              - All messages, oldest first
    POST   /api/messages              - Post a message
    PATCH  /api/messages/{message_id} - Edit own message
    DELETE /api/messages/{message_id} - Delete own message
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..core.exceptions import ForbiddenException, NotFoundException, ValidationException
from ..database import get_db
from ..models.user import User
from ..schemas.message import (
    CreateMessageRequest,
    DeleteMessageResponse,
    MessageResponse,
    UpdateMessageRequest,
)
from ..services.message_service import MessageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/messages", tags=["messages"])


def get_message_service(db: Session = Depends(get_db)) -> MessageService:
    return MessageService(db)


@router.get("", response_model=List[MessageResponse])
async def list_messages(
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
) -> List[MessageResponse]:
    try:
        return service.list_messages()
    except Exception as e:
        logger.error(f"Failed to fetch messages: {str(e)}", extra={"user_id": current_user.id})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch messages"
        )


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Content empty or longer than 500 characters"}},
)
async def create_message(
    request: CreateMessageRequest,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
) -> MessageResponse:
    """Post a message as the current user. Content is trimmed before it is stored."""
    try:
        return service.create_message(current_user.id, request.content)
    except ValidationException as e:
        raise e.to_http_exception()
    except Exception as e:
        logger.error(
            f"Failed to send message: {str(e)}",
            extra={"user_id": current_user.id, "error_type": type(e).__name__},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to send message"
        )


@router.patch(
    "/{message_id}",
    response_model=MessageResponse,
    responses={
        400: {"description": "Content empty or longer than 500 characters"},
        403: {"description": "Not the message owner"},
        404: {"description": "Message not found"},
    },
)
async def edit_message(
    message_id: str,
    request: UpdateMessageRequest,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
) -> MessageResponse:
    """Edit a message. Only the original sender may edit it."""
    try:
        return service.edit_message(message_id, current_user.id, request.content)
    except (ValidationException, ForbiddenException, NotFoundException) as e:
        logger.warning(
            f"Message edit rejected: {e.message}",
            extra={"user_id": current_user.id, "message_id": message_id},
        )
        raise e.to_http_exception()
    except Exception as e:
        logger.error(
            f"Failed to edit message: {str(e)}",
            extra={"user_id": current_user.id, "message_id": message_id},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to edit message"
        )


@router.delete(
    "/{message_id}",
    response_model=DeleteMessageResponse,
    responses={
        403: {"description": "Not the message owner"},
        404: {"description": "Message not found"},
    },
)
async def delete_message(
    message_id: str,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
) -> DeleteMessageResponse:
    """Delete a message. Only the original sender may delete it."""
    try:
        service.delete_message(message_id, current_user.id)
        return DeleteMessageResponse(success=True, message="Message deleted")
    except (ForbiddenException, NotFoundException) as e:
        logger.warning(
            f"Message delete rejected: {e.message}",
            extra={"user_id": current_user.id, "message_id": message_id},
        )
        raise e.to_http_exception()
    except Exception as e:
        logger.error(
            f"Failed to delete message: {str(e)}",
            extra={"user_id": current_user.id, "message_id": message_id},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete message"
        )
