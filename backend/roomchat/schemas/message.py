# backend/roomchat/schemas/message.py
"""
Schemas for room messages.

Responses use the wire names the chat client expects (`_id`, `createdAt`,
`updatedAt`), both over REST and inside realtime frames. Realtime payloads
are produced with `model_dump(mode="json", by_alias=True)`.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import AliasChoices, ConfigDict, Field, field_validator

from ._strict_base import StrictModel, StrictRequestModel


class MessageSender(StrictModel):
    """Sender reference hydrated with the display name."""

    model_config = ConfigDict(extra="ignore", from_attributes=True, populate_by_name=True)

    id: str = Field(
        ...,
        validation_alias=AliasChoices("id", "_id"),
        serialization_alias="_id",
    )
    username: str


class MessageResponse(StrictModel):
    """A message as returned by the API and broadcast to connected clients."""

    model_config = ConfigDict(extra="ignore", from_attributes=True, populate_by_name=True)

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"), serialization_alias="_id")
    sender: MessageSender
    content: str
    created_at: datetime = Field(
        ...,
        validation_alias=AliasChoices("created_at", "createdAt"),
        serialization_alias="createdAt",
    )
    updated_at: datetime = Field(
        ...,
        validation_alias=AliasChoices("updated_at", "updatedAt"),
        serialization_alias="updatedAt",
    )

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite drops tzinfo on the way back out
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict with wire field names."""
        return self.model_dump(mode="json", by_alias=True)


class CreateMessageRequest(StrictRequestModel):
    """Body of POST /api/messages. Content is trimmed and length-checked by the service."""

    content: str


class UpdateMessageRequest(StrictRequestModel):
    """Body of PATCH /api/messages/{id}."""

    content: str


class DeleteMessageResponse(StrictModel):
    success: bool
    message: str


__all__ = [
    "CreateMessageRequest",
    "DeleteMessageResponse",
    "MessageResponse",
    "MessageSender",
    "UpdateMessageRequest",
]
