# backend/roomchat/models/message.py
"""
Message model for the shared chat room.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship
import ulid

from ..core.constants import MESSAGE_MAX_LENGTH
from ..database import Base


class Message(Base):
    """
    A chat message posted to the room.

    sender_id is fixed at creation; only content changes afterwards.
    """

    __tablename__ = "messages"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    sender_id = Column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content = Column(String(MESSAGE_MAX_LENGTH), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    sender = relationship("User", foreign_keys=[sender_id], back_populates="messages")
