# backend/roomchat/models/user.py
"""
User model for roomchat.

Users are the credential records behind bearer tokens and the foreign key
target of every message's sender.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class User(Base):
    """
    Registered chat user.

    Attributes:
        id: ULID primary key, carried as the `sub` claim of access tokens
        username: Unique display name shown next to messages
        email: Unique login identifier
        hashed_password: Bcrypt hash of the password
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    messages = relationship(
        "Message", back_populates="sender", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<User {self.username}>"
