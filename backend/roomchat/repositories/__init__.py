# backend/roomchat/repositories/__init__.py
"""
Repository layer for roomchat.

Repositories own data access; services own transactions.
"""

from .base_repository import BaseRepository
from .message_repository import MessageRepository
from .user_repository import UserRepository

__all__ = ["BaseRepository", "MessageRepository", "UserRepository"]
