# backend/roomchat/services/__init__.py
"""
Service layer for roomchat.

Services hold business rules and own database transactions.
"""

from .auth_service import AuthService
from .base import BaseService
from .message_service import MessageService

__all__ = ["AuthService", "BaseService", "MessageService"]
