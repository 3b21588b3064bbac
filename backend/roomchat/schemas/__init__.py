"""
Pydantic schemas for roomchat request and response bodies.
"""

from .auth import AuthResponse, AuthUserResponse, LoginRequest, RegisterRequest
from .message import (
    CreateMessageRequest,
    DeleteMessageResponse,
    MessageResponse,
    MessageSender,
    UpdateMessageRequest,
)

__all__ = [
    "AuthResponse",
    "AuthUserResponse",
    "CreateMessageRequest",
    "DeleteMessageResponse",
    "LoginRequest",
    "MessageResponse",
    "MessageSender",
    "RegisterRequest",
    "UpdateMessageRequest",
]
