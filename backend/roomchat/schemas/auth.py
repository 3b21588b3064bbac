# backend/roomchat/schemas/auth.py
"""Request and response schemas for registration and login."""

from typing import Annotated

from pydantic import ConfigDict, EmailStr, Field, StringConstraints

from ._strict_base import StrictModel, StrictRequestModel

Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]


class RegisterRequest(StrictRequestModel):
    """New account details. Username and email must both be unused."""

    username: Username
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginRequest(StrictRequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthUserResponse(StrictModel):
    """Public view of a user returned alongside a token."""

    model_config = ConfigDict(extra="forbid", from_attributes=True)

    id: str
    username: str
    email: EmailStr


class AuthResponse(StrictModel):
    """Bearer token plus the user it was issued for."""

    token: str
    user: AuthUserResponse


__all__ = [
    "AuthResponse",
    "AuthUserResponse",
    "LoginRequest",
    "RegisterRequest",
]
