# backend/roomchat/services/auth_service.py
"""
Authentication Service for roomchat

Registers users, checks credentials, and issues bearer tokens.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import (
    DUMMY_HASH_FOR_TIMING_ATTACK,
    create_access_token,
    get_password_hash_async,
    verify_password_async,
)
from ..core.exceptions import ConflictException, RepositoryException
from ..models.user import User
from ..repositories.user_repository import UserRepository
from ..schemas.auth import AuthResponse, AuthUserResponse
from .base import BaseService

logger = logging.getLogger(__name__)


class AuthService(BaseService):
    """Service for account registration and login."""

    def __init__(self, db: Session, user_repository: Optional[UserRepository] = None):
        super().__init__(db)
        self.user_repository = user_repository or UserRepository(db)

    @BaseService.measure_operation("register_user")
    async def register_user(self, username: str, email: str, password: str) -> User:
        """
        Create a new account.

        Raises:
            ConflictException: If the username or email is already registered
        """
        email = email.lower()
        if self.user_repository.get_by_username(username) is not None:
            raise ConflictException("Username already registered", code="username_taken")
        if self.user_repository.get_by_email(email) is not None:
            raise ConflictException("Email already registered", code="email_taken")

        hashed_password = await get_password_hash_async(password)

        try:
            with self.transaction():
                user = self.user_repository.create(
                    username=username,
                    email=email,
                    hashed_password=hashed_password,
                )
        except RepositoryException as e:
            if not isinstance(e.__cause__, IntegrityError):
                raise
            # A concurrent registration took the username or email first
            self.logger.warning(f"Integrity error registering user {username}: {e}")
            if self.user_repository.exists(username=username):
                raise ConflictException("Username already registered", code="username_taken")
            raise ConflictException("Email already registered", code="email_taken")

        self.db.refresh(user)
        self.log_operation("register_user", user_id=user.id)
        return user

    @BaseService.measure_operation("authenticate_user")
    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Return the user when the password matches, otherwise None.

        Unknown emails are still checked against a dummy hash so both
        failure modes take the same time.
        """
        user = self.user_repository.get_by_email(email)
        if user is None:
            await verify_password_async(password, DUMMY_HASH_FOR_TIMING_ATTACK)
            logger.info("Login failed: unknown email")
            return None

        if not await verify_password_async(password, user.hashed_password):
            logger.info(f"Login failed: bad password for user {user.id}")
            return None

        return user

    def issue_token(self, user: User) -> AuthResponse:
        """Build the login/registration response for a user."""
        return AuthResponse(
            token=create_access_token(user.id),
            user=AuthUserResponse.model_validate(user),
        )
