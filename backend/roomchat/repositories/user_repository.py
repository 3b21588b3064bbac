# backend/roomchat/repositories/user_repository.py
"""
User Repository for roomchat

Credential lookups by the unique keys used at login and registration.
"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.user import User
from .base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for user data access."""

    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup by email."""
        try:
            return self.db.query(User).filter(func.lower(User.email) == email.lower()).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting user by email: {str(e)}")
            raise RepositoryException(f"Failed to retrieve user by email: {str(e)}")

    def get_by_username(self, username: str) -> Optional[User]:
        return self.find_one_by(username=username)
