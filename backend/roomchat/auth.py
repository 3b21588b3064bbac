import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
import jwt
from jwt import PyJWTError
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .core.config import settings
from .database import get_db
from .models.user import User
from .repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Pre-computed bcrypt hash for timing attack prevention.
# Used when user doesn't exist to prevent timing-based user enumeration.
DUMMY_HASH_FOR_TIMING_ATTACK = "$2b$12$LQv3c1yqBWVHxkd0LHAkCOYz6TtxMQJqhN8/X4.V4ferVKnNaOuJi"

# Dedicated thread pool for CPU-bound password operations
_password_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="bcrypt_")
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _secret_value(secret_obj: Any) -> str:
    getter = getattr(secret_obj, "get_secret_value", None)
    if callable(getter):
        return cast(str, getter())
    return cast(str, secret_obj)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password
        hashed_password: The hashed password to compare against

    Returns:
        bool: True if password matches, False otherwise
    """
    try:
        return bool(pwd_context.verify(plain_password, hashed_password))
    except Exception as e:
        logger.error(f"Error verifying password: {str(e)}")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    return str(pwd_context.hash(password))


async def verify_password_async(plain_password: str, hashed_password: str) -> bool:
    """
    Non-blocking password verification using thread pool.

    Runs bcrypt in a separate thread so the event loop keeps serving
    realtime connections while a login is being checked.
    """
    loop = asyncio.get_running_loop()
    try:
        result = await loop.run_in_executor(
            _password_executor,
            pwd_context.verify,
            plain_password,
            hashed_password,
        )
        return bool(result)
    except Exception as e:
        logger.error(f"Error verifying password async: {str(e)}")
        return False


async def get_password_hash_async(password: str) -> str:
    """Non-blocking password hashing using thread pool."""
    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(
        _password_executor,
        pwd_context.hash,
        password,
    )
    return str(result)


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT carrying the user id as `sub`.

    Args:
        user_id: Id of the user the token is issued for
        expires_delta: Optional override of the configured lifetime

    Returns:
        str: The encoded JWT token
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    now = datetime.now(timezone.utc)
    to_encode: Dict[str, Any] = {"sub": user_id, "iat": now, "exp": now + expires_delta}

    encoded_jwt = cast(
        str,
        jwt.encode(
            to_encode,
            _secret_value(settings.secret_key),
            algorithm=settings.algorithm,
        ),
    )

    logger.info(f"Created access token for user: {user_id}")
    return encoded_jwt


def decode_access_token(token: str) -> str:
    """
    Validate signature and expiry and return the user id.

    This is the single rule shared by REST requests and the realtime
    handshake.

    Raises:
        PyJWTError: If the token is malformed, tampered with, expired or has no subject
    """
    payload = cast(
        Dict[str, Any],
        jwt.decode(
            token,
            _secret_value(settings.secret_key),
            algorithms=[settings.algorithm],
            options={"require": ["exp", "sub"]},
        ),
    )
    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise jwt.InvalidTokenError("Token subject must be a non-empty string")
    return user_id


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme_optional),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency to get the current authenticated user from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid, expired, or
            names a user that no longer exists
    """
    not_authenticated = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
    invalid_credentials = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise not_authenticated

    try:
        user_id = decode_access_token(token)
    except PyJWTError as e:
        logger.warning(f"JWT validation error: {str(e)}")
        raise invalid_credentials

    user = UserRepository(db).get_by_id(user_id, load_relationships=False)
    if user is None:
        logger.warning(f"Token subject {user_id} does not match any user")
        raise invalid_credentials

    logger.debug(f"Successfully validated token for user: {user_id}")
    return user
