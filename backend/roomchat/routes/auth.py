# backend/roomchat/routes/auth.py
"""
Authentication routes.

    POST /api/auth/register - Create an account and return a token
    POST /api/auth/login    - Exchange email and password for a token
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.constants import ERROR_INVALID_CREDENTIALS
from ..core.exceptions import DomainException, ValidationException
from ..database import get_db
from ..schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from ..services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid input, or username/email already registered"}},
)
async def register(
    payload: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Register a new user and log them in."""
    try:
        user = await auth_service.register_user(payload.username, payload.email, payload.password)
        return auth_service.issue_token(user)
    except DomainException as e:
        logger.info(f"Registration rejected: {e.message}")
        raise e.to_http_exception()
    except Exception as e:
        logger.error(f"Registration failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Registration failed"
        )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={400: {"description": "Invalid credentials"}},
)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Log in with email and password."""
    try:
        user = await auth_service.authenticate_user(payload.email, payload.password)
    except Exception as e:
        logger.error(f"Login failed: {str(e)}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Login failed")

    if user is None:
        raise ValidationException(
            ERROR_INVALID_CREDENTIALS, code="invalid_credentials"
        ).to_http_exception()

    return auth_service.issue_token(user)
