# backend/roomchat/auth_ws.py
"""
Authentication for the realtime WebSocket endpoint.

Browsers cannot attach an Authorization header to a WebSocket upgrade, so
the token is accepted from two places, checked in this order:

1. Query parameter (?token=xxx) - what the browser client sends
2. Authorization: Bearer header - for non-browser clients and tests

The token is validated with the same rule as REST requests (signature and
expiry, see `decode_access_token`). The result is the user id bound to the
connection for its whole lifetime; there is no re-check after admission.
"""

import logging
from typing import Optional

from fastapi import WebSocket
from jwt import PyJWTError

from .auth import decode_access_token
from .core.config import settings
from .core.constants import REALTIME_TOKEN_QUERY_PARAM
from .core.exceptions import ForbiddenException, UnauthorizedException

logger = logging.getLogger(__name__)

REASON_TOKEN_MISSING = "Authentication error: token missing"
REASON_INVALID_TOKEN = "Authentication error: invalid token"
REASON_ORIGIN_REJECTED = "Not allowed by CORS"


def extract_handshake_token(websocket: WebSocket) -> Optional[str]:
    token = websocket.query_params.get(REALTIME_TOKEN_QUERY_PARAM)
    if token:
        return token

    auth_header = websocket.headers.get("authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def authenticate_handshake(websocket: WebSocket) -> str:
    """
    Validate an incoming WebSocket handshake and return the caller's user id.

    Raises:
        ForbiddenException: Origin header present but not in the allow-list
        UnauthorizedException: Token missing, malformed, tampered with or expired
    """
    origin = websocket.headers.get("origin")
    if not settings.is_origin_allowed(origin):
        logger.warning("[REALTIME] Rejected handshake from origin %s", origin)
        raise ForbiddenException(REASON_ORIGIN_REJECTED, code="origin_rejected")

    token = extract_handshake_token(websocket)
    if not token:
        raise UnauthorizedException(REASON_TOKEN_MISSING, code="token_missing")

    try:
        return decode_access_token(token)
    except PyJWTError as e:
        logger.info("[REALTIME] Handshake token rejected: %s", e)
        raise UnauthorizedException(REASON_INVALID_TOKEN, code="invalid_token") from e
