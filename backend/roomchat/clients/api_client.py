"""HTTP client for the roomchat REST API."""

from __future__ import annotations

import logging
from typing import Any

import httpx


class ChatClientError(Exception):
    """Base error for REST request failures."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ChatAuthError(ChatClientError):
    """Raised when the API rejects the bearer token (401)."""


class ChatForbiddenError(ChatClientError):
    """Raised when the caller does not own the message (403)."""


class ChatNotFoundError(ChatClientError):
    """Raised when the message does not exist (404)."""


class ChatValidationError(ChatClientError):
    """Raised for rejected input: bad content, duplicate account, bad credentials (400)."""


class ChatConnectionError(ChatClientError):
    """Raised when the API cannot be reached."""


class ChatRequestError(ChatClientError):
    """Raised for any other error status."""


logger = logging.getLogger(__name__)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        detail = body.get("detail")
        if isinstance(detail, str) and detail:
            return detail
    return f"HTTP {response.status_code}"


class ChatApiClient:
    """Thin async wrapper over the REST endpoints. Holds the bearer token once logged in."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: str | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.token = token
        self.http = http or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(connect=5.0, read=15.0, write=5.0, pool=5.0),
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    async def call(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> Any:
        headers: dict[str, str] = {}
        if authenticated:
            if not self.token:
                raise ChatAuthError("not_logged_in")
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self.http.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as exc:
            raise ChatConnectionError(f"api_timeout: Request to {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise ChatConnectionError(f"api_connection_failed: {exc}") from exc

        status = response.status_code
        if status >= 400:
            detail = _error_detail(response)
            logger.debug("API %s %s failed with %s: %s", method, path, status, detail)
            if status == 400:
                raise ChatValidationError(detail, status)
            if status == 401:
                raise ChatAuthError(detail, status)
            if status == 403:
                raise ChatForbiddenError(detail, status)
            if status == 404:
                raise ChatNotFoundError(detail, status)
            raise ChatRequestError(detail, status)

        return response.json()

    async def register(self, username: str, email: str, password: str) -> dict:
        result = await self.call(
            "POST",
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
            authenticated=False,
        )
        self.token = result["token"]
        return result

    async def login(self, email: str, password: str) -> dict:
        result = await self.call(
            "POST",
            "/api/auth/login",
            json={"email": email, "password": password},
            authenticated=False,
        )
        self.token = result["token"]
        return result

    async def list_messages(self) -> list[dict]:
        return await self.call("GET", "/api/messages")

    async def create_message(self, content: str) -> dict:
        return await self.call("POST", "/api/messages", json={"content": content})

    async def update_message(self, message_id: str, content: str) -> dict:
        return await self.call("PATCH", f"/api/messages/{message_id}", json={"content": content})

    async def delete_message(self, message_id: str) -> dict:
        return await self.call("DELETE", f"/api/messages/{message_id}")
