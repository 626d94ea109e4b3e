"""Async HTTP client for the SorinB API (what the web frontend calls)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from sorinb.client.tracker import Position

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 15.0


class ApiError(Exception):
    """Non-2xx response or transport failure. status_code is None for transport errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    text = resp.text.strip()
    return f"HTTP {resp.status_code} {resp.reason_phrase} {text}".strip()


class ApiClient:
    """
    Thin wrapper over httpx.AsyncClient.

    The client keeps the auth cookie in its jar and also sends the token as a
    Bearer header, for setups where cookies are blocked.
    """

    def __init__(
        self,
        api_base: str = "",
        token: str = "",
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.token = token
        self._client = client or httpx.AsyncClient(base_url=self.api_base, timeout=timeout)
        self._owns_client = client is None

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body; raise ApiError otherwise."""
        try:
            resp = await self._client.request(
                method, path, json=json, params=params, headers=self._headers()
            )
        except httpx.HTTPError as e:
            raise ApiError(f"Network error: {e}") from e
        if resp.status_code >= 400:
            raise ApiError(_error_message(resp), resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError("Invalid JSON response", resp.status_code) from e

    def _remember_token(self, data: Any) -> None:
        token = data.get("token") if isinstance(data, dict) else None
        if isinstance(token, str) and token:
            self.token = token

    async def me(self) -> dict[str, Any] | None:
        """Current user, or None when not signed in (401)."""
        try:
            data = await self.request("GET", "/api/auth/me")
        except ApiError as e:
            if e.status_code == 401:
                return None
            raise ApiError(f"Session check failed: {e.message}", e.status_code) from e
        return data.get("user")

    async def register(self, email: str, password: str) -> dict[str, Any]:
        data = await self.request("POST", "/api/auth/register", json={"email": email, "password": password})
        self._remember_token(data)
        return data

    async def login(self, email: str, password: str) -> dict[str, Any]:
        data = await self.request("POST", "/api/auth/login", json={"email": email, "password": password})
        self._remember_token(data)
        return data

    async def logout(self) -> None:
        """Best effort: the local token and cookies are dropped even if the call fails."""
        try:
            await self.request("POST", "/api/auth/logout")
        except ApiError as e:
            logger.debug("Logout request failed: %s", e)
        finally:
            self.token = ""
            self._client.cookies.clear()

    async def get_data(self) -> dict[str, Any]:
        return await self.request("GET", "/api/data")

    async def save_location(self, position: Position) -> dict[str, Any]:
        try:
            return await self.request("POST", "/api/locations", json=position.to_payload())
        except ApiError as e:
            if e.status_code == 401:
                raise ApiError("Please login first to save locations.", 401) from e
            raise

    async def list_locations(self, limit: int | None = None) -> dict[str, Any]:
        params = {"limit": limit} if limit is not None else None
        return await self.request("GET", "/api/locations", params=params)

    async def send_gps(self, position: Position) -> dict[str, Any]:
        """Anonymous ingestion; the reading is stored without a user."""
        return await self.request("POST", "/gps", json=position.to_payload())

    async def run_query(self, query: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        return await self.request("POST", "/api/query", json={"query": query, "params": params or {}})

    async def list_users(self) -> dict[str, Any]:
        return await self.request("GET", "/api/admin/users")

    async def update_user(
        self,
        user_id: int,
        email: str | None = None,
        role: str | None = None,
        password: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if email is not None:
            body["email"] = email
        if role is not None:
            body["role"] = role
        if password:
            body["password"] = password
        return await self.request("PUT", f"/api/admin/users/{user_id}", json=body)

    async def delete_user(self, user_id: int) -> dict[str, Any]:
        return await self.request("DELETE", f"/api/admin/users/{user_id}")
