"""State behind the single page: session check, login/register form, admin data table."""

from __future__ import annotations

from typing import Any, Literal

from sorinb.client.api import ApiClient, ApiError
from sorinb.client.tracker import Position

# Bucharest; shown until the first position arrives.
DEFAULT_MAP_CENTER = (44.4268, 26.1025)

AuthMode = Literal["login", "register"]


class Shell:
    """View model mirroring what the page renders. Every call updates flags, never raises ApiError."""

    def __init__(self, api: ApiClient) -> None:
        self.api = api
        self.auth_user: dict[str, Any] | None = None
        self.auth_loading = True
        self.auth_error: str | None = None
        self.auth_mode: AuthMode = "login"
        self.db_data: dict[str, Any] | None = None
        self.loading = True
        self.error: str | None = None

    @property
    def token(self) -> str:
        """Session token held by the client; empty when signed out."""
        return self.api.token

    @property
    def is_admin(self) -> bool:
        return bool(self.auth_user) and self.auth_user.get("role") == "admin"

    def set_auth_mode(self, mode: AuthMode) -> None:
        if mode not in ("login", "register"):
            raise ValueError(f"Unknown auth mode: {mode!r}")
        self.auth_mode = mode
        self.auth_error = None

    async def fetch_me(self) -> None:
        self.auth_loading = True
        self.auth_error = None
        try:
            self.auth_user = await self.api.me()
        except ApiError as e:
            self.auth_error = e.message
            self.auth_user = None
        finally:
            self.auth_loading = False

    async def submit_auth(self, email: str, password: str) -> bool:
        """Login or register depending on auth_mode; loads the table for admins."""
        self.auth_error = None
        try:
            if self.auth_mode == "register":
                data = await self.api.register(email, password)
            else:
                data = await self.api.login(email, password)
        except ApiError as e:
            self.auth_error = e.message
            return False
        self.auth_user = data.get("user")
        await self._sync_data()
        return True

    async def logout(self) -> None:
        await self.api.logout()
        self.auth_user = None
        self.db_data = None

    async def fetch_data(self) -> None:
        self.loading = True
        self.error = None
        try:
            self.db_data = await self.api.get_data()
        except ApiError as e:
            if e.status_code in (401, 403):
                self.error = "Not authorized (admin only)."
            else:
                self.error = e.message
        finally:
            self.loading = False

    async def _sync_data(self) -> None:
        if self.is_admin:
            await self.fetch_data()
        else:
            self.loading = False
            self.db_data = None

    async def refresh(self) -> None:
        """Page load: who am I, then the table if admin."""
        await self.fetch_me()
        await self._sync_data()

    def table(self) -> tuple[list[str], list[dict[str, Any]]]:
        """Columns come from the first row's keys."""
        rows = self.db_data.get("data") if self.db_data else None
        if not isinstance(rows, list):
            return [], []
        columns = list(rows[0].keys()) if rows and isinstance(rows[0], dict) else []
        return columns, rows

    @staticmethod
    def map_center(position: Position | None) -> tuple[float, float]:
        if position is not None:
            return (position.lat, position.lng)
        return DEFAULT_MAP_CENTER
