"""
Data-access shim for the hosted Supabase project.
REST reads/writes go through PostgREST, auth through GoTrue and change
notifications through the realtime socket. Row visibility is decided by the
database policies for whichever bearer token the client carries.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, NoReturn, Optional

import httpx

from leadboard.backend.realtime import ChangeCallback, ChannelHandle, RealtimeClient
from leadboard.config import Settings
from leadboard.core.exceptions import BackendError

logger = logging.getLogger(__name__)


def _error_message(error: Any) -> Optional[str]:
    if isinstance(error, BackendError):
        return error.backend_message
    if isinstance(error, dict):
        return error.get("message") or error.get("msg") or error.get("error_description") or error.get("error")
    if isinstance(error, httpx.HTTPError):
        return str(error) or error.__class__.__name__
    message = getattr(error, "message", None)
    if message:
        return str(message)
    if isinstance(error, Exception):
        return str(error) or None
    return None


class BackendClient:
    """Handle to the database, auth and realtime services of one project."""

    def __init__(
        self,
        settings: Settings,
        http: httpx.AsyncClient | None = None,
        realtime: RealtimeClient | None = None,
        access_token: Optional[str] = None,
    ):
        self.settings = settings
        self.schema = settings.supabase_schema
        self.access_token = access_token
        self._api_key = settings.supabase_anon_key.get_secret_value()
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.http_timeout_seconds,
        )
        self.realtime = realtime or RealtimeClient(
            url=settings.realtime_url,
            api_key=self._api_key,
            access_token=access_token,
            heartbeat_seconds=settings.realtime_heartbeat_seconds,
            events_per_second=settings.realtime_events_per_second,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "BackendClient":
        logger.info("Backend client configured for %s", settings.base_url)
        return cls(settings)

    def for_access_token(self, access_token: Optional[str]) -> "BackendClient":
        """Client acting as the given user. Shares the HTTP pool, owns its own realtime socket."""
        return BackendClient(self.settings, http=self.http, access_token=access_token)

    def _headers(self, write: bool = False) -> Dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self.access_token or self._api_key}",
            "Accept-Profile": self.schema,
        }
        if write:
            headers["Content-Profile"] = self.schema
            headers["Content-Type"] = "application/json"
            headers["Prefer"] = "return=representation"
        return headers

    def report_error(self, error: Any, context: str) -> NoReturn:
        """Log a backend failure and raise it as a BackendError carrying ``context``."""
        logger.error("Supabase error in %s: %s", context, error)
        raise BackendError(context, _error_message(error))

    def _check(self, response: httpx.Response, context: str) -> Any:
        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError:
                self.report_error({"message": "Response body is not valid JSON"}, context)
        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text or response.reason_phrase}
        if not isinstance(body, dict):
            body = {"message": str(body)}
        self.report_error(body, context)

    async def select_all(
        self,
        table: str,
        order_by: Optional[str] = "created_at",
        descending: bool = True,
        match: Optional[Dict[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        params: Dict[str, str] = {"select": "*"}
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        for column, value in (match or {}).items():
            params[column] = f"eq.{value}"
        context = f"select {table}"
        try:
            response = await self.http.get(f"/rest/v1/{table}", params=params, headers=self._headers())
        except httpx.HTTPError as exc:
            self.report_error(exc, context)
        return list(self._check(response, context) or [])

    async def insert(self, table: str, row: Dict[str, Any]) -> list[dict[str, Any]]:
        context = f"insert {table}"
        try:
            response = await self.http.post(f"/rest/v1/{table}", json=row, headers=self._headers(write=True))
        except httpx.HTTPError as exc:
            self.report_error(exc, context)
        return list(self._check(response, context) or [])

    async def update(
        self,
        table: str,
        values: Dict[str, Any],
        match: Dict[str, Any],
    ) -> list[dict[str, Any]]:
        if not match:
            raise ValueError("update requires at least one match column")
        params = {column: f"eq.{value}" for column, value in match.items()}
        context = f"update {table}"
        try:
            response = await self.http.patch(
                f"/rest/v1/{table}",
                params=params,
                json=values,
                headers=self._headers(write=True),
            )
        except httpx.HTTPError as exc:
            self.report_error(exc, context)
        return list(self._check(response, context) or [])

    async def subscribe(
        self,
        table: str,
        on_change: ChangeCallback,
        filter: Optional[str] = None,
    ) -> ChannelHandle:
        return await self.realtime.subscribe(table, on_change, filter=filter, schema=self.schema)

    async def unsubscribe(self, handle: ChannelHandle) -> None:
        await self.realtime.unsubscribe(handle)

    async def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        context = "sign in"
        try:
            response = await self.http.post(
                "/auth/v1/token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
                headers={"apikey": self._api_key, "Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            self.report_error(exc, context)
        return self._check(response, context) or {}

    async def sign_out(self) -> None:
        if not self.access_token:
            return
        context = "sign out"
        try:
            response = await self.http.post(
                "/auth/v1/logout",
                headers={"apikey": self._api_key, "Authorization": f"Bearer {self.access_token}"},
            )
        except httpx.HTTPError as exc:
            self.report_error(exc, context)
        self._check(response, context)

    async def get_user(self) -> dict[str, Any]:
        context = "get user"
        try:
            response = await self.http.get(
                "/auth/v1/user",
                headers={"apikey": self._api_key, "Authorization": f"Bearer {self.access_token or self._api_key}"},
            )
        except httpx.HTTPError as exc:
            self.report_error(exc, context)
        return self._check(response, context) or {}

    async def health(self) -> dict[str, Any]:
        """Return structured reachability details for the REST endpoint."""
        try:
            response = await self.http.get("/rest/v1/", headers=self._headers())
        except httpx.HTTPError as exc:
            return {"ok": False, "error": str(exc) or exc.__class__.__name__}
        return {
            "ok": response.status_code < 500,
            "status_code": response.status_code,
            "realtime_connected": self.realtime.connected,
        }

    async def aclose(self) -> None:
        await self.realtime.close()
        if self._owns_http:
            await self.http.aclose()
