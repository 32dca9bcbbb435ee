# src/bulk_outreach/api/client.py

"""
HTTP implementation of the JobService port.

Every request carries the stored API token. A 401 clears the credential store
and fires the on_unauthorized hook (the CLI uses it to tell the user to log in
again) before AuthenticationError propagates to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Mapping

import httpx

from ..core.errors import (
    AuthenticationError,
    JobServiceHTTPError,
    MalformedResponseError,
    TransportError,
)
from ..core.ports import Credentials
from ..tasks.task_models import SnapshotError, TaskKind, TaskSnapshot

logger = logging.getLogger(__name__)


_ROUTES: dict[TaskKind, tuple[str, str]] = {
    TaskKind.DISCOVERY: ("/domain-discovery/initiate/", "/domain-discovery/status/{task_id}/"),
    TaskKind.SCRAPING: ("/scraper/initiate/", "/scraper/status/{task_id}/"),
}


def _error_message(response: httpx.Response) -> str:
    """Best-effort: pull a human message out of an error response body."""
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        for key in ("error", "detail", "message"):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        # Field validation errors: {"field": ["msg", ...]}
        for field_name, value in data.items():
            if isinstance(value, list) and value and isinstance(value[0], str):
                return f"{field_name}: {value[0]}"

    return f"HTTP {response.status_code}"


def make_timeout(connect_s: float, read_s: float) -> httpx.Timeout:
    return httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s)


class JobServiceClient:
    def __init__(
        self,
        base_url: str,
        credentials: Credentials,
        *,
        auth_scheme: str = "Token",
        timeout: httpx.Timeout | float | None = None,
        on_unauthorized: Callable[[], None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.credentials = credentials
        self.auth_scheme = auth_scheme
        self.on_unauthorized = on_unauthorized
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            timeout=timeout if timeout is not None else make_timeout(5.0, 30.0),
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Any,
        credentials: Credentials,
        *,
        on_unauthorized: Callable[[], None] | None = None,
    ) -> JobServiceClient:
        return cls(
            settings.api_base_url,
            credentials,
            auth_scheme=settings.auth_scheme,
            timeout=make_timeout(settings.connect_timeout_seconds, settings.read_timeout_seconds),
            on_unauthorized=on_unauthorized,
        )

    async def __aenter__(self) -> JobServiceClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ---- JobService port ----

    async def initiate(self, kind: TaskKind, params: Mapping[str, Any]) -> TaskSnapshot:
        initiate_path, _ = _ROUTES[kind]
        data = await self._request("POST", initiate_path, json=dict(params))
        snapshot = self._snapshot(kind, data)
        logger.info("Initiated %s task %s (status=%s)", kind.value, snapshot.id, snapshot.status.value)
        return snapshot

    async def get_status(self, kind: TaskKind, task_id: str) -> TaskSnapshot:
        _, status_path = _ROUTES[kind]
        data = await self._request("GET", status_path.format(task_id=task_id))
        return self._snapshot(kind, data)

    # ---- Auth ----

    async def login(self, username: str, password: str) -> dict[str, Any]:
        data = await self._request("POST", "/auth/login/", json={"username": username, "password": password})
        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise MalformedResponseError("login response has no token")

        user = {"id": data.get("user_id"), "username": data.get("username"), "email": data.get("email")}
        self.credentials.set(token, user)
        logger.info("Logged in as %s", user.get("username") or username)
        return user

    async def logout(self) -> None:
        try:
            await self._request("POST", "/auth/logout/")
        finally:
            self.credentials.clear()

    # ---- internals ----

    def _headers(self) -> dict[str, str]:
        token = self.credentials.token
        if not token:
            return {}
        return {"Authorization": f"{self.auth_scheme} {token}"}

    async def _request(self, method: str, path: str, *, json: Any = None) -> Any:
        try:
            response = await self._http.request(method, path, json=json, headers=self._headers())
        except httpx.TransportError as exc:
            raise TransportError(f"{method} {path} failed: {exc.__class__.__name__}: {exc}") from exc

        if response.status_code == 401:
            logger.warning("%s %s -> 401; clearing credentials", method, path)
            self.credentials.clear()
            if self.on_unauthorized is not None:
                try:
                    self.on_unauthorized()
                except Exception:
                    logger.exception("on_unauthorized hook failed")
            raise AuthenticationError(401, _error_message(response))

        if response.is_error:
            raise JobServiceHTTPError(response.status_code, _error_message(response))

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"{method} {path} returned non-JSON body") from exc

    @staticmethod
    def _snapshot(kind: TaskKind, data: Any) -> TaskSnapshot:
        try:
            return TaskSnapshot.from_payload(kind, data)
        except MalformedResponseError:
            raise
        except SnapshotError as exc:
            raise MalformedResponseError(str(exc)) from exc
