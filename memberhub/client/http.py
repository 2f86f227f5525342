"""Thin async HTTP wrapper around the collection store API."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from memberhub.core.config import Settings, get_settings

from .exceptions import ConnectivityError, StoreRequestError

logger = logging.getLogger(__name__)


class CollectionClient:
    """Translates cache operations into store requests.

    Transport failures, timeouts and 5xx responses raise
    :class:`ConnectivityError`; 4xx responses raise :class:`StoreRequestError`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 15.0,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token = token
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs: Any) -> "CollectionClient":
        settings = settings or get_settings()
        return cls(settings.api_base_url, timeout=settings.request_timeout, **kwargs)

    async def __aenter__(self) -> "CollectionClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, *, json: Any = None, expect_json: bool = True) -> Any:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else None
        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as exc:
            raise ConnectivityError(f"{method} {path} timed out after {self.timeout}s") from exc
        except httpx.TransportError as exc:
            raise ConnectivityError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            detail = _error_detail(response)
            if response.status_code >= 500:
                raise ConnectivityError(f"{method} {path}: {detail}", status_code=response.status_code)
            raise StoreRequestError(f"{method} {path}: {detail}", status_code=response.status_code)

        if not expect_json:
            return None
        if "application/json" not in response.headers.get("content-type", ""):
            raise ConnectivityError(
                f"{method} {path}: expected JSON, got {response.headers.get('content-type') or 'no content type'}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectivityError(f"{method} {path}: undecodable JSON body", status_code=response.status_code) from exc

    async def health(self) -> dict[str, Any]:
        return await self._request("GET", "/health")

    async def bootstrap(self) -> dict[str, Any]:
        data = _data_field("GET /bootstrap", await self._request("GET", "/bootstrap"))
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConnectivityError("GET /bootstrap: data is not an object")
        return data

    async def get_collection(self, name: str) -> Any:
        data = _data_field(f"GET /collections/{name}", await self._request("GET", f"/collections/{name}"))
        return [] if data is None else data

    async def set_collection(self, name: str, data: Any) -> None:
        await self._request("PUT", f"/collections/{name}", json={"data": data}, expect_json=False)

    async def clear_collection(self, name: str) -> None:
        await self._request("DELETE", f"/collections/{name}", expect_json=False)

    async def clear_all(self) -> None:
        await self._request("POST", "/clear", expect_json=False)

    async def import_collections(self, collections: Mapping[str, Any]) -> None:
        await self._request("POST", "/import", json={"collections": dict(collections)}, expect_json=False)

    async def login(self, username: str, password: str) -> dict[str, Any]:
        body = await self._request("POST", "/auth/login", json={"username": username, "password": password})
        self.token = body["token"]
        logger.info("Logged in as %s", username)
        return body["user"]

    async def logout(self) -> None:
        try:
            await self._request("POST", "/auth/logout", expect_json=False)
        finally:
            self.token = None


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body.get("message") or body)
    return str(body)


def _data_field(label: str, body: Any) -> Any:
    if not isinstance(body, dict):
        raise ConnectivityError(f"{label}: response body is not an object")
    return body.get("data")
