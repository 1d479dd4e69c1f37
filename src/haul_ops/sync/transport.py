"""HTTP transport from the offline queue to the sync endpoints."""

from __future__ import annotations

import logging
import threading
from typing import Any, Protocol, runtime_checkable

import httpx

from haul_ops.sync.config import SyncEndpointConfig
from haul_ops.sync.payloads import SyncType

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """Raised when a sync request fails (network or server side)."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message if status_code is None else f"{status_code}: {message}")


@runtime_checkable
class SyncTransport(Protocol):
    """Sends queued writes to the store."""

    async def send(self, sync_type: SyncType, data: dict[str, Any]) -> None:
        """Send one record, raising SyncError on failure."""
        ...

    async def send_batch(self, sync_type: SyncType, items: list[dict[str, Any]]) -> int:
        """Send records in one request, returning the stored count."""
        ...

    def beacon(self, sync_type: SyncType, items: list[dict[str, Any]]) -> None:
        """Fire-and-forget batch send. Never waits for or reports a response."""
        ...


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body)
    return str(body)


class HttpSyncTransport:
    """httpx-based transport for the /sync and /sync/batch endpoints."""

    def __init__(
        self,
        config: SyncEndpointConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self._owns_client = client is None
        self._request_options: dict[str, Any] = {}
        if config.timeout_seconds is not None:
            self._request_options["timeout"] = config.timeout_seconds
        self._client = client or httpx.AsyncClient()

    async def _post(self, url: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.post(url, json=body, **self._request_options)
        except httpx.HTTPError as e:
            raise SyncError(str(e) or e.__class__.__name__) from e
        if response.is_error:
            raise SyncError(_error_message(response), response.status_code)
        try:
            return response.json()
        except ValueError:
            return {}

    async def send(self, sync_type: SyncType, data: dict[str, Any]) -> None:
        await self._post(self.config.sync_url, {"type": sync_type.value, "data": data})

    async def send_batch(self, sync_type: SyncType, items: list[dict[str, Any]]) -> int:
        body = await self._post(
            self.config.batch_url,
            {"type": sync_type.value, "data": items},
        )
        return int(body.get("count", len(items)))

    def beacon(self, sync_type: SyncType, items: list[dict[str, Any]]) -> None:
        if not items:
            return
        body = {"type": sync_type.value, "data": items}
        thread = threading.Thread(
            target=self._post_and_forget,
            args=(self.config.batch_url, body),
            name="sync-beacon",
            daemon=True,
        )
        thread.start()

    def _post_and_forget(self, url: str, body: dict[str, Any]) -> None:
        try:
            httpx.post(url, json=body, timeout=self.config.timeout_seconds or 5.0)
        except httpx.HTTPError:
            logger.exception("Beacon to %s failed", url)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
