"""httpx client for a remote key-value document service.

Endpoints
---------
- GET {base}/available        -> {"available": bool}
- GET {base}/data/{key}       -> raw bytes; 404 or empty body = absent
                                 (keys are percent-encoded, "/" included)
- PUT {base}/data/{key}       body: raw bytes -> {"tx": "0x..."}

A 403 on write, or an error body mentioning "user rejected", means the
signer refused the transaction. No retries: every failure is returned to
the caller.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from kolla.errors import (
    USER_REJECTED_MARKER,
    StoreUnavailableError,
    TransactionFailedError,
)
from kolla.store.interface import AssetStore

logger = logging.getLogger("kolla.store.http")


def _data_path(key: str) -> str:
    return "/data/" + quote(key, safe="")


class HttpStore(AssetStore):
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def is_available(self) -> bool:
        try:
            r = await self._client.get("/available")
            r.raise_for_status()
            return bool(r.json().get("available", False))
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Store at %s unavailable: %s", self.base_url, exc)
            return False

    async def get_data(self, key: str) -> bytes:
        try:
            r = await self._client.get(_data_path(key))
        except httpx.HTTPError as exc:
            raise StoreUnavailableError(f"Reading {key} failed: {exc}") from exc
        if r.status_code == 404:
            return b""
        if r.is_error:
            raise StoreUnavailableError(f"Reading {key} failed: HTTP {r.status_code}")
        return r.content

    async def set_data(self, key: str, value: bytes) -> str:
        try:
            r = await self._client.put(
                _data_path(key),
                content=value,
                headers={"Content-Type": "application/octet-stream"},
            )
        except httpx.HTTPError as exc:
            raise TransactionFailedError(str(exc) or type(exc).__name__) from exc

        if r.status_code == 403 or USER_REJECTED_MARKER in r.text.lower():
            raise TransactionFailedError(r.text, user_rejected=True)
        if r.is_error:
            raise TransactionFailedError(f"HTTP {r.status_code}: {r.text}")
        tx = r.json().get("tx", "")
        logger.debug("Wrote %s (tx %s)", key, tx)
        return tx

    async def close(self) -> None:
        await self._client.aclose()
