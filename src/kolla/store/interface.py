"""The key-value store that holds asset records.

The store is a document store behind a contract: byte values under string
keys. Kolla relies on two kinds of key:

    asset_keys      JSON array of asset ids, append-only
    asset_<id>      JSON object {value, gameName, assetType, timestamp,
                    owner, status}

Empty bytes from ``get_data`` means the key is absent.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

INDEX_KEY = "asset_keys"
RECORD_PREFIX = "asset_"


def record_key(asset_id: str) -> str:
    return f"{RECORD_PREFIX}{asset_id}"


class AssetStore(ABC):
    """Asynchronous key-value persistence."""

    @abstractmethod
    async def is_available(self) -> bool: ...

    @abstractmethod
    async def get_data(self, key: str) -> bytes: ...

    @abstractmethod
    async def set_data(self, key: str, value: bytes) -> str:
        """Write a value and return the transaction id.

        Raises TransactionFailedError when the write is rejected or fails.
        """

    async def close(self) -> None:
        return None
