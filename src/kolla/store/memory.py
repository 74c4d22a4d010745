"""In-process store for tests and local development."""

from __future__ import annotations

import asyncio
from itertools import count

from kolla.errors import TransactionFailedError
from kolla.store.interface import AssetStore


class MemoryStore(AssetStore):
    """Dict-backed store.

    Each call yields to the event loop once before touching the data, so
    concurrent callers interleave the way they would against a remote store.
    ``reject_writes`` makes every write fail as if the user refused to sign.
    """

    def __init__(self, data: dict[str, bytes] | None = None, available: bool = True):
        self.data: dict[str, bytes] = dict(data or {})
        self.available = available
        self.reject_writes = False
        self.writes: list[str] = []
        self._tx_counter = count(1)

    async def is_available(self) -> bool:
        await asyncio.sleep(0)
        return self.available

    async def get_data(self, key: str) -> bytes:
        await asyncio.sleep(0)
        return self.data.get(key, b"")

    async def set_data(self, key: str, value: bytes) -> str:
        await asyncio.sleep(0)
        if self.reject_writes:
            raise TransactionFailedError("user rejected transaction", user_rejected=True)
        self.data[key] = bytes(value)
        self.writes.append(key)
        return f"0x{next(self._tx_counter):064x}"
