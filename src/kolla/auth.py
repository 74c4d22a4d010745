"""Request identity for the Kolla gateway.

API key: empty key = development mode (no auth required), non-empty key
must match the X-API-Key header.

Wallet: the connected principal is read from X-Wallet-Address. A missing
header means no wallet is connected; operations that need one raise
UnauthorizedError themselves.
"""

from __future__ import annotations

from fastapi import Header, HTTPException, Security
from fastapi.security import APIKeyHeader

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def make_api_key_checker(expected_key: str):
    """Return a FastAPI dependency that checks the API key.

    If expected_key is empty, all requests are allowed (development mode).
    """

    async def check_api_key(
        api_key: str | None = Security(_api_key_header),
    ) -> str | None:
        if not expected_key:
            return None
        if api_key != expected_key:
            raise HTTPException(
                status_code=401,
                detail="Invalid or missing API key",
            )
        return api_key

    return check_api_key


async def connected_wallet(
    x_wallet_address: str | None = Header(default=None),
) -> str:
    """The connected wallet address, or "" when none is connected."""
    return (x_wallet_address or "").strip()
