"""Signature-gated reveal of an asset's plaintext value.

The owner signs a challenge with their wallet before the value is shown.
This is a consent step in the user flow, not access control: the
signature is never verified and has no bearing on decoding. Anyone holding
the token can decode it without signing (see kolla.codec).
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Protocol

from kolla.codec import ValueCodec
from kolla.errors import UnauthorizedError
from kolla.models import Asset

logger = logging.getLogger("kolla.reveal")

PUBLIC_KEY_HEX_CHARS = 2000
DEFAULT_DURATION_DAYS = 30


class Signer(Protocol):
    async def sign_message(self, message: str) -> str: ...


class PresentedSignature:
    """A signature the wallet already produced over the session challenge.

    Used when signing happens on the client and only the result reaches us.
    An empty signature counts as the user declining.
    """

    def __init__(self, signature: str) -> None:
        self.signature = signature

    async def sign_message(self, message: str) -> str:
        if not self.signature:
            raise PermissionError("user rejected signature request")
        return self.signature


def _session_public_key() -> str:
    return "0x" + secrets.token_hex(PUBLIC_KEY_HEX_CHARS // 2)


@dataclass(frozen=True)
class RevealSession:
    """Parameters embedded in every challenge for one client session."""

    contract_address: str
    chain_id: int
    start_timestamp: int
    duration_days: int = DEFAULT_DURATION_DAYS
    public_key: str = field(default_factory=_session_public_key)

    @classmethod
    def start(
        cls,
        contract_address: str,
        chain_id: int,
        duration_days: int = DEFAULT_DURATION_DAYS,
    ) -> RevealSession:
        return cls(
            contract_address=contract_address,
            chain_id=chain_id,
            start_timestamp=int(time.time()),
            duration_days=duration_days,
        )

    def challenge(self) -> str:
        return (
            f"publickey:{self.public_key}\n"
            f"contractAddresses:{self.contract_address}\n"
            f"contractsChainId:{self.chain_id}\n"
            f"startTimestamp:{self.start_timestamp}\n"
            f"durationDays:{self.duration_days}"
        )


class RevealProtocol:
    def __init__(self, session: RevealSession, codec: ValueCodec | None = None) -> None:
        self.session = session
        self.codec = codec or ValueCodec()

    async def reveal(self, asset: Asset, signer: Signer | None) -> float | None:
        """Plaintext value of ``asset`` once ``signer`` signs the challenge.

        Returns None when signing fails or is declined.
        """
        if signer is None:
            raise UnauthorizedError("Connect a wallet before revealing a value")
        try:
            await signer.sign_message(self.session.challenge())
        except Exception:
            logger.exception("Signature for asset %s not obtained", asset.id)
            return None
        return self.codec.decode(asset.encoded_value)
