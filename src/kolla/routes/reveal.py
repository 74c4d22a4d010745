"""Reveal endpoints — session challenge and signed reveal."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from kolla.auth import connected_wallet
from kolla.deps import get_registry, get_reveal
from kolla.models import RevealRequest
from kolla.registry import AssetRegistry
from kolla.reveal import PresentedSignature, RevealProtocol

router = APIRouter(prefix="/api/v1", tags=["reveal"])


@router.get("/reveal/challenge")
def challenge(reveal: RevealProtocol = Depends(get_reveal)):
    return {"message": reveal.session.challenge()}


@router.post("/assets/{asset_id}/reveal")
async def reveal_asset(
    asset_id: str,
    body: RevealRequest,
    wallet: str = Depends(connected_wallet),
    registry: AssetRegistry = Depends(get_registry),
    reveal: RevealProtocol = Depends(get_reveal),
):
    asset = await registry.get(asset_id)
    signer = PresentedSignature(body.signature) if wallet else None
    value = await reveal.reveal(asset, signer)
    if value is None:
        raise HTTPException(status_code=403, detail="Signature declined")
    return {"id": asset.id, "value": value}
