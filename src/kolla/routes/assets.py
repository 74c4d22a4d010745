"""Asset endpoints — submit, list, review."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from kolla.auth import connected_wallet
from kolla.deps import get_registry
from kolla.models import Asset, AssetStatus, AssetSubmission
from kolla.registry import AssetRegistry, filter_assets

router = APIRouter(prefix="/api/v1/assets", tags=["assets"])


def _dump(asset: Asset) -> dict:
    return asset.model_dump(mode="json", by_alias=True)


@router.get("")
async def list_assets(
    search: str = Query(""),
    status: AssetStatus | None = Query(None),
    registry: AssetRegistry = Depends(get_registry),
):
    assets = await registry.list()
    return [_dump(a) for a in filter_assets(assets, search, status)]


@router.get("/{asset_id}")
async def get_asset(asset_id: str, registry: AssetRegistry = Depends(get_registry)):
    return _dump(await registry.get(asset_id))


@router.post("", status_code=201)
async def submit_asset(
    submission: AssetSubmission,
    wallet: str = Depends(connected_wallet),
    registry: AssetRegistry = Depends(get_registry),
):
    asset = await registry.create(
        wallet, submission.game_name, submission.asset_type, submission.value
    )
    return _dump(asset)


@router.post("/{asset_id}/approve")
async def approve_asset(
    asset_id: str,
    wallet: str = Depends(connected_wallet),
    registry: AssetRegistry = Depends(get_registry),
):
    return _dump(await registry.approve(asset_id, wallet))


@router.post("/{asset_id}/reject")
async def reject_asset(
    asset_id: str,
    wallet: str = Depends(connected_wallet),
    registry: AssetRegistry = Depends(get_registry),
):
    return _dump(await registry.reject(asset_id, wallet))
