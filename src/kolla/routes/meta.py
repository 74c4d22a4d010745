"""Meta endpoints — health, version, status counts."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from kolla.deps import get_registry
from kolla.registry import AssetRegistry, summarize

VERSION = "0.1.0"

router = APIRouter(prefix="/api/v1", tags=["meta"])


@router.get("/health")
async def health(registry: AssetRegistry = Depends(get_registry)):
    return {
        "status": "ok",
        "service": "kolla",
        "store_available": await registry.store.is_available(),
    }


@router.get("/version")
def version():
    return {"gateway": VERSION}


@router.get("/stats")
async def stats(registry: AssetRegistry = Depends(get_registry)):
    assets = await registry.list()
    return summarize(assets).model_dump()
