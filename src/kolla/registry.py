"""The asset registry: sole writer of asset records and the index.

Review states:

    pending --approve--> approved   (terminal)
    pending --reject---> rejected   (terminal)

Creating an asset is a two-phase write. Phase 1 stores the record, phase 2
appends its id to the index. Nothing locks across the two phases, and
concurrent writers are last-writer-wins on both the index and individual
records. If phase 2 fails the record exists but is unlisted until
``commit_index`` is called for it; ``list`` tolerates the reverse case of
an index entry with no readable record.
"""

from __future__ import annotations

import json
import logging
import math
import time
import uuid
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from kolla import transform
from kolla.codec import ValueCodec
from kolla.errors import (
    FormatError,
    InvalidAssetError,
    InvalidTransitionError,
    NotFoundError,
    TransactionFailedError,
    UnauthorizedError,
)
from kolla.models import Asset, AssetStats, AssetStatus
from kolla.store.interface import INDEX_KEY, AssetStore, record_key

logger = logging.getLogger("kolla.registry")


def new_asset_id() -> str:
    """Opaque id: creation time in milliseconds plus a uuid4."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex}"


def _same_principal(a: str, b: str) -> bool:
    return a.lower() == b.lower()


def _parse_index(raw: bytes) -> list[str]:
    if not raw or not raw.strip():
        return []
    try:
        ids = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise FormatError("Asset index is not valid JSON") from exc
    if not isinstance(ids, list):
        raise FormatError("Asset index is not a JSON array")
    return [str(i) for i in ids]


class AssetRegistry:
    def __init__(self, store: AssetStore, codec: ValueCodec | None = None) -> None:
        self.store = store
        self.codec = codec or ValueCodec()
        self._assets: dict[str, Asset] = {}

    @property
    def assets(self) -> Mapping[str, Asset]:
        """Working set: the last listing plus this registry's own writes."""
        return MappingProxyType(self._assets)

    # ── Store access ──────────────────────────────────────────

    async def _write(self, key: str, value: bytes, asset_id: str | None = None) -> str:
        try:
            return await self.store.set_data(key, value)
        except Exception as exc:
            error = TransactionFailedError.from_exception(exc, asset_id=asset_id)
            logger.error("Write to %s failed: %s", key, error)
            raise error from exc

    async def _load_index(self) -> list[str]:
        return _parse_index(await self.store.get_data(INDEX_KEY))

    async def _load(self, asset_id: str) -> Asset:
        raw = await self.store.get_data(record_key(asset_id))
        if not raw:
            raise NotFoundError(f"Asset not found: {asset_id}")
        return Asset.from_record(asset_id, raw)

    # ── Create ────────────────────────────────────────────────

    async def create(
        self,
        owner: str,
        game_name: str,
        asset_type: str,
        value: float,
    ) -> Asset:
        if not owner:
            raise UnauthorizedError("Connect a wallet before submitting an asset")
        if not game_name or not game_name.strip():
            raise InvalidAssetError("Game name is required")
        if not asset_type or not asset_type.strip():
            raise InvalidAssetError("Asset type is required")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidAssetError("Value must be a number")
        try:
            value = float(value)
        except OverflowError as exc:
            raise InvalidAssetError("Value is too large to represent") from exc
        if not math.isfinite(value) or value == 0:
            raise InvalidAssetError("Value must be a finite, non-zero number")

        asset = Asset(
            id=new_asset_id(),
            encoded_value=self.codec.encode(value),
            game_name=game_name,
            asset_type=asset_type,
            timestamp=int(time.time()),
            owner=owner,
            status=AssetStatus.PENDING,
        )

        await self._write(record_key(asset.id), asset.to_record())
        self._assets[asset.id] = asset
        await self.commit_index(asset.id)

        logger.info("Created asset %s for %s", asset.id, owner)
        return asset

    async def commit_index(self, asset_id: str) -> None:
        """Append an id to the index. Idempotent; safe to call again after a failure."""
        try:
            ids = await self._load_index()
        except FormatError:
            logger.exception("Asset index unreadable, starting a new one")
            ids = []
        if asset_id in ids:
            return
        ids.append(asset_id)
        await self._write(INDEX_KEY, json.dumps(ids).encode("utf-8"), asset_id=asset_id)

    # ── Read ──────────────────────────────────────────────────

    async def list(self) -> list[Asset]:
        """All readable assets, most recent first.

        Never raises for store problems: an unavailable store or unreadable
        index gives an empty list, and unreadable records are skipped.
        """
        try:
            if not await self.store.is_available():
                logger.warning("Asset store unavailable")
                return []
            ids = await self._load_index()
        except Exception:
            logger.exception("Error loading asset index")
            return []

        assets: list[Asset] = []
        for asset_id in ids:
            try:
                assets.append(await self._load(asset_id))
            except NotFoundError:
                logger.warning("Index lists %s but its record is missing", asset_id)
            except FormatError as exc:
                logger.warning("Skipping asset %s: %s", asset_id, exc)
            except Exception:
                logger.exception("Error loading asset %s", asset_id)

        assets.sort(key=lambda a: a.timestamp, reverse=True)
        self._assets = {a.id: a for a in assets}
        return assets

    async def get(self, asset_id: str) -> Asset:
        asset = await self._load(asset_id)
        self._assets[asset_id] = asset
        return asset

    # ── Review ────────────────────────────────────────────────

    async def _reviewable(self, asset_id: str, actor: str) -> Asset:
        if not actor:
            raise UnauthorizedError("Connect a wallet before reviewing an asset")
        asset = await self._load(asset_id)
        # TODO: check against a lender/reviewer role once one exists; today
        # only the submitting owner may review.
        if not _same_principal(actor, asset.owner):
            raise UnauthorizedError(f"{actor} may not review asset {asset_id}")
        if asset.status.is_terminal:
            raise InvalidTransitionError(
                f"Asset {asset_id} is already {asset.status.value}"
            )
        return asset

    async def _save(self, asset: Asset) -> Asset:
        await self._write(record_key(asset.id), asset.to_record(), asset_id=asset.id)
        self._assets[asset.id] = asset
        return asset

    async def approve(self, asset_id: str, actor: str) -> Asset:
        """Approve a pending asset, scaling its value up by 10%."""
        asset = await self._reviewable(asset_id, actor)
        scaled = transform.apply(
            asset.encoded_value, transform.Operation.INCREASE_10PCT, self.codec
        )
        updated = asset.model_copy(
            update={"encoded_value": scaled, "status": AssetStatus.APPROVED}
        )
        await self._save(updated)
        logger.info("Asset %s approved by %s", asset_id, actor)
        return updated

    async def reject(self, asset_id: str, actor: str) -> Asset:
        asset = await self._reviewable(asset_id, actor)
        updated = asset.model_copy(update={"status": AssetStatus.REJECTED})
        await self._save(updated)
        logger.info("Asset %s rejected by %s", asset_id, actor)
        return updated


def filter_assets(
    assets: Iterable[Asset],
    search: str = "",
    status: AssetStatus | None = None,
) -> list[Asset]:
    """Case-insensitive match on game name or asset type, plus a status filter."""
    term = search.lower()
    return [
        a
        for a in assets
        if (term in a.game_name.lower() or term in a.asset_type.lower())
        and (status is None or a.status is status)
    ]


def summarize(assets: Iterable[Asset]) -> AssetStats:
    stats = AssetStats()
    for a in assets:
        stats.total += 1
        setattr(stats, a.status.value, getattr(stats, a.status.value) + 1)
    return stats
