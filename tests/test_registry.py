"""Tests for the asset registry state machine and listing.

Uses MemoryStore: no remote store dependency. The registry is async;
each test drives it with asyncio.run.
"""

from __future__ import annotations

import asyncio
import json
import logging

import pytest

from kolla import codec
from kolla.errors import (
    FormatError,
    InvalidAssetError,
    InvalidTransitionError,
    NotFoundError,
    TransactionFailedError,
    UnauthorizedError,
)
from kolla.models import Asset, AssetStatus
from kolla.registry import AssetRegistry, filter_assets, new_asset_id, summarize
from kolla.store.interface import INDEX_KEY, record_key
from kolla.store.memory import MemoryStore

OWNER = "0x8ba1f109551bD432803012645Ac136ddd64DBA72"
STRANGER = "0x71C7656EC7ab88b098defB751B7401B5f6d8976F"

run = asyncio.run


def _seed(
    store: MemoryStore,
    asset_id: str,
    *,
    timestamp: int = 1_700_000_000,
    value: float = 100,
    status: str | None = "pending",
    owner: str = OWNER,
    game: str = "Runescape",
    kind: str = "Weapon",
) -> None:
    record = {
        "value": codec.encode(value),
        "gameName": game,
        "assetType": kind,
        "timestamp": timestamp,
        "owner": owner,
    }
    if status is not None:
        record["status"] = status
    store.data[record_key(asset_id)] = json.dumps(record).encode()
    ids = json.loads(store.data.get(INDEX_KEY, b"[]"))
    ids.append(asset_id)
    store.data[INDEX_KEY] = json.dumps(ids).encode()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def registry(store):
    return AssetRegistry(store)


class TestCreate:
    def test_create_is_pending(self, registry):
        asset = run(registry.create(OWNER, "Axie Infinity", "Character", 250))
        assert asset.status is AssetStatus.PENDING
        assert asset.owner == OWNER
        assert asset.game_name == "Axie Infinity"
        assert asset.asset_type == "Character"

    def test_value_is_stored_encoded(self, registry, store):
        asset = run(registry.create(OWNER, "Axie Infinity", "Character", 250))
        stored = json.loads(store.data[record_key(asset.id)])
        assert stored["value"] != "250"
        assert codec.is_encoded(stored["value"])
        assert codec.decode(stored["value"]) == 250.0
        assert set(stored) == {"value", "gameName", "assetType", "timestamp", "owner", "status"}
        assert stored["status"] == "pending"

    def test_record_written_before_index(self, registry, store):
        asset = run(registry.create(OWNER, "Axie Infinity", "Character", 250))
        assert store.writes == [record_key(asset.id), INDEX_KEY]
        assert json.loads(store.data[INDEX_KEY]) == [asset.id]

    def test_index_is_append_only(self, registry, store):
        _seed(store, "existing")
        asset = run(registry.create(OWNER, "Decentraland", "Land", 9000))
        assert json.loads(store.data[INDEX_KEY]) == ["existing", asset.id]

    def test_ids_are_unique(self, registry):
        ids = {run(registry.create(OWNER, "G", "Armor", 1)).id for _ in range(50)}
        assert len(ids) == 50

    def test_id_shape(self):
        millis, _, suffix = new_asset_id().partition("-")
        assert millis.isdigit()
        assert len(suffix) == 32

    def test_added_to_working_set(self, registry):
        asset = run(registry.create(OWNER, "G", "Armor", 1))
        assert registry.assets[asset.id] == asset

    @pytest.mark.parametrize(
        "game,kind,value",
        [
            ("", "Weapon", 10),
            ("   ", "Weapon", 10),
            ("Game", "", 10),
            ("Game", "Weapon", 0),
            ("Game", "Weapon", float("nan")),
            ("Game", "Weapon", float("inf")),
            ("Game", "Weapon", True),
            ("Game", "Weapon", "10"),
            ("Game", "Weapon", 10**400),
        ],
    )
    def test_validation(self, registry, store, game, kind, value):
        with pytest.raises(InvalidAssetError):
            run(registry.create(OWNER, game, kind, value))
        assert store.writes == []

    def test_requires_connected_owner(self, registry, store):
        with pytest.raises(UnauthorizedError):
            run(registry.create("", "Game", "Weapon", 10))
        assert store.writes == []

    def test_user_rejected_write(self, registry, store):
        store.reject_writes = True
        with pytest.raises(TransactionFailedError) as info:
            run(registry.create(OWNER, "Game", "Weapon", 10))
        assert info.value.user_rejected
        assert str(info.value) == "Transaction rejected by user"
        assert INDEX_KEY not in store.data

    def test_index_write_failure_leaves_orphan_record(self, store):
        class FailIndexStore(MemoryStore):
            fail_index = True

            async def set_data(self, key, value):
                if key == INDEX_KEY and self.fail_index:
                    raise ConnectionError("network down")
                return await super().set_data(key, value)

        store = FailIndexStore()
        registry = AssetRegistry(store)
        with pytest.raises(TransactionFailedError) as info:
            run(registry.create(OWNER, "Game", "Weapon", 10))
        err = info.value
        assert not err.user_rejected
        assert str(err) == "Submission failed: network down"
        assert err.asset_id is not None
        assert record_key(err.asset_id) in store.data
        assert run(registry.list()) == []

        # Second phase can be finished later, and only once.
        store.fail_index = False
        run(registry.commit_index(err.asset_id))
        run(registry.commit_index(err.asset_id))
        assert json.loads(store.data[INDEX_KEY]) == [err.asset_id]
        assert [a.id for a in run(registry.list())] == [err.asset_id]

    def test_concurrent_creates_lose_an_index_entry(self, store):
        """Concurrent writers are last-writer-wins on the index.

        Both records land, but the second index write overwrites the first.
        """
        a, b = AssetRegistry(store), AssetRegistry(store)

        async def both():
            return await asyncio.gather(
                a.create(OWNER, "Game A", "Weapon", 1),
                b.create(OWNER, "Game B", "Armor", 2),
            )

        first, second = run(both())
        assert record_key(first.id) in store.data
        assert record_key(second.id) in store.data
        assert len(json.loads(store.data[INDEX_KEY])) == 1


class TestList:
    def test_empty_store(self, registry):
        assert run(registry.list()) == []

    def test_unavailable_store(self, store, registry):
        _seed(store, "a")
        store.available = False
        assert run(registry.list()) == []

    def test_sorted_most_recent_first(self, store, registry):
        _seed(store, "a", timestamp=100)
        _seed(store, "b", timestamp=300)
        _seed(store, "c", timestamp=200)
        assert [a.timestamp for a in run(registry.list())] == [300, 200, 100]

    def test_ties_keep_index_order(self, store, registry):
        _seed(store, "x", timestamp=100)
        _seed(store, "y", timestamp=100)
        _seed(store, "z", timestamp=100)
        assert [a.id for a in run(registry.list())] == ["x", "y", "z"]

    def test_skips_missing_record(self, store, registry, caplog):
        _seed(store, "a", timestamp=100)
        _seed(store, "b", timestamp=200)
        del store.data[record_key("a")]
        with caplog.at_level(logging.WARNING, logger="kolla.registry"):
            assets = run(registry.list())
        assert [a.id for a in assets] == ["b"]
        assert "a" in caplog.text

    def test_skips_malformed_record(self, store, registry, caplog):
        _seed(store, "a", timestamp=100)
        _seed(store, "b", timestamp=200)
        store.data[record_key("a")] = b"{not json"
        with caplog.at_level(logging.WARNING, logger="kolla.registry"):
            assets = run(registry.list())
        assert [a.id for a in assets] == ["b"]
        assert "Skipping asset a" in caplog.text

    def test_skips_record_with_bad_status(self, store, registry):
        _seed(store, "a", status="lost")
        assert run(registry.list()) == []

    def test_missing_status_loads_as_pending(self, store, registry):
        _seed(store, "a", status=None)
        (asset,) = run(registry.list())
        assert asset.status is AssetStatus.PENDING

    def test_numeric_legacy_value(self, store, registry):
        store.data[record_key("old")] = json.dumps(
            {"value": 42, "gameName": "Eve", "assetType": "Currency", "timestamp": 5, "owner": OWNER}
        ).encode()
        store.data[INDEX_KEY] = b'["old"]'
        (asset,) = run(registry.list())
        assert asset.encoded_value == "42"
        assert codec.decode(asset.encoded_value) == 42.0

    def test_malformed_index(self, store, registry):
        store.data[INDEX_KEY] = b"oops"
        assert run(registry.list()) == []

    def test_index_not_a_list(self, store, registry):
        store.data[INDEX_KEY] = b'{"a": 1}'
        assert run(registry.list()) == []

    def test_replaces_working_set(self, store, registry):
        _seed(store, "a")
        run(registry.list())
        assert set(registry.assets) == {"a"}


class TestReview:
    def test_approve_scales_value(self, store, registry):
        _seed(store, "a", value=100)
        asset = run(registry.approve("a", OWNER))
        assert asset.status is AssetStatus.APPROVED
        assert codec.decode(asset.encoded_value) == pytest.approx(110)

        stored = Asset.from_record("a", store.data[record_key("a")])
        assert stored == asset

    def test_approve_keeps_immutable_fields(self, store, registry):
        _seed(store, "a", timestamp=123, game="Eve", kind="Currency")
        asset = run(registry.approve("a", OWNER))
        assert (asset.timestamp, asset.game_name, asset.asset_type, asset.owner) == (
            123,
            "Eve",
            "Currency",
            OWNER,
        )

    def test_reject_keeps_value(self, store, registry):
        _seed(store, "a", value=100)
        before = json.loads(store.data[record_key("a")])["value"]
        asset = run(registry.reject("a", OWNER))
        assert asset.status is AssetStatus.REJECTED
        assert asset.encoded_value == before

    def test_owner_match_ignores_case(self, store, registry):
        _seed(store, "a")
        asset = run(registry.approve("a", OWNER.lower()))
        assert asset.status is AssetStatus.APPROVED

    @pytest.mark.parametrize("op", ["approve", "reject"])
    def test_not_found(self, registry, op):
        with pytest.raises(NotFoundError):
            run(getattr(registry, op)("missing", OWNER))

    @pytest.mark.parametrize("op", ["approve", "reject"])
    def test_stranger_cannot_review(self, store, registry, op):
        _seed(store, "a")
        with pytest.raises(UnauthorizedError):
            run(getattr(registry, op)("a", STRANGER))
        assert store.writes == []

    @pytest.mark.parametrize("op", ["approve", "reject"])
    def test_requires_connected_actor(self, store, registry, op):
        _seed(store, "a")
        with pytest.raises(UnauthorizedError):
            run(getattr(registry, op)("a", ""))

    @pytest.mark.parametrize("status", ["approved", "rejected"])
    @pytest.mark.parametrize("op", ["approve", "reject"])
    def test_terminal_states(self, store, registry, status, op):
        _seed(store, "a", status=status)
        with pytest.raises(InvalidTransitionError):
            run(getattr(registry, op)("a", OWNER))
        assert store.writes == []

    def test_approve_twice_does_not_rescale(self, store, registry):
        _seed(store, "a", value=100)
        run(registry.approve("a", OWNER))
        with pytest.raises(InvalidTransitionError):
            run(registry.approve("a", OWNER))
        assert run(registry.get("a")).encoded_value == codec.encode(100 * 1.1)

    def test_malformed_record(self, store, registry):
        _seed(store, "a")
        store.data[record_key("a")] = b"[]"
        with pytest.raises(FormatError):
            run(registry.approve("a", OWNER))

    def test_write_failure(self, store, registry):
        _seed(store, "a")
        store.reject_writes = True
        with pytest.raises(TransactionFailedError) as info:
            run(registry.reject("a", OWNER))
        assert info.value.user_rejected


def test_only_pending_is_open_for_review():
    assert not AssetStatus.PENDING.is_terminal
    assert AssetStatus.APPROVED.is_terminal
    assert AssetStatus.REJECTED.is_terminal


class TestDashboardHelpers:
    def _assets(self):
        return [
            Asset(id="1", value="1", gameName="Axie Infinity", assetType="Character", timestamp=1, owner=OWNER),
            Asset(id="2", value="1", gameName="Decentraland", assetType="Land", timestamp=2, owner=OWNER, status="approved"),
            Asset(id="3", value="1", gameName="The Sandbox", assetType="Land", timestamp=3, owner=OWNER, status="rejected"),
        ]

    def test_search_matches_game_or_type(self):
        assert [a.id for a in filter_assets(self._assets(), "land")] == ["2", "3"]
        assert [a.id for a in filter_assets(self._assets(), "AXIE")] == ["1"]

    def test_status_filter(self):
        assert [a.id for a in filter_assets(self._assets(), status=AssetStatus.REJECTED)] == ["3"]

    def test_no_filter(self):
        assert len(filter_assets(self._assets())) == 3

    def test_summarize(self):
        stats = summarize(self._assets())
        assert stats.model_dump() == {"total": 3, "approved": 1, "pending": 1, "rejected": 1}
