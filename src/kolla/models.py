"""Asset records and their stored JSON form."""

from __future__ import annotations

import json
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from kolla.errors import FormatError


class AssetStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not AssetStatus.PENDING


class Asset(BaseModel):
    """One submitted collateral item.

    Only ``encoded_value`` and ``status`` change after creation, and only
    through the registry.
    """

    model_config = ConfigDict(
        populate_by_name=True, frozen=True, coerce_numbers_to_str=True
    )

    id: str
    encoded_value: str = Field(alias="value")
    game_name: str = Field(alias="gameName")
    asset_type: str = Field(alias="assetType")
    timestamp: int
    owner: str
    status: AssetStatus = AssetStatus.PENDING

    def to_record(self) -> bytes:
        """Serialize to the stored ``asset_<id>`` JSON object."""
        payload = self.model_dump(mode="json", by_alias=True, exclude={"id"})
        return json.dumps(payload).encode("utf-8")

    @classmethod
    def from_record(cls, asset_id: str, raw: bytes) -> Asset:
        """Parse a stored record. Raises FormatError if it is unusable."""
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise FormatError(f"Record for asset {asset_id} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise FormatError(f"Record for asset {asset_id} is not a JSON object")

        # Records written before review existed carry no status.
        if not data.get("status"):
            data["status"] = AssetStatus.PENDING.value
        data.pop("id", None)
        try:
            return cls.model_validate({"id": asset_id, **data})
        except ValidationError as exc:
            raise FormatError(f"Record for asset {asset_id} is malformed: {exc}") from exc


class AssetSubmission(BaseModel):
    """Body of a create request."""

    model_config = ConfigDict(populate_by_name=True)

    game_name: str = Field(alias="gameName")
    asset_type: str = Field(alias="assetType")
    value: float


class RevealRequest(BaseModel):
    signature: str = ""


class AssetStats(BaseModel):
    total: int = 0
    approved: int = 0
    pending: int = 0
    rejected: int = 0
