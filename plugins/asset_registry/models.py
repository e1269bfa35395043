# plugins/asset_registry/models.py

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_core import PydanticSerializationError

from .contracts import DecodingError, EncodingError, InvalidEnumValueError


class AssetType(str, Enum):
    """Recognized content classifications."""
    PDF = "PDF"
    PE = "PE"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls, raw: str) -> "AssetType":
        """Exact, case-sensitive match against the tag set."""
        if isinstance(raw, str) and raw in cls._value2member_map_:
            return cls(raw)
        raise InvalidEnumValueError(raw, cls.values())


class Asset(BaseModel):
    """
    One registry entry, stored under its `cid`.

    Field order is the storage layout: serialization is compact JSON with
    the keys cid, features, id, type in that order.
    """
    cid: str
    features: str
    id: str
    type: AssetType
    model_config = ConfigDict(frozen=True)

    def to_bytes(self, operation: str = "encode_asset") -> bytes:
        try:
            return self.model_dump_json().encode("utf-8")
        except PydanticSerializationError as e:
            raise EncodingError(f"failed to marshal asset: {e}", operation=operation) from e

    @classmethod
    def from_bytes(cls, raw: bytes, operation: str = "decode_asset") -> "Asset":
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise DecodingError(f"failed to unmarshal asset: {e.errors()[0].get('msg', e)}", operation=operation) from e


class PaginatedQueryResult(BaseModel):
    """One page of assets plus the cursor needed to fetch the next one."""
    records: List[Asset] = Field(default_factory=list)
    fetched_records_count: int = Field(0, alias="fetchedRecordsCount")
    bookmark: str = ""
    model_config = ConfigDict(populate_by_name=True)
