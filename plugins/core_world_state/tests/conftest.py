# plugins/core_world_state/tests/conftest.py
import json
import pytest
from typing import Callable

from plugins.core_world_state.stores import InMemoryWorldState, STATE_DB_LEVELDB


def _asset_bytes(cid: str, asset_type: str = "PDF", features: str = "[]") -> bytes:
    return json.dumps(
        {"cid": cid, "features": features, "id": f"ID_{cid}", "type": asset_type},
        separators=(",", ":"),
    ).encode("utf-8")


@pytest.fixture
def asset_bytes() -> Callable[..., bytes]:
    """构造与资产记录同形状的 JSON 值。"""
    return _asset_bytes


@pytest.fixture
def world_state() -> InMemoryWorldState:
    return InMemoryWorldState()


@pytest.fixture
def leveldb_world_state() -> InMemoryWorldState:
    return InMemoryWorldState(state_database=STATE_DB_LEVELDB)


@pytest.fixture
def populated_world_state(world_state: InMemoryWorldState) -> InMemoryWorldState:
    """k00..k09，偶数为 PDF，奇数为 PE。"""
    world_state.apply({
        f"k{i:02d}": _asset_bytes(f"k{i:02d}", "PDF" if i % 2 == 0 else "PE")
        for i in range(10)
    })
    return world_state
