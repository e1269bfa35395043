# plugins/core_ledger/tests/conftest.py
import pytest
from typing import List, Optional

from backend.core.hooks import HookManager
from plugins.core_ledger.contracts import Contract, TransactionContextInterface, transaction
from plugins.core_ledger.executor import TransactionExecutor
from plugins.core_ledger.registry import ContractRegistry
from plugins.core_world_state.contracts import StoreWriteError
from plugins.core_world_state.stores import InMemoryWorldState


class KeyValueContract(Contract):
    """测试用合约：直接读写字符串值。"""
    name = "kv"

    @transaction("submit")
    def put(self, ctx: TransactionContextInterface, key: str, value: str) -> None:
        """Stores a value."""
        ctx.stub.put_state(key, value.encode())

    @transaction("evaluate")
    def get(self, ctx: TransactionContextInterface, key: str) -> Optional[str]:
        raw = ctx.stub.get_state(key)
        return raw.decode() if raw else None

    @transaction("submit")
    def put_many(self, ctx: TransactionContextInterface, count: int, prefix: str = "k") -> int:
        for i in range(count):
            ctx.stub.put_state(f"{prefix}{i}", b"v")
        return count

    @transaction("submit")
    def put_then_fail(self, ctx: TransactionContextInterface, key: str) -> None:
        ctx.stub.put_state(key, b"never committed")
        raise StoreWriteError("simulated failure", operation="PutThenFail")

    @transaction("submit")
    def remove(self, ctx: TransactionContextInterface, key: str) -> None:
        ctx.stub.del_state(key)

    @transaction("evaluate")
    def scan(self, ctx: TransactionContextInterface, page_size: int) -> List[str]:
        iterator, _ = ctx.stub.get_state_by_range_with_pagination("", "", page_size, "")
        with iterator:
            keys = []
            while iterator.has_next():
                keys.append(iterator.next().key)
        return keys

    @transaction("submit")
    def scan_and_write(self, ctx: TransactionContextInterface) -> None:
        iterator, _ = ctx.stub.get_state_by_range_with_pagination("", "", 0, "")
        iterator.close()
        ctx.stub.put_state("derived", b"1")

    @transaction("evaluate", name="Echo", aliases=["Say"])
    def echo_value(self, ctx: TransactionContextInterface, value: int) -> int:
        return value

    def helper(self, ctx: TransactionContextInterface) -> None:
        """Not a transaction."""


@pytest.fixture
def world_state() -> InMemoryWorldState:
    return InMemoryWorldState()


@pytest.fixture
def registry() -> ContractRegistry:
    registry = ContractRegistry()
    registry.register(KeyValueContract())
    return registry


@pytest.fixture
def hook_manager() -> HookManager:
    return HookManager()


@pytest.fixture
def executor(world_state: InMemoryWorldState, registry: ContractRegistry, hook_manager: HookManager) -> TransactionExecutor:
    return TransactionExecutor(world_state, registry, hook_manager)
