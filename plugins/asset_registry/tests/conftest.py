# plugins/asset_registry/tests/conftest.py
import pytest
from typing import Any

from plugins.asset_registry.contract import AssetContract
from plugins.core_ledger.executor import TransactionExecutor
from plugins.core_ledger.registry import ContractRegistry
from plugins.core_ledger.stub import ChaincodeStub, TransactionContext
from plugins.core_world_state.stores import InMemoryWorldState, STATE_DB_LEVELDB


class DirectLedger:
    """
    同步驱动合约方法：每次调用一个新的 stub，成功后把写集应用到 world state。
    用于不经过执行器的单元测试。
    """
    def __init__(self, world_state: InMemoryWorldState):
        self.world_state = world_state
        self.contract = AssetContract()
        self.last_stub: ChaincodeStub = None

    def ctx(self) -> TransactionContext:
        self.last_stub = ChaincodeStub(self.world_state)
        return TransactionContext(self.last_stub)

    def run(self, method: str, *args: Any) -> Any:
        ctx = self.ctx()
        result = getattr(self.contract, method)(ctx, *args)
        self.world_state.apply(self.last_stub.write_set)
        return result


@pytest.fixture
def world_state() -> InMemoryWorldState:
    return InMemoryWorldState()


@pytest.fixture
def ledger(world_state: InMemoryWorldState) -> DirectLedger:
    return DirectLedger(world_state)


@pytest.fixture
def leveldb_ledger() -> DirectLedger:
    return DirectLedger(InMemoryWorldState(state_database=STATE_DB_LEVELDB))


@pytest.fixture
def asset_executor(world_state: InMemoryWorldState) -> TransactionExecutor:
    registry = ContractRegistry()
    registry.register(AssetContract())
    return TransactionExecutor(world_state, registry)
