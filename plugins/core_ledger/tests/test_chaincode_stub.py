# plugins/core_ledger/tests/test_chaincode_stub.py
import pytest

from plugins.core_ledger.stub import ChaincodeStub, TransactionContext
from plugins.core_world_state.contracts import StoreReadError, StoreWriteError
from plugins.core_world_state.stores import InMemoryWorldState


class ExplodingWorldState(InMemoryWorldState):
    def get(self, key):
        raise OSError("disk gone")

    def range_scan(self, start_key, end_key, page_size, bookmark):
        raise OSError("disk gone")


class TestChaincodeStub:

    def test_each_stub_gets_its_own_tx_id(self, world_state):
        assert ChaincodeStub(world_state).tx_id != ChaincodeStub(world_state).tx_id
        assert ChaincodeStub(world_state, tx_id="fixed").tx_id == "fixed"

    def test_writes_are_buffered_not_applied(self, world_state):
        stub = ChaincodeStub(world_state)
        stub.put_state("CID_1", b"v1")
        stub.del_state("CID_2")

        assert stub.write_set == {"CID_1": b"v1", "CID_2": None}
        assert world_state.get("CID_1") is None

    def test_reads_see_committed_state_only(self, world_state):
        world_state.put("CID_1", b"committed")
        stub = ChaincodeStub(world_state)
        stub.put_state("CID_1", b"pending")
        assert stub.get_state("CID_1") == b"committed"

    def test_write_set_is_a_copy(self, world_state):
        stub = ChaincodeStub(world_state)
        stub.put_state("CID_1", b"v1")
        stub.write_set.clear()
        assert stub.write_set == {"CID_1": b"v1"}

    @pytest.mark.parametrize("key, value", [("", b"v"), ("CID_1", b""), ("CID_1", None)])
    def test_invalid_put_is_rejected(self, world_state, key, value):
        stub = ChaincodeStub(world_state)
        with pytest.raises(StoreWriteError):
            stub.put_state(key, value)
        assert stub.write_set == {}

    def test_empty_delete_key_is_rejected(self, world_state):
        with pytest.raises(StoreWriteError):
            ChaincodeStub(world_state).del_state("")

    def test_paginated_queries_are_flagged(self, world_state):
        stub = ChaincodeStub(world_state)
        assert not stub.used_paginated_query
        iterator, _ = stub.get_state_by_range_with_pagination("", "", 10, "")
        iterator.close()
        assert stub.used_paginated_query

        stub = ChaincodeStub(world_state)
        iterator, _ = stub.get_query_result_with_pagination('{"selector": {}}', 10, "")
        iterator.close()
        assert stub.used_paginated_query

    def test_unexpected_store_failures_become_read_errors(self):
        stub = ChaincodeStub(ExplodingWorldState())
        with pytest.raises(StoreReadError, match="disk gone") as exc_info:
            stub.get_state("CID_1")
        assert exc_info.value.operation == "get_state"
        assert isinstance(exc_info.value.__cause__, OSError)

        with pytest.raises(StoreReadError, match="range scan failed"):
            stub.get_state_by_range_with_pagination("", "", 1, "")

    def test_context_exposes_stub(self, world_state):
        stub = ChaincodeStub(world_state)
        assert TransactionContext(stub).stub is stub
