# plugins/core_ledger/stub.py

import logging
import uuid
from typing import Dict, Optional, Tuple

from plugins.core_world_state.contracts import (
    LedgerError,
    QueryResponseMetadata,
    StateQueryIteratorInterface,
    StoreReadError,
    StoreWriteError,
    WorldStateInterface,
)
from .contracts import ChaincodeStubInterface, TransactionContextInterface

logger = logging.getLogger(__name__)


def new_tx_id() -> str:
    return uuid.uuid4().hex


class ChaincodeStub(ChaincodeStubInterface):
    """
    Per-transaction access to the world state.

    Reads are served from committed state (a transaction does not see its own
    pending writes). Puts and deletes go into `write_set`, which the executor
    applies in one step on commit or throws away on failure.
    """
    def __init__(self, world_state: WorldStateInterface, tx_id: Optional[str] = None):
        self._world_state = world_state
        self._tx_id = tx_id or new_tx_id()
        self._write_set: Dict[str, Optional[bytes]] = {}
        self.used_paginated_query = False

    @property
    def tx_id(self) -> str:
        return self._tx_id

    @property
    def write_set(self) -> Dict[str, Optional[bytes]]:
        return dict(self._write_set)

    def get_state(self, key: str) -> Optional[bytes]:
        try:
            return self._world_state.get(key)
        except LedgerError:
            raise
        except Exception as e:
            raise StoreReadError(f"failed to read key '{key}': {e}", operation="get_state") from e

    def put_state(self, key: str, value: bytes) -> None:
        if not key:
            raise StoreWriteError("key must not be empty", operation="put_state")
        if not value:
            raise StoreWriteError(f"refusing to write an empty value for key '{key}'", operation="put_state")
        self._write_set[key] = bytes(value)

    def del_state(self, key: str) -> None:
        if not key:
            raise StoreWriteError("key must not be empty", operation="del_state")
        self._write_set[key] = None

    def get_state_by_range_with_pagination(
        self, start_key: str, end_key: str, page_size: int, bookmark: str
    ) -> Tuple[StateQueryIteratorInterface, QueryResponseMetadata]:
        self.used_paginated_query = True
        try:
            return self._world_state.range_scan(start_key, end_key, page_size, bookmark)
        except LedgerError:
            raise
        except Exception as e:
            raise StoreReadError(f"range scan failed: {e}", operation="get_state_by_range_with_pagination") from e

    def get_query_result_with_pagination(
        self, query: str, page_size: int, bookmark: str
    ) -> Tuple[StateQueryIteratorInterface, QueryResponseMetadata]:
        self.used_paginated_query = True
        try:
            return self._world_state.rich_query(query, page_size, bookmark)
        except LedgerError:
            raise
        except Exception as e:
            raise StoreReadError(f"rich query failed: {e}", operation="get_query_result_with_pagination") from e


class TransactionContext(TransactionContextInterface):
    def __init__(self, stub: ChaincodeStubInterface):
        self._stub = stub

    @property
    def stub(self) -> ChaincodeStubInterface:
        return self._stub
