# plugins/core_world_state/stores.py
import base64
import binascii
import bisect
import json
import logging
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .contracts import (
    KV,
    QueryResponseMetadata,
    StateQueryIteratorInterface,
    StoreReadError,
    StoreWriteError,
    WorldStateInterface,
)
from .iterators import StateQueryIterator
from .query import RichQuery

logger = logging.getLogger(__name__)

DEFAULT_INTERNAL_QUERY_LIMIT = 1000

STATE_DB_COUCHDB = "CouchDB"
STATE_DB_LEVELDB = "goleveldb"


def encode_bookmark(last_key: str) -> str:
    payload = json.dumps({"last_key": last_key}, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(payload).decode("ascii")


def decode_bookmark(bookmark: str, operation: str) -> Optional[str]:
    """Returns the last key already delivered, or None for a fresh scan."""
    if not bookmark:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(bookmark.encode("ascii")))
        last_key = payload["last_key"]
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as e:
        raise StoreReadError(f"invalid bookmark '{bookmark}'", operation=operation) from e
    if not isinstance(last_key, str):
        raise StoreReadError(f"invalid bookmark '{bookmark}'", operation=operation)
    return last_key


class InMemoryWorldState(WorldStateInterface):
    """
    Sorted in-memory key/value state.

    Behaves like a peer's state database: keys iterate in lexical order,
    page sizes are enforced here rather than by callers, and rich queries are
    only available when the configured database is CouchDB.
    """
    def __init__(
        self,
        state_database: str = STATE_DB_COUCHDB,
        internal_query_limit: int = DEFAULT_INTERNAL_QUERY_LIMIT,
    ):
        if internal_query_limit <= 0:
            raise ValueError("internal_query_limit must be positive")
        self._data: Dict[str, bytes] = {}
        self._keys: List[str] = []
        self._state_database = state_database
        self._internal_query_limit = internal_query_limit
        logger.info(
            f"InMemoryWorldState initialized (state database: {state_database}, "
            f"internal query limit: {internal_query_limit})."
        )

    @property
    def supports_rich_query(self) -> bool:
        return self._state_database.lower() == STATE_DB_COUCHDB.lower()

    @property
    def internal_query_limit(self) -> int:
        return self._internal_query_limit

    # --- 单键读写 ---

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    @staticmethod
    def _validate_write(key: str, value: Optional[bytes], operation: str) -> None:
        if not isinstance(key, str) or not key:
            raise StoreWriteError("key must be a non-empty string", operation=operation)
        if value is None:
            return
        if not isinstance(value, (bytes, bytearray)):
            raise StoreWriteError(f"value for key '{key}' must be bytes", operation=operation)
        if len(value) == 0:
            raise StoreWriteError(
                f"refusing to store an empty value for key '{key}'", operation=operation
            )

    def _set(self, key: str, value: bytes) -> None:
        if key not in self._data:
            bisect.insort(self._keys, key)
        self._data[key] = bytes(value)

    def _remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            index = bisect.bisect_left(self._keys, key)
            del self._keys[index]

    def put(self, key: str, value: bytes) -> None:
        self._validate_write(key, value, "put")
        if value is None:
            raise StoreWriteError(f"value for key '{key}' must not be None", operation="put")
        self._set(key, value)

    def delete(self, key: str) -> None:
        self._validate_write(key, None, "delete")
        self._remove(key)

    def apply(self, writes: Dict[str, Optional[bytes]]) -> None:
        # 先整体校验，再写入：写集要么全部生效，要么完全不生效
        for key, value in writes.items():
            self._validate_write(key, value, "apply")
        for key, value in writes.items():
            if value is None:
                self._remove(key)
            else:
                self._set(key, value)

    # --- 分页扫描 ---

    def _limit(self, page_size: int) -> int:
        return page_size if page_size > 0 else self._internal_query_limit

    def _page(
        self,
        start_index: int,
        stop_key: str,
        limit: int,
        bookmark: str,
        source: str,
        accept: Optional[Callable[[bytes], bool]] = None,
    ) -> Tuple[StateQueryIteratorInterface, QueryResponseMetadata]:
        entries: List[KV] = []
        for key in self._keys[start_index:]:
            if stop_key and key >= stop_key:
                break
            value = self._data[key]
            if accept is not None and not accept(value):
                continue
            entries.append(KV(key=key, value=value))
            if len(entries) >= limit:
                break

        next_bookmark = encode_bookmark(entries[-1].key) if entries else bookmark
        metadata = QueryResponseMetadata(fetched_records_count=len(entries), bookmark=next_bookmark)
        return StateQueryIterator(entries, source=source), metadata

    def range_scan(
        self, start_key: str, end_key: str, page_size: int, bookmark: str
    ) -> Tuple[StateQueryIteratorInterface, QueryResponseMetadata]:
        last_key = decode_bookmark(bookmark, "range_scan")
        start_index = bisect.bisect_left(self._keys, start_key) if start_key else 0
        if last_key is not None:
            start_index = max(start_index, bisect.bisect_right(self._keys, last_key))
        return self._page(start_index, end_key, self._limit(page_size), bookmark, "range")

    def rich_query(
        self, query: str, page_size: int, bookmark: str
    ) -> Tuple[StateQueryIteratorInterface, QueryResponseMetadata]:
        if not self.supports_rich_query:
            raise StoreReadError(
                f"rich query not supported by state database '{self._state_database}'",
                operation="rich_query",
            )
        parsed = RichQuery.parse(query)
        last_key = decode_bookmark(bookmark, "rich_query")
        start_index = bisect.bisect_right(self._keys, last_key) if last_key is not None else 0
        return self._page(start_index, "", self._limit(page_size), bookmark, "query", parsed.matches_value)

    # --- 快照 ---

    def items(self) -> Iterable[Tuple[str, bytes]]:
        return [(key, self._data[key]) for key in self._keys]

    def load(self, entries: Dict[str, bytes]) -> None:
        for key, value in entries.items():
            self._validate_write(key, value, "load")
        self._data = {key: bytes(value) for key, value in entries.items()}
        self._keys = sorted(self._data)
        logger.info(f"World state loaded with {len(self._keys)} key(s).")

    def __len__(self) -> int:
        return len(self._keys)
