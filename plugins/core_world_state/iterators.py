# plugins/core_world_state/iterators.py

import logging
from typing import List, Optional

from .contracts import KV, StateQueryIteratorInterface, StoreReadError

logger = logging.getLogger(__name__)


class StateQueryIterator(StateQueryIteratorInterface):
    """
    Iterator over a page that the store has already cut out of the state.
    The page is copied when the iterator is opened, so commits that land
    while it is open are not visible through it.
    """
    def __init__(self, entries: List[KV], source: str = "range"):
        self._entries: Optional[List[KV]] = list(entries)
        self._position = 0
        self._source = source
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self._entries is None

    def has_next(self) -> bool:
        if self._entries is None:
            return False
        return self._position < len(self._entries)

    def next(self) -> KV:
        if self._entries is None:
            raise StoreReadError("iterator is closed", operation=f"{self._source}_iterator.next")
        if self._position >= len(self._entries):
            raise StoreReadError("iterator is exhausted", operation=f"{self._source}_iterator.next")
        kv = self._entries[self._position]
        self._position += 1
        return kv

    def close(self) -> None:
        if self._entries is None:
            return
        self._entries = None
        self.close_count += 1
        logger.debug(f"Closed {self._source} iterator after {self._position} item(s).")
