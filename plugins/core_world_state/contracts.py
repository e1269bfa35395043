# plugins/core_world_state/contracts.py

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# --- 错误体系 ---

class LedgerError(Exception):
    """
    Base class for every failure surfaced by the ledger.
    `code` is the stable wire identifier; `operation` names the handler or
    store call that failed.
    """
    code: str = "ledger_error"
    http_status: int = 500

    def __init__(self, message: str, operation: str = "<unknown>"):
        super().__init__(message)
        self.message = message
        self.operation = operation

    def __str__(self) -> str:
        return f"{self.operation}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, "operation": self.operation}


class StoreReadError(LedgerError):
    code = "store_read_error"
    http_status = 503


class StoreWriteError(LedgerError):
    code = "store_write_error"
    http_status = 503


# --- 查询结果模型 ---

class KV(BaseModel):
    """One key/value pair yielded by a state iterator."""
    key: str
    value: bytes
    model_config = ConfigDict(frozen=True)


class QueryResponseMetadata(BaseModel):
    fetched_records_count: int = Field(0, ge=0)
    bookmark: str = ""
    model_config = ConfigDict(frozen=True)


# --- 迭代器与存储接口 ---

class StateQueryIteratorInterface(ABC):
    """
    Cursor over one page of state. The handle owns its underlying resource
    until `close()` is called; using it as a context manager guarantees the
    release on every exit path.
    """
    @abstractmethod
    def has_next(self) -> bool: raise NotImplementedError
    @abstractmethod
    def next(self) -> KV: raise NotImplementedError
    @abstractmethod
    def close(self) -> None: raise NotImplementedError

    @property
    @abstractmethod
    def closed(self) -> bool: raise NotImplementedError

    def __enter__(self) -> StateQueryIteratorInterface:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class WorldStateInterface(ABC):
    """
    The committed key/value snapshot shared by all transactions.
    Values are raw bytes; a missing key reads as None.
    """

    @property
    @abstractmethod
    def supports_rich_query(self) -> bool: raise NotImplementedError

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]: raise NotImplementedError

    @abstractmethod
    def put(self, key: str, value: bytes) -> None: raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None: raise NotImplementedError

    @abstractmethod
    def apply(self, writes: Dict[str, Optional[bytes]]) -> None:
        """Applies a whole write set at once. A None value deletes the key."""
        raise NotImplementedError

    @abstractmethod
    def range_scan(
        self, start_key: str, end_key: str, page_size: int, bookmark: str
    ) -> Tuple[StateQueryIteratorInterface, QueryResponseMetadata]:
        raise NotImplementedError

    @abstractmethod
    def rich_query(
        self, query: str, page_size: int, bookmark: str
    ) -> Tuple[StateQueryIteratorInterface, QueryResponseMetadata]:
        raise NotImplementedError

    @abstractmethod
    def items(self) -> Iterable[Tuple[str, bytes]]: raise NotImplementedError

    @abstractmethod
    def load(self, entries: Dict[str, bytes]) -> None:
        """Replaces the whole state, e.g. when restoring a snapshot at startup."""
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int: raise NotImplementedError


class WorldStatePersistenceInterface(ABC):
    @abstractmethod
    async def save(self, entries: Dict[str, bytes]) -> None: raise NotImplementedError
    @abstractmethod
    async def load(self) -> Optional[Dict[str, bytes]]: raise NotImplementedError
