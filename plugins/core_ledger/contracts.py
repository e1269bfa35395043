# plugins/core_ledger/contracts.py

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Literal, Optional, Sequence, Tuple, TypeVar

from pydantic import BaseModel, Field

from plugins.core_world_state.contracts import (
    LedgerError,
    QueryResponseMetadata,
    StateQueryIteratorInterface,
)

F = TypeVar('F', bound=Callable[..., Any])

TransactionMode = Literal["submit", "evaluate"]


# --- 错误 ---

class TransactionNotFoundError(LedgerError):
    code = "transaction_not_found"
    http_status = 404


class InvalidArgumentError(LedgerError):
    code = "invalid_argument"
    http_status = 422


# --- 交易处理函数所见的接口 ---

class ChaincodeStubInterface(ABC):
    """
    A transaction's view of the world state. Reads see committed state only;
    writes are buffered until the executor commits the transaction.
    """
    @property
    @abstractmethod
    def tx_id(self) -> str: raise NotImplementedError

    @abstractmethod
    def get_state(self, key: str) -> Optional[bytes]: raise NotImplementedError

    @abstractmethod
    def put_state(self, key: str, value: bytes) -> None: raise NotImplementedError

    @abstractmethod
    def del_state(self, key: str) -> None: raise NotImplementedError

    @abstractmethod
    def get_state_by_range_with_pagination(
        self, start_key: str, end_key: str, page_size: int, bookmark: str
    ) -> Tuple[StateQueryIteratorInterface, QueryResponseMetadata]:
        raise NotImplementedError

    @abstractmethod
    def get_query_result_with_pagination(
        self, query: str, page_size: int, bookmark: str
    ) -> Tuple[StateQueryIteratorInterface, QueryResponseMetadata]:
        raise NotImplementedError


class TransactionContextInterface(ABC):
    @property
    @abstractmethod
    def stub(self) -> ChaincodeStubInterface: raise NotImplementedError


# --- 合约 ---

class Contract:
    """
    Base class for a set of transaction handlers. Handlers are methods
    decorated with @transaction whose first argument is the transaction
    context; they run synchronously inside a single transaction.
    """
    name: str = ""


def transaction(mode: TransactionMode = "submit", name: Optional[str] = None, aliases: Sequence[str] = ()) -> Callable[[F], F]:
    """Marks a Contract method as a transaction handler."""
    def decorator(func: F) -> F:
        func.__ledger_transaction__ = {  # type: ignore[attr-defined]
            "mode": mode,
            "name": name,
            "aliases": tuple(aliases),
        }
        return func
    return decorator


# --- 请求/响应与元数据模型 ---

class TransactionRequest(BaseModel):
    contract: str
    function: str
    args: List[Any] = Field(default_factory=list)


class TransactionResponse(BaseModel):
    tx_id: str
    result: Any = None


class TransactionReceipt(BaseModel):
    tx_id: str
    contract: str
    function: str
    write_keys: List[str] = Field(default_factory=list)


class ParameterMetadata(BaseModel):
    name: str
    schema_: Dict[str, Any] = Field(default_factory=dict, alias="schema")
    required: bool = True


class TransactionMetadata(BaseModel):
    name: str
    mode: TransactionMode
    aliases: List[str] = Field(default_factory=list)
    parameters: List[ParameterMetadata] = Field(default_factory=list)
    returns: Dict[str, Any] = Field(default_factory=dict)
    description: str = ""


class ContractMetadata(BaseModel):
    name: str
    transactions: List[TransactionMetadata] = Field(default_factory=list)
