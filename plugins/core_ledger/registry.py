# plugins/core_ledger/registry.py

import inspect
import logging
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from pydantic import TypeAdapter

from .contracts import (
    Contract,
    ContractMetadata,
    ParameterMetadata,
    TransactionMetadata,
    TransactionNotFoundError,
)

logger = logging.getLogger(__name__)


def to_transaction_name(method_name: str) -> str:
    """create_asset -> CreateAsset"""
    return "".join(part[:1].upper() + part[1:] for part in method_name.split("_") if part)


@dataclass
class ParameterAdapter:
    name: str
    adapter: TypeAdapter
    default: Any = inspect.Parameter.empty

    @property
    def required(self) -> bool:
        return self.default is inspect.Parameter.empty


@dataclass
class RegisteredTransaction:
    handler: Callable[..., Any]
    metadata: TransactionMetadata
    parameters: List[ParameterAdapter]


class ContractRegistry:
    def __init__(self):
        self._contracts: Dict[str, Contract] = {}
        self._transactions: Dict[str, Dict[str, RegisteredTransaction]] = {}
        self._metadata: Dict[str, ContractMetadata] = {}

    def register(self, contract: Contract) -> None:
        """
        向注册表注册一个合约实例，并为其每个交易函数生成元数据与参数适配器。
        """
        if not contract.name:
            raise ValueError(f"Contract {type(contract).__name__} has no name.")
        if contract.name in self:
            logger.warning(f"Overwriting contract registration for '{contract.name}'.")

        transactions: Dict[str, RegisteredTransaction] = {}
        metadata = ContractMetadata(name=contract.name)

        for attr_name, member in inspect.getmembers(type(contract), predicate=inspect.isfunction):
            marker = getattr(member, "__ledger_transaction__", None)
            if marker is None:
                continue
            registered = self._build_transaction(contract, attr_name, marker)
            for name in [registered.metadata.name, *registered.metadata.aliases]:
                if name in transactions:
                    raise ValueError(f"Duplicate transaction name '{name}' in contract '{contract.name}'.")
                transactions[name] = registered
            metadata.transactions.append(registered.metadata)

        self._contracts[contract.name] = contract
        self._transactions[contract.name] = transactions
        self._metadata[contract.name] = metadata
        logger.debug(f"Contract '{contract.name}' registered with {len(metadata.transactions)} transaction(s).")

    @staticmethod
    def _build_transaction(contract: Contract, attr_name: str, marker: Dict[str, Any]) -> RegisteredTransaction:
        func = getattr(type(contract), attr_name)
        hints = typing.get_type_hints(func)
        params = list(inspect.signature(func).parameters.values())[2:]  # 跳过 self 与 ctx

        adapters: List[ParameterAdapter] = []
        parameters: List[ParameterMetadata] = []
        for param in params:
            adapter = TypeAdapter(hints.get(param.name, Any))
            adapters.append(ParameterAdapter(name=param.name, adapter=adapter, default=param.default))
            parameters.append(ParameterMetadata(
                name=param.name,
                schema=adapter.json_schema(),
                required=param.default is inspect.Parameter.empty,
            ))

        returns: Dict[str, Any] = {}
        return_hint = hints.get("return")
        if return_hint is not None and return_hint is not type(None):
            returns = TypeAdapter(return_hint).json_schema(by_alias=True)

        metadata = TransactionMetadata(
            name=marker["name"] or to_transaction_name(attr_name),
            mode=marker["mode"],
            aliases=list(marker["aliases"]),
            parameters=parameters,
            returns=returns,
            description=inspect.cleandoc(func.__doc__ or "").split("\n", 1)[0],
        )
        return RegisteredTransaction(
            handler=getattr(contract, attr_name), metadata=metadata, parameters=adapters
        )

    def get_transaction(self, contract_name: str, function: str) -> RegisteredTransaction:
        transactions = self._transactions.get(contract_name)
        if transactions is None:
            raise TransactionNotFoundError(f"contract '{contract_name}' is not installed", operation=function)
        registered = transactions.get(function)
        if registered is None:
            raise TransactionNotFoundError(
                f"function '{function}' not found in contract '{contract_name}'", operation=function
            )
        return registered

    def metadata(self) -> List[ContractMetadata]:
        return [self._metadata[name] for name in sorted(self._metadata)]

    def __contains__(self, contract_name: str) -> bool:
        return contract_name in self._contracts
