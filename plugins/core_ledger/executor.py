# plugins/core_ledger/executor.py

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from backend.core.contracts import HookManager
from plugins.core_world_state.contracts import LedgerError, StoreWriteError, WorldStateInterface
from .contracts import InvalidArgumentError, TransactionReceipt, TransactionResponse
from .registry import ContractRegistry, RegisteredTransaction
from .stub import ChaincodeStub, TransactionContext

logger = logging.getLogger(__name__)


class TransactionExecutor:
    """
    Runs contract handlers against the world state.

    `submit` executes under a single lock, so transactions commit one at a
    time; a handler's write set is applied only if the handler returns
    normally. `evaluate` runs the same handler but never commits.
    """
    def __init__(
        self,
        world_state: WorldStateInterface,
        registry: ContractRegistry,
        hook_manager: Optional[HookManager] = None,
    ):
        self._world_state = world_state
        self._registry = registry
        self._hook_manager = hook_manager
        self._commit_lock = asyncio.Lock()

    @staticmethod
    def _coerce_args(registered: RegisteredTransaction, args: Sequence[Any]) -> Dict[str, Any]:
        name = registered.metadata.name
        parameters = registered.parameters
        required = sum(1 for p in parameters if p.required)
        if not required <= len(args) <= len(parameters):
            expected = str(required) if required == len(parameters) else f"{required} to {len(parameters)}"
            raise InvalidArgumentError(
                f"expected {expected} argument(s), got {len(args)}", operation=name
            )

        kwargs: Dict[str, Any] = {}
        for param, value in zip(parameters, args):
            try:
                kwargs[param.name] = param.adapter.validate_python(value)
            except ValidationError as e:
                message = e.errors()[0].get("msg", str(e))
                raise InvalidArgumentError(f"argument '{param.name}': {message}", operation=name) from e
        return kwargs

    def _run(self, stub: ChaincodeStub, contract: str, function: str, args: Sequence[Any]) -> Any:
        registered = self._registry.get_transaction(contract, function)
        kwargs = self._coerce_args(registered, args)
        return registered.handler(TransactionContext(stub), **kwargs)

    async def submit(self, contract: str, function: str, args: Sequence[Any] = ()) -> TransactionResponse:
        async with self._commit_lock:
            stub = ChaincodeStub(self._world_state)
            logger.debug(f"[{stub.tx_id}] submit {contract}:{function}")
            try:
                result = self._run(stub, contract, function, args)
                write_set = stub.write_set
                if stub.used_paginated_query and write_set:
                    raise StoreWriteError(
                        "paginated queries are only valid for read-only transactions", operation=function
                    )
                self._world_state.apply(write_set)
            except LedgerError as e:
                logger.warning(f"[{stub.tx_id}] {contract}:{function} rejected: {e}")
                raise

        write_keys: List[str] = sorted(write_set)
        logger.info(f"[{stub.tx_id}] {contract}:{function} committed ({len(write_keys)} key(s) written).")
        if self._hook_manager is not None:
            receipt = TransactionReceipt(
                tx_id=stub.tx_id, contract=contract, function=function, write_keys=write_keys
            )
            await self._hook_manager.trigger("transaction_committed", receipt=receipt)
        return TransactionResponse(tx_id=stub.tx_id, result=result)

    async def evaluate(self, contract: str, function: str, args: Sequence[Any] = ()) -> TransactionResponse:
        stub = ChaincodeStub(self._world_state)
        logger.debug(f"[{stub.tx_id}] evaluate {contract}:{function}")
        try:
            result = self._run(stub, contract, function, args)
        except LedgerError as e:
            logger.debug(f"[{stub.tx_id}] {contract}:{function} evaluation failed: {e}")
            raise
        return TransactionResponse(tx_id=stub.tx_id, result=result)
