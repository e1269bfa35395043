# plugins/core_ledger/api.py

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic_core import to_jsonable_python

from backend.core.dependencies import Service
from plugins.core_world_state.contracts import LedgerError
from .contracts import ContractMetadata, TransactionRequest
from .executor import TransactionExecutor
from .registry import ContractRegistry

logger = logging.getLogger(__name__)

ledger_router = APIRouter(
    prefix="/api/ledger",
    tags=["Ledger"]
)


def to_http_exception(error: LedgerError) -> HTTPException:
    """Maps a ledger failure onto its HTTP status, keeping the error code and operation."""
    if error.http_status >= 500:
        logger.error(f"Ledger failure in '{error.operation}': {error.message}")
    return HTTPException(status_code=error.http_status, detail=error.to_dict())


def response_payload(tx_id: str, result: Any) -> Dict[str, Any]:
    return {"tx_id": tx_id, "result": to_jsonable_python(result, by_alias=True)}


@ledger_router.get("/contracts", response_model=List[ContractMetadata], response_model_by_alias=True)
async def list_contracts(registry: ContractRegistry = Depends(Service("contract_registry"))):
    """列出所有已安装合约及其交易函数的元数据。"""
    return registry.metadata()


@ledger_router.post("/transactions/submit")
async def submit_transaction(
    request: TransactionRequest,
    executor: TransactionExecutor = Depends(Service("transaction_executor"))
):
    """Executes a transaction and commits its writes."""
    try:
        response = await executor.submit(request.contract, request.function, request.args)
    except LedgerError as e:
        raise to_http_exception(e)
    return response_payload(response.tx_id, response.result)


@ledger_router.post("/transactions/evaluate")
async def evaluate_transaction(
    request: TransactionRequest,
    executor: TransactionExecutor = Depends(Service("transaction_executor"))
):
    """Executes a transaction without committing anything; used for queries."""
    try:
        response = await executor.evaluate(request.contract, request.function, request.args)
    except LedgerError as e:
        raise to_http_exception(e)
    return response_payload(response.tx_id, response.result)
