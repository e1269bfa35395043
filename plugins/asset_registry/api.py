# plugins/asset_registry/api.py

import logging
from typing import Any, List

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from backend.core.dependencies import Service
from plugins.core_ledger.api import response_payload, to_http_exception
from plugins.core_ledger.executor import TransactionExecutor
from plugins.core_world_state.contracts import LedgerError
from .contract import AssetContract

logger = logging.getLogger(__name__)

CONTRACT = AssetContract.name

asset_router = APIRouter(
    prefix="/api/assets",
    tags=["Assets"]
)

# /api/assets 下的单段路径都是 CID，ping 与示例数据路由放在单独的前缀下
registry_router = APIRouter(
    prefix="/api/asset-registry",
    tags=["Assets"]
)


# --- 请求体模型 ---
class CreateAssetRequest(BaseModel):
    cid: str
    id: str
    type: str
    features: str = "[]"


class QueryAssetsRequest(BaseModel):
    query: str = Field(..., description="Rich query string in the state database's selector syntax.")
    page_size: int = 0
    bookmark: str = ""


async def _submit(executor: TransactionExecutor, function: str, args: List[Any]) -> Any:
    try:
        return await executor.submit(CONTRACT, function, args)
    except LedgerError as e:
        raise to_http_exception(e)


async def _evaluate(executor: TransactionExecutor, function: str, args: List[Any]) -> Any:
    try:
        return await executor.evaluate(CONTRACT, function, args)
    except LedgerError as e:
        raise to_http_exception(e)


@asset_router.get("")
async def list_assets(
    page_size: int = Query(0, description="0 or less means the node's internal query limit."),
    bookmark: str = "",
    executor: TransactionExecutor = Depends(Service("transaction_executor")),
):
    """按键顺序分页列出资产。"""
    response = await _evaluate(executor, "ReadAssets", [page_size, bookmark])
    return response_payload(response.tx_id, response.result)


@asset_router.post("", status_code=status.HTTP_201_CREATED)
async def create_asset(
    request: CreateAssetRequest,
    executor: TransactionExecutor = Depends(Service("transaction_executor")),
):
    response = await _submit(
        executor, "CreateAsset", [request.cid, request.id, request.type, request.features]
    )
    return {"tx_id": response.tx_id, "cid": request.cid}


@asset_router.post("/query")
async def query_assets(
    request: QueryAssetsRequest,
    executor: TransactionExecutor = Depends(Service("transaction_executor")),
):
    """Runs a rich query; rejected with 503 when the state database cannot serve it."""
    response = await _evaluate(executor, "QueryAssets", [request.query, request.page_size, request.bookmark])
    return response_payload(response.tx_id, response.result)


@asset_router.get("/{cid}")
async def read_asset(cid: str, executor: TransactionExecutor = Depends(Service("transaction_executor"))):
    response = await _evaluate(executor, "ReadAsset", [cid])
    return response_payload(response.tx_id, response.result)


@asset_router.get("/{cid}/exists")
async def asset_exists(cid: str, executor: TransactionExecutor = Depends(Service("transaction_executor"))):
    response = await _evaluate(executor, "AssetExists", [cid])
    return {"cid": cid, "exists": response.result}


@asset_router.delete("/{cid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_asset(cid: str, executor: TransactionExecutor = Depends(Service("transaction_executor"))):
    await _submit(executor, "DeleteAsset", [cid])
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@registry_router.get("/ping")
async def ping(executor: TransactionExecutor = Depends(Service("transaction_executor"))):
    response = await _evaluate(executor, "Ping", [])
    return response_payload(response.tx_id, response.result)


@registry_router.post("/seed", status_code=status.HTTP_201_CREATED)
async def seed_ledger(executor: TransactionExecutor = Depends(Service("transaction_executor"))):
    response = await _submit(executor, "SeedLedger", [])
    return {"tx_id": response.tx_id}


@registry_router.delete("/seed", status_code=status.HTTP_204_NO_CONTENT)
async def delete_seeded_assets(executor: TransactionExecutor = Depends(Service("transaction_executor"))):
    await _submit(executor, "DeleteSeededAssets", [])
    return Response(status_code=status.HTTP_204_NO_CONTENT)
