# plugins/asset_registry/__init__.py

import logging
from typing import List

from fastapi import APIRouter

from backend.core.contracts import Container, HookManager
from plugins.core_ledger.contracts import Contract
from .contract import AssetContract

logger = logging.getLogger(__name__)


# --- 钩子实现 ---
async def provide_asset_contract(contracts: List[Contract]) -> List[Contract]:
    contracts.append(AssetContract())
    return contracts


async def provide_api_router(routers: List[APIRouter]) -> List[APIRouter]:
    from .api import asset_router, registry_router
    routers.extend([asset_router, registry_router])
    logger.debug("Provided asset API routers to the application.")
    return routers


def register_plugin(container: Container, hook_manager: HookManager):
    logger.info("--> 正在注册 [asset_registry] 插件...")

    hook_manager.add_implementation(
        "collect_contracts", provide_asset_contract, plugin_name="asset_registry"
    )
    hook_manager.add_implementation(
        "collect_api_routers", provide_api_router, plugin_name="asset_registry"
    )

    logger.info("插件 [asset_registry] 注册成功。")
