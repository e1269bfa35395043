# plugins/core_ledger/__init__.py

import logging
from typing import List

from fastapi import APIRouter

from backend.core.contracts import Container, HookManager
from .contracts import Contract
from .executor import TransactionExecutor
from .registry import ContractRegistry
from .api import ledger_router

logger = logging.getLogger(__name__)


# --- 服务工厂 ---
def _create_transaction_executor(container: Container) -> TransactionExecutor:
    return TransactionExecutor(
        world_state=container.resolve("world_state"),
        registry=container.resolve("contract_registry"),
        hook_manager=container.resolve("hook_manager"),
    )


# --- 钩子实现 ---
async def install_contracts(container: Container, hook_manager: HookManager):
    """钩子实现：从其他插件收集合约并安装到注册表。"""
    registry: ContractRegistry = container.resolve("contract_registry")
    contracts: List[Contract] = await hook_manager.filter("collect_contracts", [])
    for contract in contracts:
        registry.register(contract)
    if contracts:
        logger.info(f"Installed {len(contracts)} contract(s): {[c.name for c in contracts]}")
    else:
        logger.warning("No contracts were collected; the ledger has no transaction handlers.")


async def provide_api_router(routers: List[APIRouter]) -> List[APIRouter]:
    routers.append(ledger_router)
    logger.debug("Provided ledger API router to the application.")
    return routers


# --- 主注册函数 ---
def register_plugin(container: Container, hook_manager: HookManager):
    logger.info("--> 正在注册 [core_ledger] 插件...")

    container.register("contract_registry", lambda: ContractRegistry(), singleton=True)
    container.register("transaction_executor", _create_transaction_executor, singleton=True)

    hook_manager.add_implementation(
        "services_post_register", install_contracts, plugin_name="core_ledger"
    )
    hook_manager.add_implementation(
        "collect_api_routers", provide_api_router, plugin_name="core_ledger"
    )

    logger.info("插件 [core_ledger] 注册成功。")
