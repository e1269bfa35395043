# plugins/core_api/__init__.py
import logging
from typing import List
from fastapi import APIRouter

from backend.core.contracts import Container, HookManager


logger = logging.getLogger(__name__)


async def provide_own_routers(routers: List[APIRouter]) -> List[APIRouter]:
    """钩子实现：把平台元信息路由加入应用。在函数内导入，确保只在收集路由时才加载模块。"""
    from .system_router import system_api_router

    logger.debug(f"[core_api] Appending system_api_router (prefix='{system_api_router.prefix}', {len(system_api_router.routes)} routes)")
    routers.append(system_api_router)
    return routers


# --- Main Registration Function ---
def register_plugin(container: Container, hook_manager: HookManager):
    """
    Registers the core_api plugin. Its only job is to expose platform-level
    introspection endpoints.
    """
    logger.info("--> 正在注册 [core_api] 插件...")

    hook_manager.add_implementation(
        "collect_api_routers",
        provide_own_routers,
        priority=100,
        plugin_name="core_api"
    )
    logger.info("插件 [core_api] 注册成功。")
