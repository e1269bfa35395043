# backend/app.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, APIRouter
from fastapi.middleware.cors import CORSMiddleware

from backend.container import Container
from backend.core.hooks import HookManager
from backend.core.loader import PluginLoader
from backend.core.tasks import BackgroundTaskManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- 启动阶段 ---
    container = Container()
    hook_manager = HookManager(container)

    # 1. 平台核心服务
    container.register("container", lambda: container)
    container.register("hook_manager", lambda: hook_manager)

    task_manager = BackgroundTaskManager(container)
    container.register("task_manager", lambda: task_manager)
    hook_manager.add_shared_context("task_manager", task_manager)

    # 2. 同步注册所有插件（core_logging 最先注册）
    PluginLoader(container, hook_manager).load_plugins()

    app.state.container = container
    hook_manager.add_shared_context("app", app)

    # 3. 异步初始化：world state 加载、合约收集等。任何失败都终止启动
    logger.info("Triggering 'services_post_register'...")
    await hook_manager.trigger_strict('services_post_register')

    task_manager.start()

    # 4. 收集各插件的 API 路由
    routers: list[APIRouter] = await hook_manager.filter("collect_api_routers", [])
    if routers:
        for router in routers:
            app.include_router(router)
            logger.debug(f"Included router: prefix='{router.prefix}', tags={router.tags}")
        logger.info(f"Included {len(routers)} router(s) from plugins.")
    else:
        logger.warning("No API routers were collected from plugins.")

    await hook_manager.trigger('app_startup_complete')
    logger.info("--- Asset ledger node is ready ---")

    yield

    # --- 关闭阶段 ---
    logger.info("--- Asset ledger node is shutting down ---")
    await hook_manager.trigger('app_shutdown')
    await task_manager.stop()


def create_app() -> FastAPI:
    """应用工厂函数"""
    app = FastAPI(
        title="Asset Ledger Node",
        description="Ledger-state asset registry served as transaction handlers over a world-state store.",
        version="0.3.0",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app
