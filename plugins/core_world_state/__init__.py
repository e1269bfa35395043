# plugins/core_world_state/__init__.py
import os
import logging

from backend.core.contracts import Container, HookManager, BackgroundTaskManager
from .contracts import WorldStateInterface, WorldStatePersistenceInterface
from .service import WorldStatePersistenceService
from .stores import DEFAULT_INTERNAL_QUERY_LIMIT, STATE_DB_COUCHDB, InMemoryWorldState

logger = logging.getLogger(__name__)


def _create_world_state() -> InMemoryWorldState:
    return InMemoryWorldState(
        state_database=os.getenv("LEDGER_STATE_DATABASE", STATE_DB_COUCHDB),
        internal_query_limit=int(os.getenv("LEDGER_INTERNAL_QUERY_LIMIT", str(DEFAULT_INTERNAL_QUERY_LIMIT))),
    )


def _create_persistence_service() -> WorldStatePersistenceService:
    return WorldStatePersistenceService(data_dir=os.environ["LEDGER_DATA_DIR"])


# --- 钩子实现 ---

async def restore_world_state(container: Container):
    """
    钩子实现: 节点启动时，从磁盘快照恢复 world state。
    快照损坏时异常向上传播，节点拒绝启动，磁盘上的快照保持原样。
    """
    if not container.is_registered("world_state_persistence"):
        logger.info("LEDGER_DATA_DIR not set; world state is in-memory only.")
        return
    persistence: WorldStatePersistenceInterface = container.resolve("world_state_persistence")
    world_state: WorldStateInterface = container.resolve("world_state")
    entries = await persistence.load()
    if entries is None:
        logger.info("No world state snapshot found; starting from an empty ledger.")
        return
    world_state.load(entries)


async def save_world_state(container: Container):
    """后台任务: 写出当前已提交的 world state。执行时读取最新状态，因此排队顺序无关紧要。"""
    persistence: WorldStatePersistenceInterface = container.resolve("world_state_persistence")
    world_state: WorldStateInterface = container.resolve("world_state")
    await persistence.save(dict(world_state.items()))


async def schedule_snapshot(container: Container, task_manager: BackgroundTaskManager, receipt):
    """钩子实现: 每笔写交易提交后，排队一次快照写盘。"""
    if not receipt.write_keys or not container.is_registered("world_state_persistence"):
        return
    task_manager.submit_task(save_world_state)


async def flush_on_shutdown(container: Container):
    if container.is_registered("world_state_persistence"):
        await save_world_state(container)
        logger.info("World state flushed to disk on shutdown.")


def register_plugin(container: Container, hook_manager: HookManager):
    logger.info("--> 正在注册 [core_world_state] 插件...")

    container.register("world_state", _create_world_state, singleton=True)
    if os.getenv("LEDGER_DATA_DIR"):
        container.register("world_state_persistence", _create_persistence_service, singleton=True)

    hook_manager.add_implementation(
        "services_post_register", restore_world_state, priority=10, plugin_name="core_world_state"
    )
    hook_manager.add_implementation(
        "transaction_committed", schedule_snapshot, plugin_name="core_world_state"
    )
    hook_manager.add_implementation(
        "app_shutdown", flush_on_shutdown, plugin_name="core_world_state"
    )
    logger.info("插件 [core_world_state] 注册成功。")
