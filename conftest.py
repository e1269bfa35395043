# conftest.py

import pytest
from typing import AsyncGenerator, Tuple

from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager

from backend.app import create_app
from backend.core.contracts import Container, HookManager

LEDGER_ENV_VARS = (
    "LEDGER_STATE_DATABASE",
    "LEDGER_INTERNAL_QUERY_LIMIT",
    "LEDGER_DATA_DIR",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """清空所有节点配置相关的环境变量，测试从默认配置开始。"""
    for name in LEDGER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def app(clean_env: pytest.MonkeyPatch) -> FastAPI:
    """
    每个测试一个全新的应用实例：world state 只存在于内存中，
    测试之间不会共享任何账本数据。
    """
    return create_app()


@pytest.fixture
async def started_app(app: FastAPI) -> AsyncGenerator[FastAPI, None]:
    """运行完整的 lifespan：插件加载、合约安装、路由收集。"""
    async with LifespanManager(app):
        yield app


@pytest.fixture
async def client(started_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=started_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def node_services(started_app: FastAPI) -> Tuple[Container, HookManager]:
    """【集成测试基础】返回已启动节点的容器与钩子管理器。"""
    container: Container = started_app.state.container
    return container, container.resolve("hook_manager")
