# backend/container.py

import inspect
import logging
import threading
from typing import Any, Callable, Dict, List

from backend.core.contracts import Container as ContainerInterface

logger = logging.getLogger(__name__)


class Container(ContainerInterface):
    """
    节点进程内的服务容器。
    world_state、transaction_executor、contract_registry 等服务都在这里按名字注册和解析。
    单例在首次解析时创建；解析过程中检测循环依赖。
    """
    def __init__(self):
        self._factories: Dict[str, Callable] = {}
        self._singletons: Dict[str, bool] = {}
        self._instances: Dict[str, Any] = {}
        self._lock = threading.RLock()
        # 每个线程维护自己的解析链，用于报告循环依赖的完整路径
        self._local = threading.local()

    def _resolution_chain(self) -> List[str]:
        if not hasattr(self._local, 'chain'):
            self._local.chain = []
        return self._local.chain

    def register(self, name: str, factory: Callable, singleton: bool = True) -> None:
        if name in self._factories:
            logger.warning(f"Overwriting service registration for '{name}'")
        self._factories[name] = factory
        self._singletons[name] = singleton
        # 重新注册会让旧的单例失效
        self._instances.pop(name, None)

    def is_registered(self, name: str) -> bool:
        return name in self._factories

    @staticmethod
    def _takes_container(factory: Callable) -> bool:
        # 工厂只有在声明了一个必填位置参数（或 *args）时才会收到容器
        try:
            params = inspect.signature(factory).parameters.values()
        except (TypeError, ValueError):
            return False
        for p in params:
            if p.kind == p.VAR_POSITIONAL:
                return True
            if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty:
                return True
        return False

    def _build(self, name: str) -> Any:
        factory = self._factories[name]
        if self._takes_container(factory):
            return factory(self)
        return factory()

    def resolve(self, name: str) -> Any:
        chain = self._resolution_chain()
        if name in chain:
            path = " -> ".join(chain + [name])
            raise RuntimeError(f"Circular dependency detected: {path}")

        chain.append(name)
        try:
            if name not in self._factories:
                raise ValueError(f"Service '{name}' not found in container.")

            if not self._singletons[name]:
                return self._build(name)

            with self._lock:
                if name not in self._instances:
                    self._instances[name] = self._build(name)
                    logger.debug(f"Resolved singleton service '{name}'.")
                return self._instances[name]
        finally:
            chain.pop()
