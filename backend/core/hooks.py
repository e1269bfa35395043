# backend/core/hooks.py
import asyncio
import inspect
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from backend.core.contracts import HookManager as HookManagerInterface, Container

logger = logging.getLogger(__name__)

T = TypeVar('T')

HookCallable = Callable[..., Awaitable[Any]]


@dataclass(order=True)
class HookImplementation:
    """一个已注册的钩子实现。priority 越小越先执行。"""
    priority: int
    func: HookCallable = field(compare=False)
    plugin_name: str = field(compare=False, default="<unknown>")


class HookManager(HookManagerInterface):
    """
    插件之间的事件总线。

    三种调用方式:
      - trigger: 通知型，并发执行所有实现，异常只记录不传播；
      - trigger_strict: 严格通知型，按优先级顺序执行，异常向调用方传播；
      - filter:  过滤型，按优先级串联，每个实现接收并返回数据；
      - decide:  决策型，从高优先级到低优先级，返回第一个非 None 的结果。

    钩子函数只会收到它在签名中声明过的上下文参数（container、hook_manager 以及调用时传入的关键字）。
    """
    def __init__(self, container: Optional[Container] = None):
        self._hooks: Dict[str, List[HookImplementation]] = defaultdict(list)
        self._shared_context: Dict[str, Any] = {"hook_manager": self}
        if container is not None:
            self._shared_context["container"] = container
        logger.info("HookManager initialized.")

    @property
    def hook_names(self) -> List[str]:
        return list(self._hooks.keys())

    def add_shared_context(self, name: str, service: Any) -> None:
        if name in self._shared_context:
            logger.warning(f"Overwriting shared context for hooks: '{name}'")
        self._shared_context[name] = service

    @staticmethod
    def _select_kwargs(func: HookCallable, call_context: Dict[str, Any], skip_first: bool = False) -> Dict[str, Any]:
        params = list(inspect.signature(func).parameters.values())
        if skip_first and params:
            params = params[1:]
        if any(p.kind == p.VAR_KEYWORD for p in params):
            return dict(call_context)
        return {p.name: call_context[p.name] for p in params if p.name in call_context}

    def add_implementation(
        self,
        hook_name: str,
        implementation: HookCallable,
        priority: int = 10,
        plugin_name: str = "<core>"
    ):
        if not asyncio.iscoroutinefunction(implementation):
            raise TypeError(f"Hook implementation for '{hook_name}' must be an async function.")

        self._hooks[hook_name].append(
            HookImplementation(priority=priority, func=implementation, plugin_name=plugin_name)
        )
        self._hooks[hook_name].sort()
        logger.debug(f"Registered hook '{hook_name}' from plugin '{plugin_name}' with priority {priority}.")

    async def trigger(self, hook_name: str, **kwargs: Any) -> None:
        implementations = self._hooks.get(hook_name)
        if not implementations:
            return

        call_context = {**self._shared_context, **kwargs}
        results = await asyncio.gather(
            *(impl.func(**self._select_kwargs(impl.func, call_context)) for impl in implementations),
            return_exceptions=True
        )

        for impl, result in zip(implementations, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Error in NOTIFICATION hook '{hook_name}' from plugin '{impl.plugin_name}': {result}",
                    exc_info=result
                )

    async def trigger_strict(self, hook_name: str, **kwargs: Any) -> None:
        """
        按优先级顺序依次执行所有实现，第一个异常直接向调用方传播。
        用于启动初始化这类失败后不能继续运行的通知。
        """
        implementations = self._hooks.get(hook_name)
        if not implementations:
            return

        call_context = {**self._shared_context, **kwargs}
        for impl in implementations:
            try:
                await impl.func(**self._select_kwargs(impl.func, call_context))
            except Exception:
                logger.error(f"Error in STRICT hook '{hook_name}' from plugin '{impl.plugin_name}'; aborting.")
                raise

    async def filter(self, hook_name: str, data: T, **kwargs: Any) -> T:
        implementations = self._hooks.get(hook_name)
        if not implementations:
            return data

        call_context = {**self._shared_context, **kwargs}
        current_data = data
        for impl in implementations:
            try:
                prepared = self._select_kwargs(impl.func, call_context, skip_first=True)
                current_data = await impl.func(current_data, **prepared)
            except Exception as e:
                logger.error(
                    f"Error in FILTER hook '{hook_name}' from plugin '{impl.plugin_name}'. Skipping. Error: {e}",
                    exc_info=e
                )
        return current_data

    async def decide(self, hook_name: str, **kwargs: Any) -> Optional[Any]:
        implementations = self._hooks.get(hook_name)
        if not implementations:
            return None

        call_context = {**self._shared_context, **kwargs}
        for impl in reversed(implementations):
            try:
                result = await impl.func(**self._select_kwargs(impl.func, call_context))
            except Exception as e:
                logger.error(
                    f"Error in DECIDE hook '{hook_name}' from plugin '{impl.plugin_name}'. Skipping. Error: {e}",
                    exc_info=e
                )
                continue
            if result is not None:
                logger.debug(f"DECIDE hook '{hook_name}' resolved by plugin '{impl.plugin_name}'.")
                return result
        return None
