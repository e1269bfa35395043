# backend/core/tasks.py

import asyncio
import logging
from typing import Any, Callable, Coroutine, List

from backend.core.contracts import Container, BackgroundTaskManager as BackgroundTaskManagerInterface

logger = logging.getLogger(__name__)


class BackgroundTaskManager(BackgroundTaskManagerInterface):
    """
    进程级的后台任务队列。
    用于交易提交之后的善后工作（例如把 world state 快照写盘），交易处理函数本身从不使用它。
    任务协程的第一个参数总是 container。
    """
    def __init__(self, container: Container, max_workers: int = 2):
        self._container = container
        self._queue: asyncio.Queue = asyncio.Queue()
        self._workers: List[asyncio.Task] = []
        self._max_workers = max_workers
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self) -> None:
        if self._is_running:
            logger.warning("BackgroundTaskManager is already running.")
            return
        logger.info(f"Starting {self._max_workers} background worker(s)...")
        self._workers = [
            asyncio.create_task(self._worker(f"worker-{i}")) for i in range(self._max_workers)
        ]
        self._is_running = True

    async def stop(self) -> None:
        if not self._is_running:
            return
        logger.info("Draining background queue before shutdown...")
        await self._queue.join()
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        self._is_running = False
        logger.info("Background workers stopped.")

    def submit_task(self, coro_func: Callable[..., Coroutine], *args: Any, **kwargs: Any) -> None:
        if not self._is_running:
            logger.error(f"Cannot submit '{coro_func.__name__}': background task manager is not running.")
            return
        self._queue.put_nowait((coro_func, args, kwargs))
        logger.debug(f"Task '{coro_func.__name__}' queued.")

    async def _worker(self, name: str) -> None:
        while True:
            coro_func, args, kwargs = await self._queue.get()
            try:
                await coro_func(self._container, *args, **kwargs)
            except Exception:
                logger.exception(f"Background worker '{name}' failed while running '{coro_func.__name__}'.")
            finally:
                self._queue.task_done()
