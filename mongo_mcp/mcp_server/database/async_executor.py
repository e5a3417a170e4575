"""Async executor pool for running blocking MongoDB operations in a thread pool.

pymongo is synchronous. The FastMCP tool handlers are coroutines, so every store
call is pushed onto this shared ThreadPoolExecutor to keep the asyncio event
loop free to read further requests from stdio.

Example:
    >>> from mongo_mcp.mcp_server.database.async_executor import run_blocking
    >>> result = await run_blocking(gateway.execute, "users", operation, args)
"""

import asyncio
import functools
import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional, TypeVar

from mongo_mcp.config.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncExecutorPool:
    """Thread pool executor for running blocking operations asynchronously.

    Implements singleton pattern - use get_executor_pool() to retrieve instance.

    Attributes:
        DEFAULT_MAX_WORKERS: Pool size used when settings do not provide one
    """

    DEFAULT_MAX_WORKERS: int = 10
    _instance: Optional["AsyncExecutorPool"] = None
    _lock: threading.Lock = threading.Lock()

    def __new__(cls) -> "AsyncExecutorPool":
        """Implement singleton pattern with thread-safe instantiation.

        Note:
            Uses double-checked locking pattern for thread safety and performance.
        """
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return

        max_workers = getattr(settings, "async_executor_max_workers", self.DEFAULT_MAX_WORKERS)

        self._executor: ThreadPoolExecutor | None = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="mongo-mcp-worker-"
        )
        self._initialized = True

        logger.debug(f"AsyncExecutorPool initialized with {max_workers} workers")

    def get_executor(self) -> ThreadPoolExecutor:
        """Get the thread pool executor instance.

        Raises:
            RuntimeError: If the pool was already shut down
        """
        if self._executor is None:
            raise RuntimeError("AsyncExecutorPool has been shut down")
        return self._executor

    def shutdown(self, wait: bool = True) -> None:
        """Shut the pool down. Called once at process teardown.

        Args:
            wait: If True, wait for in-flight operations to complete
        """
        if self._executor is not None:
            logger.info(f"Shutting down AsyncExecutorPool (wait={wait})...")
            self._executor.shutdown(wait=wait)
            self._executor = None
            logger.info("AsyncExecutorPool shutdown complete")


# Global singleton instance
_executor_pool: AsyncExecutorPool | None = None


def get_executor_pool() -> AsyncExecutorPool:
    """Get the global singleton AsyncExecutorPool instance."""
    global _executor_pool
    if _executor_pool is None:
        _executor_pool = AsyncExecutorPool()
    return _executor_pool


async def run_blocking(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run ``func(*args, **kwargs)`` on the shared pool and await its result.

    Exceptions raised by ``func`` propagate to the awaiting coroutine unchanged.
    """
    loop = asyncio.get_running_loop()
    executor = get_executor_pool().get_executor()
    return await loop.run_in_executor(executor, functools.partial(func, *args, **kwargs))
