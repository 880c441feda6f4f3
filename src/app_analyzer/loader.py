"""Memoized loading of rule tables and catalogs.

A `MemoizedLoader` is an explicit cache handle around a zero-argument load
function. The first caller runs the load; callers arriving while it is in
flight wait on the same future; later callers get the stored value.
"""

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MemoizedLoader(Generic[T]):
    """Load a value at most once and share it with every caller.

    Both the synchronous `get()` and the asynchronous `aget()` entry points
    share one in-flight load. If the load fails, every waiter sees the
    exception and the next call starts a fresh load.
    """

    def __init__(self, load: Callable[[], T], name: str = "catalog"):
        self._load = load
        self.name = name
        self._lock = threading.Lock()
        self._future: Optional[Future] = None
        self.load_count = 0

    @property
    def loaded(self) -> bool:
        future = self._future
        return future is not None and future.done() and future.exception() is None

    def _claim(self) -> tuple[Future, bool]:
        """Return the shared future and whether the caller must run the load."""
        with self._lock:
            if self._future is None:
                self._future = Future()
                return self._future, True
            return self._future, False

    def _run(self, future: Future) -> None:
        self.load_count += 1
        logger.debug("Loading %s (load #%d)", self.name, self.load_count)
        try:
            value = self._load()
        except Exception as e:
            with self._lock:
                if self._future is future:
                    self._future = None
            future.set_exception(e)
            return
        future.set_result(value)

    def get(self) -> T:
        """Return the loaded value, loading it on first use."""
        future, owner = self._claim()
        if owner:
            self._run(future)
        return future.result()

    async def aget(self) -> T:
        """Return the loaded value without blocking the event loop."""
        future, owner = self._claim()
        if owner:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._run, future)
        return await asyncio.wrap_future(future)
