"""Tests for the memoized rule/catalog loader."""

import asyncio
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from app_analyzer.loader import MemoizedLoader


class CountingLoad:
    """Load function that records how often it ran."""

    def __init__(self, value="catalog", delay: float = 0.0, failures: int = 0):
        self.value = value
        self.delay = delay
        self.failures = failures
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self.calls += 1
            call = self.calls
        if self.delay:
            time.sleep(self.delay)
        if call <= self.failures:
            raise RuntimeError(f"load {call} failed")
        return self.value


class TestMemoizedLoader:
    """Tests for load-once semantics."""

    def test_loads_once(self):
        load = CountingLoad()
        loader = MemoizedLoader(load)
        assert loader.get() == "catalog"
        assert loader.get() == "catalog"
        assert load.calls == 1
        assert loader.load_count == 1
        assert loader.loaded

    def test_returns_same_object(self):
        loader = MemoizedLoader(lambda: {"rules": []})
        assert loader.get() is loader.get()

    def test_not_loaded_before_first_get(self):
        loader = MemoizedLoader(CountingLoad())
        assert not loader.loaded
        assert loader.load_count == 0

    def test_concurrent_threads_share_one_load(self):
        load = CountingLoad(delay=0.05)
        loader = MemoizedLoader(load)
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: loader.get(), range(16)))
        assert results == ["catalog"] * 16
        assert load.calls == 1

    def test_concurrent_coroutines_share_one_load(self):
        load = CountingLoad(delay=0.05)
        loader = MemoizedLoader(load)

        async def run_all():
            return await asyncio.gather(*[loader.aget() for _ in range(10)])

        assert asyncio.run(run_all()) == ["catalog"] * 10
        assert load.calls == 1

    def test_sync_and_async_share_the_cache(self):
        load = CountingLoad()
        loader = MemoizedLoader(load)
        loader.get()
        assert asyncio.run(loader.aget()) == "catalog"
        assert load.calls == 1


class TestMemoizedLoaderFailures:
    """A failed load is reported and retried on the next call."""

    def test_failure_propagates(self):
        loader = MemoizedLoader(CountingLoad(failures=1))
        with pytest.raises(RuntimeError, match="load 1 failed"):
            loader.get()
        assert not loader.loaded

    def test_retry_after_failure(self):
        load = CountingLoad(failures=1)
        loader = MemoizedLoader(load)
        with pytest.raises(RuntimeError):
            loader.get()
        assert loader.get() == "catalog"
        assert load.calls == 2
        assert loader.load_count == 2

    def test_async_retry_after_failure(self):
        load = CountingLoad(failures=1)
        loader = MemoizedLoader(load)
        with pytest.raises(RuntimeError):
            asyncio.run(loader.aget())
        assert asyncio.run(loader.aget()) == "catalog"
        assert load.calls == 2

    def test_waiters_see_the_same_failure(self):
        load = CountingLoad(delay=0.05, failures=1)
        loader = MemoizedLoader(load)

        def attempt(_):
            try:
                return loader.get()
            except RuntimeError as e:
                return str(e)

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(attempt, range(4)))
        # Every waiter of the first load saw its failure; any later call loaded successfully
        assert "load 1 failed" in results
        assert set(results) <= {"load 1 failed", "catalog"}
