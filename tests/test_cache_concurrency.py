import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from rentals.core.cache import InMemoryBackend, RedisBackend
from rentals.core.concurrency import KeyedLock, SingleFlight
from rentals.core.exceptions import CacheError


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_memory_backend_evicts_oldest_write():
    cache = InMemoryBackend(max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)

    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.get("c") == 3


def test_memory_backend_rewrite_refreshes_position():
    cache = InMemoryBackend(max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    cache.set("c", 3)

    assert cache.get("a") == 10
    assert cache.get("b") is None


def test_memory_backend_expires_with_ttl():
    clock = FakeClock()
    cache = InMemoryBackend(default_ttl=60, clock=clock)
    cache.set("k", "v")

    clock.now = 59
    assert cache.get("k") == "v"
    clock.now = 60
    assert cache.get("k") is None


def test_memory_backend_without_ttl_keeps_entries():
    clock = FakeClock()
    cache = InMemoryBackend(clock=clock)
    cache.set("k", "v")
    clock.now = 10 ** 9
    assert cache.get("k") == "v"


def test_memory_backend_clear_reports_count():
    cache = InMemoryBackend()
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.clear() == 2
    assert cache.get("a") is None


def test_memory_backend_rejects_zero_capacity():
    with pytest.raises(ValueError):
        InMemoryBackend(max_entries=0)


class _BrokenRedis:
    def get(self, key):
        raise RedisConnectionError("down")


def test_redis_errors_become_cache_errors():
    backend = RedisBackend(_BrokenRedis(), namespace="geocode")
    with pytest.raises(CacheError):
        backend.get("k")


def test_keyed_lock_serializes_same_key():
    locks = KeyedLock()
    inside = []
    overlap = []

    def work():
        with locks.hold("supplier-1"):
            inside.append(1)
            if len(inside) > 1:
                overlap.append(True)
            threading.Event().wait(0.01)
            inside.pop()

    with ThreadPoolExecutor(max_workers=4) as pool:
        for _ in range(8):
            pool.submit(work)

    assert overlap == []
    assert len(locks) == 0


def test_keyed_lock_does_not_block_other_keys():
    locks = KeyedLock()
    with locks.hold("a"):
        acquired = threading.Event()

        def other():
            with locks.hold("b"):
                acquired.set()

        t = threading.Thread(target=other)
        t.start()
        assert acquired.wait(1)
        t.join()


def test_single_flight_runs_once_for_concurrent_callers():
    flight = SingleFlight()
    release = threading.Event()
    calls = []

    def load():
        calls.append(1)
        release.wait(2)
        return "value"

    with ThreadPoolExecutor(max_workers=5) as pool:
        futures = [pool.submit(flight.do, "key", load) for _ in range(5)]
        while flight.in_flight() == 0:
            threading.Event().wait(0.001)
        threading.Event().wait(0.05)
        release.set()
        results = [f.result(timeout=2) for f in futures]

    assert results == ["value"] * 5
    assert len(calls) == 1
    assert flight.in_flight() == 0


def test_single_flight_shares_exceptions_and_forgets_key():
    flight = SingleFlight()

    def boom():
        raise RuntimeError("failed")

    with pytest.raises(RuntimeError):
        flight.do("key", boom)
    assert flight.do("key", lambda: 1) == 1
