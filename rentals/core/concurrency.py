"""
Thread coordination helpers: per-key locks and single-flight calls.
"""

import threading
from concurrent.futures import Future
from contextlib import contextmanager
from typing import Any, Callable, Dict, Hashable, Iterator, Tuple


class KeyedLock:
    """
    A registry of locks keyed by an arbitrary hashable.

    Holders of different keys never block each other. A key's lock is
    dropped from the registry once nobody holds or waits for it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, Tuple[threading.Lock, int]] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, users + 1)

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                _, users = self._locks[key]
                if users <= 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)

    def __len__(self) -> int:
        return len(self._locks)


class SingleFlight:
    """
    Collapse concurrent calls for the same key into one.

    The first caller for a key runs the function; callers arriving while it
    is in flight wait for and share its result, or its exception.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._calls: Dict[Hashable, Future] = {}

    def do(self, key: Hashable, fn: Callable[[], Any]) -> Any:
        with self._lock:
            future = self._calls.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._calls[key] = future

        if not leader:
            return future.result()

        try:
            result = fn()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._calls.pop(key, None)

    def in_flight(self) -> int:
        return len(self._calls)
