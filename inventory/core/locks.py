"""
Per-key locking for session-scoped state.

Keys: lock:session:{token}. Each key gets its own reentrant lock so that
unrelated sessions never serialize on each other; the registry guard is only
held while looking a lock up.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Generator, Optional

LOCK_TIMEOUT_SECONDS = 30


def lock_key_session(token: str) -> str:
    return f"lock:session:{token}"


class KeyedLocks:
    """Registry of named reentrant locks"""

    def __init__(self, timeout_seconds: float = LOCK_TIMEOUT_SECONDS):
        self.timeout_seconds = timeout_seconds
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def get(self, key: str, create: bool = True) -> Optional[threading.RLock]:
        """Return the lock for `key`; with create=False a forgotten key gives None"""
        with self._guard:
            lock = self._locks.get(key)
            if lock is None and create:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def acquire(
        self, key: str, timeout_seconds: float | None = None, create: bool = True
    ) -> Generator[bool, None, None]:
        """
        Acquire the lock for `key` and yield True.
        Blocks until acquired or timeout, then raises TimeoutError. With
        create=False an unknown key is not registered again and yields False.
        """
        timeout = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        lock = self.get(key, create=create)
        if lock is None:
            yield False
            return
        if not lock.acquire(timeout=timeout):
            raise TimeoutError(f"Could not acquire lock {key} within {timeout}s")
        try:
            yield True
        finally:
            lock.release()

    def discard(self, key: str) -> None:
        """
        Forget the lock for `key`.

        Threads already waiting keep their reference to the old lock; callers
        must re-check the guarded state once they hold it.
        """
        with self._guard:
            self._locks.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def __contains__(self, key: str) -> bool:
        with self._guard:
            return key in self._locks
