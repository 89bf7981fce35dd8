"""Per-identifier session locks.

A session lock is not a mutex guarding Python objects: it is a claim on
the backing record of one session identifier, held across calls within a
request and released explicitly. Acquisition blocks until the previous
holder releases; there is no timeout.

Two providers are available:

- `KeyedLockProvider` serializes holders inside one process. It pairs
  with the memory backend.
- `FileLockProvider` takes an exclusive `flock` on a lock file per
  identifier, so it also serializes holders across worker processes
  sharing a data directory. It pairs with the file backend.

Handles may be released from a different thread than the one that
acquired them, since a request's work can hop between pool threads.
"""
from __future__ import annotations
import fcntl
import logging
import threading
from pathlib import Path
from typing import Dict, IO, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class SessionLock(Protocol):
    key: str

    def release(self) -> None: ...


@runtime_checkable
class LockProvider(Protocol):
    def acquire(self, key: str) -> SessionLock: ...


class _Entry:
    __slots__ = ("lock", "refs")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.refs = 0


class _KeyedLock:
    def __init__(self, provider: "KeyedLockProvider", key: str, entry: _Entry) -> None:
        self.key = key
        self._provider = provider
        self._entry = entry
        self._released = False

    def release(self) -> None:
        if self._released:
            raise RuntimeError(f"session lock for {self.key!r} already released")
        self._released = True
        self._provider._release(self.key, self._entry)


class KeyedLockProvider:
    """In-process keyed mutex.

    Entries are reference counted so the table only holds identifiers
    that currently have a holder or a waiter.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: Dict[str, _Entry] = {}

    def acquire(self, key: str) -> SessionLock:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.refs += 1
        # Block outside the guard so other identifiers stay available
        entry.lock.acquire()
        logger.debug("Acquired session lock %s", key)
        return _KeyedLock(self, key, entry)

    def _release(self, key: str, entry: _Entry) -> None:
        entry.lock.release()
        with self._guard:
            entry.refs -= 1
            if entry.refs == 0:
                self._entries.pop(key, None)
        logger.debug("Released session lock %s", key)

    def held_keys(self) -> list[str]:
        with self._guard:
            return [k for k, e in self._entries.items() if e.lock.locked()]


class _FileLock:
    def __init__(self, key: str, handle: IO[str]) -> None:
        self.key = key
        self._handle = handle

    def release(self) -> None:
        if self._handle.closed:
            raise RuntimeError(f"session lock for {self.key!r} already released")
        try:
            fcntl.flock(self._handle, fcntl.LOCK_UN)
        finally:
            self._handle.close()
        logger.debug("Released session lock file for %s", self.key)


class FileLockProvider:
    """Exclusive `flock` on `<lock_dir>/<key>.lock`.

    Every acquisition opens its own file description, so two holders in
    the same process exclude each other just like two processes do. Lock
    files are left in place after release; removing them would race with
    a waiter that already opened the old file.
    """

    def __init__(self, lock_dir: str | Path) -> None:
        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        safe_key = key.replace("/", "_")
        return self.lock_dir / f"{safe_key}.lock"

    def acquire(self, key: str) -> SessionLock:
        handle = open(self._path_for(key), "a+")
        try:
            fcntl.flock(handle, fcntl.LOCK_EX)
        except BaseException:
            handle.close()
            raise
        logger.debug("Acquired session lock file for %s", key)
        return _FileLock(key, handle)
