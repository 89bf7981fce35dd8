"""Memory-backed storage backend

Keeps values in a process-local structure `[<namespace>][<key>]`. Values
are stored by reference; callers that mutate what they saved or loaded
must copy first.
"""
from threading import RLock
from typing import Dict, Any, Iterable, List

from .base import StorageBackend


class MemoryStorage(StorageBackend):
    def __init__(self) -> None:
        self._lock = RLock()
        self._store: Dict[str, Dict[str, Any]] = {}

    def save(self, namespace: str, key: str, value: Any) -> None:
        with self._lock:
            self._store.setdefault(namespace, {})[key] = value

    def load(self, namespace: str, key: str) -> Any:
        with self._lock:
            ns = self._store.get(namespace, {})
            if key not in ns:
                raise KeyError(key)
            return ns[key]

    def delete(self, namespace: str, key: str) -> None:
        with self._lock:
            ns = self._store.get(namespace, {})
            if key not in ns:
                raise KeyError(key)
            del ns[key]

    def list_keys(self, namespace: str) -> Iterable[str]:
        # Snapshot so callers may delete while iterating
        with self._lock:
            keys: List[str] = list(self._store.get(namespace, {}).keys())
        return keys

    def exists(self, namespace: str, key: str) -> bool:
        with self._lock:
            return key in self._store.get(namespace, {})
