"""Storage backend interface definitions.

Defines the StorageBackend abstract class the session store persists
records through. Backends only move opaque values around; they know
nothing about sessions or session locking.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Iterable


class StorageBackend(ABC):
    """Abstract namespaced key/value backend.

    Implementations must be thread-safe: requests are served from a
    thread pool and may touch different keys concurrently.
    """

    @abstractmethod
    def save(self, namespace: str, key: str, value: Any) -> None:
        """Save `value` under `namespace` and `key`, replacing any old value."""

    @abstractmethod
    def load(self, namespace: str, key: str) -> Any:
        """Load and return the value stored under `namespace`/`key`.

        Raises `KeyError` if the key does not exist. Any other exception
        means the record exists but could not be read.
        """

    @abstractmethod
    def delete(self, namespace: str, key: str) -> None:
        """Delete the stored value. Raise `KeyError` if not found."""

    @abstractmethod
    def list_keys(self, namespace: str) -> Iterable[str]:
        """Return an iterable of keys stored in `namespace`."""

    @abstractmethod
    def exists(self, namespace: str, key: str) -> bool:
        """Return True if `key` exists under `namespace`."""
