"""Storage abstraction package for hypha."""
from __future__ import annotations
from pathlib import Path

from .base import StorageBackend
from .file_backend import FileStorageBackend
from .memory_backend import MemoryStorage
from .serializer import get_serializer


def create_storage(backend: str = "file", serializer: str = "pickle", data_dir: str | Path = "data") -> StorageBackend:
    """Compose a storage backend from configuration names.

    `serializer` only matters for the file backend; the memory backend
    keeps Python objects as they are.
    """
    if backend == "memory":
        return MemoryStorage()
    if backend == "file":
        return FileStorageBackend(data_dir=data_dir, serializer=get_serializer(serializer))
    raise ValueError(f"unknown storage backend: {backend!r}")


__all__ = ["StorageBackend", "FileStorageBackend", "MemoryStorage", "create_storage"]
