"""File-backed storage backend.

Stores each value under `<data_dir>/<namespace>/<key>.<ext>`, encoded by
the configured serializer (pickle unless told otherwise). Writes go to a
temporary file that is renamed over the target, so readers never see a
half-written record.
"""
from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Iterable, Optional

from .base import StorageBackend
from .serializer import PickleSerializer, Serializer


class FileStorageBackend(StorageBackend):
    def __init__(self, data_dir: str | Path = "./data", serializer: Optional[Serializer] = None) -> None:
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.serializer: Serializer = serializer or PickleSerializer()

    def _ns_dir(self, namespace: str) -> Path:
        ns = self.data_dir / namespace
        ns.mkdir(parents=True, exist_ok=True)
        return ns

    def _path_for(self, namespace: str, key: str) -> Path:
        safe_key = key.replace("/", "_")
        return self._ns_dir(namespace) / f"{safe_key}.{self.serializer.extension}"

    def save(self, namespace: str, key: str, value: Any) -> None:
        path = self._path_for(namespace, key)
        tmp = path.with_suffix(path.suffix + ".tmp")
        with open(tmp, "wb") as f:
            f.write(self.serializer.dump(value))
            f.flush()
            os.fsync(f.fileno())
        tmp.replace(path)

    def load(self, namespace: str, key: str) -> Any:
        path = self._path_for(namespace, key)
        if not path.exists():
            raise KeyError(key)
        with open(path, "rb") as f:
            return self.serializer.load(f.read())

    def delete(self, namespace: str, key: str) -> None:
        path = self._path_for(namespace, key)
        if not path.exists():
            raise KeyError(key)
        path.unlink()

    def list_keys(self, namespace: str) -> Iterable[str]:
        ns = self._ns_dir(namespace)
        suffix = f".{self.serializer.extension}"
        for p in ns.iterdir():
            if p.is_file() and p.suffix == suffix:
                yield p.stem

    def exists(self, namespace: str, key: str) -> bool:
        return self._path_for(namespace, key).exists()
