"""Durable storage ports for the offline queue.

Each queue reads and rewrites its whole list on every change. That is fine
for one client process; two processes sharing a key can overwrite each
other's changes.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class QueueStorage(Protocol):
    """Key -> list of JSON-compatible dicts."""

    def get(self, key: str) -> list[dict[str, Any]]:
        ...

    def set(self, key: str, items: list[dict[str, Any]]) -> None:
        ...

    def append(self, key: str, item: dict[str, Any]) -> None:
        ...

    def clear(self, key: str) -> None:
        ...


class MemoryQueueStorage:
    """In-process storage, used in tests and for ephemeral queues."""

    def __init__(self) -> None:
        self._data: dict[str, list[dict[str, Any]]] = {}

    def get(self, key: str) -> list[dict[str, Any]]:
        return [dict(item) for item in self._data.get(key, [])]

    def set(self, key: str, items: list[dict[str, Any]]) -> None:
        self._data[key] = [dict(item) for item in items]

    def append(self, key: str, item: dict[str, Any]) -> None:
        self._data.setdefault(key, []).append(dict(item))

    def clear(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileQueueStorage:
    """One JSON file per key inside a directory.

    Writes go to a temp file that replaces the target, so a crash mid-write
    leaves the previous contents intact.
    """

    def __init__(self, directory: str | os.PathLike[str]):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> list[dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return []
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, list) else []

    def set(self, key: str, items: list[dict[str, Any]]) -> None:
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def append(self, key: str, item: dict[str, Any]) -> None:
        items = self.get(key)
        items.append(item)
        self.set(key, items)

    def clear(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
