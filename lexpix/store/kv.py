"""
Key-value store adapter.

A tiny stand-in for browser local storage: string keys mapped to string
values, plus a TableStore that keeps one JSON array per named table.
Every table write rewrites the whole table; there is no locking and the last
writer wins.
"""
import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi.encoders import jsonable_encoder

from lexpix.exceptions import CorruptTableError, StorageQuotaExceeded

logger = logging.getLogger(__name__)

TABLE_NAMESPACE = "lexpix_"


class KeyValueStore(ABC):
    """String key-value storage with an optional byte quota."""

    def __init__(self, quota_bytes: int = 0):
        self.quota_bytes = quota_bytes

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def _set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> List[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes:
            current = self.get_item(key)
            projected = self.used_bytes() - _entry_size(key, current) + _entry_size(key, value)
            if projected > self.quota_bytes:
                raise StorageQuotaExceeded(
                    f"Writing '{key}' needs {projected:,} bytes, quota is {self.quota_bytes:,} bytes"
                )
        self._set(key, value)

    def used_bytes(self) -> int:
        return sum(_entry_size(key, self.get_item(key)) for key in self.keys())

    def clear(self) -> None:
        for key in self.keys():
            self.remove_item(key)


def _entry_size(key: str, value: Optional[str]) -> int:
    if value is None:
        return 0
    # Browsers count UTF-16 code units; characters are close enough here
    return len(key) + len(value)


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store, used for tests and the default demo mode."""

    def __init__(self, quota_bytes: int = 0):
        super().__init__(quota_bytes)
        self._data: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def _set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data.keys())


class FileKeyValueStore(KeyValueStore):
    """
    Store persisted as a single JSON object in a file.

    The file is read once and rewritten on every mutation. A missing file
    is treated as an empty store.
    """

    def __init__(self, path: str, quota_bytes: int = 0):
        super().__init__(quota_bytes)
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise CorruptTableError(f"Key-value file {self.path} does not contain a JSON object")
        logger.info(f"Loaded {len(data)} keys from {self.path}")
        return data

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f)
        os.replace(tmp_path, self.path)

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def _set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            self._flush()

    def remove_item(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._flush()

    def keys(self) -> List[str]:
        return list(self._data.keys())


class TableStore:
    """Whole-table JSON (de)serialization on top of a KeyValueStore."""

    def __init__(self, kv: KeyValueStore, namespace: str = TABLE_NAMESPACE):
        self.kv = kv
        self.namespace = namespace

    def key_for(self, table: str) -> str:
        return f"{self.namespace}{table}"

    def read(self, table: str) -> List[Dict[str, Any]]:
        raw = self.kv.get_item(self.key_for(table))
        if raw is None:
            return []
        try:
            rows = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptTableError(f"Table '{table}' is not valid JSON: {e}") from e
        if not isinstance(rows, list):
            raise CorruptTableError(f"Table '{table}' is not a JSON array")
        return rows

    def write(self, table: str, rows: List[Dict[str, Any]]) -> None:
        self.kv.set_item(self.key_for(table), json.dumps(jsonable_encoder(rows)))
