"""
Object storage shim.

Simulates a blob storage service on top of the key-value store: every object
is kept as a base64 data URL under its own key, and the "public URL" of an
object is that data URL itself.
"""
import base64
import binascii
import json
import logging
import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from lexpix.exceptions import StorageError, StorageQuotaExceeded
from lexpix.store.kv import KeyValueStore
from lexpix.store.query import utc_now_iso

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "lexpix_storage_"
META_PREFIX = "lexpix_storagemeta_"
BUCKETS_KEY = "lexpix_buckets"


@dataclass
class StoredObject:
    """Listing entry for a stored object."""
    name: str
    size: int
    mimetype: str
    created_at: str = ""


class Bucket(ABC):
    """Operations on a single bucket."""

    name: str

    @abstractmethod
    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None,
                     upsert: bool = False) -> str:
        """Store ``content`` at ``path``; returns the stored path."""

    @abstractmethod
    async def remove(self, paths: List[str]) -> List[str]:
        """Delete objects; returns the paths that existed."""

    @abstractmethod
    async def list(self, prefix: str = "") -> List[StoredObject]:
        ...

    @abstractmethod
    def get_public_url(self, path: str) -> str:
        ...


class ObjectStorage(ABC):
    """A set of named buckets."""

    @abstractmethod
    def from_(self, bucket: str) -> Bucket:
        ...

    @abstractmethod
    async def list_buckets(self) -> List[str]:
        ...

    @abstractmethod
    async def create_bucket(self, name: str, public: bool = True) -> None:
        ...

    async def get_bucket(self, name: str) -> Optional[str]:
        buckets = await self.list_buckets()
        return name if name in buckets else None

    async def ensure_bucket(self, name: str) -> None:
        if await self.get_bucket(name) is None:
            await self.create_bucket(name, public=True)
            logger.info(f"Created {name} bucket")


def to_data_url(content: bytes, mimetype: str) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mimetype};base64,{encoded}"


def parse_data_url(data_url: str) -> tuple:
    """Split a base64 data URL into (mimetype, bytes)."""
    if not data_url.startswith("data:") or ";base64," not in data_url:
        raise StorageError("Not a base64 data URL")
    header, encoded = data_url[5:].split(";base64,", 1)
    try:
        return header or "application/octet-stream", base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise StorageError(f"Invalid base64 payload: {e}") from e


class LocalBucket(Bucket):

    def __init__(self, kv: KeyValueStore, name: str):
        self.kv = kv
        self.name = name

    def _key(self, path: str) -> str:
        return f"{STORAGE_PREFIX}{self.name}/{path}"

    def _meta_key(self, path: str) -> str:
        return f"{META_PREFIX}{self.name}/{path}"

    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None,
                     upsert: bool = False) -> str:
        key = self._key(path)
        previous = self.kv.get_item(key)
        if not upsert and previous is not None:
            raise StorageError(f"Object '{path}' already exists in bucket '{self.name}'")
        mimetype = content_type or mimetypes.guess_type(path)[0] or "application/octet-stream"
        self.kv.set_item(key, to_data_url(content, mimetype))
        try:
            self.kv.set_item(self._meta_key(path), json.dumps({"created_at": utc_now_iso()}))
        except StorageQuotaExceeded:
            # Data and metadata are written together or not at all
            if previous is None:
                self.kv.remove_item(key)
            else:
                self.kv.set_item(key, previous)
            raise
        logger.debug(f"Stored {len(content):,} bytes at {self.name}/{path}")
        return path

    async def remove(self, paths: List[str]) -> List[str]:
        removed = []
        for path in paths:
            key = self._key(path)
            if self.kv.get_item(key) is not None:
                removed.append(path)
            self.kv.remove_item(key)
            self.kv.remove_item(self._meta_key(path))
        return removed

    async def list(self, prefix: str = "") -> List[StoredObject]:
        bucket_prefix = f"{STORAGE_PREFIX}{self.name}/"
        objects = []
        for key in self.kv.keys():
            if not key.startswith(bucket_prefix):
                continue
            path = key[len(bucket_prefix):]
            if prefix and not path.startswith(prefix):
                continue
            mimetype, content = parse_data_url(self.kv.get_item(key))
            meta_raw = self.kv.get_item(self._meta_key(path))
            created_at = json.loads(meta_raw).get("created_at", "") if meta_raw else ""
            objects.append(StoredObject(name=path, size=len(content), mimetype=mimetype,
                                        created_at=created_at))
        return objects

    def get_public_url(self, path: str) -> str:
        return self.kv.get_item(self._key(path)) or ""

    def download(self, path: str) -> bytes:
        stored = self.kv.get_item(self._key(path))
        if stored is None:
            raise StorageError(f"Object '{path}' not found in bucket '{self.name}'")
        return parse_data_url(stored)[1]


class LocalObjectStorage(ObjectStorage):
    """Buckets kept in the key-value store."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def from_(self, bucket: str) -> LocalBucket:
        return LocalBucket(self.kv, bucket)

    async def list_buckets(self) -> List[str]:
        raw = self.kv.get_item(BUCKETS_KEY)
        return json.loads(raw) if raw else []

    async def create_bucket(self, name: str, public: bool = True) -> None:
        if "/" in name:
            raise StorageError(f"Invalid bucket name '{name}'")
        buckets = await self.list_buckets()
        if name not in buckets:
            buckets.append(name)
            self.kv.set_item(BUCKETS_KEY, json.dumps(buckets))
