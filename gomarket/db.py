"""
Storage Module - Key-Value Backends for the Cart

Provides a singleton key-value store selected by environment:
- FileStore: durable local JSON file (default)
- RedisStore: Upstash Redis over REST
- MemoryStore: in-process dict for tests and throwaway sessions
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

from upstash_redis.asyncio import Redis as AsyncRedis

from gomarket.logging import get_logger

logger = get_logger(__name__)


# Environment variables
CART_STORAGE_BACKEND = os.environ.get("CART_STORAGE_BACKEND", "file")
CART_STORAGE_PATH = os.environ.get("CART_STORAGE_PATH", ".gomarket/storage.json")
CART_STORAGE_NAMESPACE = os.environ.get("CART_STORAGE_NAMESPACE", "@GoMarketPlace")
CART_WRITE_ATTEMPTS = int(os.environ.get("CART_WRITE_ATTEMPTS", "3"))

# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")


class KeyValueStore(Protocol):
    """Asynchronous string key-value store consumed by the cart."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """Dict-backed store. Nothing survives the process."""

    def __init__(self, initial: Optional[dict] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value


class FileStore:
    """
    Durable local store: one JSON object file mapping keys to string values.

    File I/O runs in a worker thread. Writes land in a temp file next to the
    target and are moved into place with os.replace, so a crash mid-write
    leaves the previous snapshot intact.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _load_for_write(self) -> dict:
        try:
            return self._load()
        except ValueError as e:
            # Covers JSONDecodeError and UnicodeDecodeError
            aside = self.path.with_name(self.path.name + ".corrupt")
            logger.warning(f"Unreadable storage file {self.path} moved to {aside}: {e}")
            os.replace(self.path, aside)
            return {}

    def _save(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            data = await asyncio.to_thread(self._load)
        return data.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._load_for_write)
            data[key] = value
            await asyncio.to_thread(self._save, data)


class RedisStore:
    """Adapter over the async Upstash Redis client."""

    def __init__(self, client: AsyncRedis):
        self.client = client

    async def get(self, key: str) -> Optional[str]:
        return await self.client.get(key)

    async def set(self, key: str, value: str) -> None:
        await self.client.set(key, value)


# Singleton instances
_redis_client: Optional[AsyncRedis] = None
_store: Optional[KeyValueStore] = None


def get_redis() -> AsyncRedis:
    """
    Get async Upstash Redis client (singleton).

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    """
    global _redis_client

    if _redis_client is None:
        if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = AsyncRedis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)

    return _redis_client


def get_store() -> KeyValueStore:
    """
    Get the configured key-value store (singleton).

    CART_STORAGE_BACKEND selects "file", "redis" or "memory".
    """
    global _store

    if _store is None:
        backend = CART_STORAGE_BACKEND.lower()
        if backend == "file":
            _store = FileStore(CART_STORAGE_PATH)
        elif backend == "redis":
            _store = RedisStore(get_redis())
        elif backend == "memory":
            _store = MemoryStore()
        else:
            raise ValueError(f"Unknown CART_STORAGE_BACKEND: {CART_STORAGE_BACKEND!r}")

    return _store


def reset_store() -> None:
    """Drop cached backend singletons (tests and reconfiguration)."""
    global _store, _redis_client
    _store = None
    _redis_client = None


# Key layout
class StorageKeys:
    """Storage keys used by the cart."""

    PRODUCTS = "products"

    @staticmethod
    def products_key(namespace: str = CART_STORAGE_NAMESPACE) -> str:
        return f"{namespace}:{StorageKeys.PRODUCTS}"
