"""Tests for key-value storage backends"""
import json

import pytest
from unittest.mock import AsyncMock, Mock

from gomarket import db
from gomarket.cart import CartStore
from gomarket.db import FileStore, MemoryStore, RedisStore, StorageKeys, get_store


def test_products_key_default_namespace():
    """Test the products key layout"""
    assert StorageKeys.products_key() == "@GoMarketPlace:products"
    assert StorageKeys.products_key("@Shop") == "@Shop:products"


@pytest.mark.asyncio
async def test_memory_store_get_set():
    """Test memory store round trip"""
    store = MemoryStore()

    assert await store.get("k") is None
    await store.set("k", "v")
    assert await store.get("k") == "v"


@pytest.mark.asyncio
async def test_file_store_missing_file(tmp_path):
    """Test reading from a file that does not exist yet"""
    store = FileStore(tmp_path / "storage.json")

    assert await store.get("k") is None


@pytest.mark.asyncio
async def test_file_store_persists_across_instances(tmp_path):
    """Test values survive a new FileStore on the same path"""
    path = tmp_path / "nested" / "storage.json"
    await FileStore(path).set("a", "1")
    await FileStore(path).set("b", "2")

    reopened = FileStore(path)
    assert await reopened.get("a") == "1"
    assert await reopened.get("b") == "2"
    assert json.loads(path.read_text(encoding="utf-8")) == {"a": "1", "b": "2"}


@pytest.mark.asyncio
async def test_file_store_leaves_no_temp_files(tmp_path):
    """Test writes replace the file atomically"""
    path = tmp_path / "storage.json"
    store = FileStore(path)
    await store.set("k", "v1")
    await store.set("k", "v2")

    assert [p.name for p in tmp_path.iterdir()] == ["storage.json"]


@pytest.mark.asyncio
async def test_cart_survives_restart_with_file_store(tmp_path, products_key, shirt, mug):
    """Test a cart written through FileStore is restored by a new store"""
    path = tmp_path / "storage.json"
    first = CartStore(FileStore(path), key=products_key)
    await first.add_to_cart(shirt)
    await first.add_to_cart(mug)
    await first.increment("p1")

    second = CartStore(FileStore(path), key=products_key)
    await second.initialize()

    assert second.products == first.products


@pytest.mark.asyncio
async def test_corrupted_file_hydrates_empty(tmp_path, products_key):
    """Test an unreadable storage file gives an empty cart"""
    path = tmp_path / "storage.json"
    path.write_text("garbage", encoding="utf-8")
    store = CartStore(FileStore(path), key=products_key)

    assert await store.initialize() == ()


@pytest.mark.asyncio
async def test_redis_store_delegates_to_client():
    """Test RedisStore uses the Upstash client"""
    client = Mock()
    client.get = AsyncMock(return_value="[]")
    client.set = AsyncMock(return_value=True)
    store = RedisStore(client)

    assert await store.get("@GoMarketPlace:products") == "[]"
    await store.set("@GoMarketPlace:products", "[]")

    client.get.assert_awaited_once_with("@GoMarketPlace:products")
    client.set.assert_awaited_once_with("@GoMarketPlace:products", "[]")


def test_get_store_memory(monkeypatch):
    """Test backend selection from environment"""
    monkeypatch.setattr(db, "CART_STORAGE_BACKEND", "memory")

    store = get_store()

    assert isinstance(store, MemoryStore)
    assert get_store() is store


def test_get_store_file(monkeypatch, tmp_path):
    """Test file backend uses the configured path"""
    monkeypatch.setattr(db, "CART_STORAGE_BACKEND", "file")
    monkeypatch.setattr(db, "CART_STORAGE_PATH", str(tmp_path / "cart.json"))

    store = get_store()

    assert isinstance(store, FileStore)
    assert store.path == tmp_path / "cart.json"


def test_get_store_redis_requires_credentials(monkeypatch):
    """Test redis backend without Upstash credentials"""
    monkeypatch.setattr(db, "CART_STORAGE_BACKEND", "redis")
    monkeypatch.setattr(db, "UPSTASH_REDIS_REST_URL", "")
    monkeypatch.setattr(db, "UPSTASH_REDIS_REST_TOKEN", "")

    with pytest.raises(ValueError, match="UPSTASH_REDIS_REST_URL"):
        get_store()


def test_get_store_unknown_backend(monkeypatch):
    """Test an unknown backend name"""
    monkeypatch.setattr(db, "CART_STORAGE_BACKEND", "sqlite")

    with pytest.raises(ValueError, match="Unknown CART_STORAGE_BACKEND"):
        get_store()


@pytest.mark.asyncio
async def test_corrupted_file_is_replaced_on_next_write(tmp_path, products_key, shirt):
    """Test a cart can be saved again after hydrating from a garbage file"""
    path = tmp_path / "storage.json"
    path.write_text("garbage", encoding="utf-8")
    store = CartStore(FileStore(path), key=products_key, write_attempts=1)
    await store.initialize()

    await store.add_to_cart(shirt)

    assert json.loads(json.loads(path.read_text(encoding="utf-8"))[products_key]) == [
        {"id": "p1", "title": "Shirt", "image_url": "u1", "price": 50, "quantity": 1}
    ]
    assert (tmp_path / "storage.json.corrupt").read_text(encoding="utf-8") == "garbage"

    restored = CartStore(FileStore(path), key=products_key)
    assert await restored.initialize() == store.products


@pytest.mark.asyncio
async def test_non_object_file_is_replaced_on_write(tmp_path):
    """Test a JSON file that is not an object is moved aside on write"""
    path = tmp_path / "storage.json"
    path.write_text("[1, 2]", encoding="utf-8")
    store = FileStore(path)

    await store.set("k", "v")

    assert await store.get("k") == "v"
