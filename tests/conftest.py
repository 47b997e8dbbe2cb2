"""Pytest configuration and fixtures"""
import os
import pytest

# Set test environment variables
os.environ.setdefault("CART_STORAGE_BACKEND", "memory")
os.environ.setdefault("CART_STORAGE_NAMESPACE", "@GoMarketPlace")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from gomarket.cart import CartStore, ProductDescriptor
from gomarket.db import MemoryStore, StorageKeys, reset_store


@pytest.fixture(autouse=True)
def _reset_storage_singletons():
    """Each test gets fresh backend singletons"""
    reset_store()
    yield
    reset_store()


@pytest.fixture
def products_key():
    return StorageKeys.products_key("@GoMarketPlace")


@pytest.fixture
def backend():
    """Empty in-memory key-value store"""
    return MemoryStore()


@pytest.fixture
def store(backend, products_key):
    """Cart store over the memory backend, single write attempt"""
    return CartStore(backend, key=products_key, write_attempts=1)


@pytest.fixture
def shirt():
    """Sample product descriptor"""
    return ProductDescriptor(id="p1", title="Shirt", image_url="u1", price=50)


@pytest.fixture
def mug():
    """Second sample product descriptor"""
    return ProductDescriptor(id="p2", title="Mug", image_url="u2", price=12.5)


@pytest.fixture
def stored_cart():
    """Snapshot JSON with two line items"""
    return (
        '[{"id": "p1", "title": "Shirt", "image_url": "u1", "price": 50, "quantity": 3},'
        ' {"id": "p2", "title": "Mug", "image_url": "u2", "price": 12.5, "quantity": 1}]'
    )
