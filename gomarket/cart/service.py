"""Cart store: in-memory cart state kept in step with a key-value backend."""
import asyncio
from typing import Callable, List, Optional, Tuple

from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from gomarket.db import CART_WRITE_ATTEMPTS
from gomarket.errors import PersistenceReadFailure, PersistenceWriteFailure
from gomarket.logging import get_logger, sanitize_id_for_logging
from .models import LineItem, ProductDescriptor, ProductInput
from .storage import KeyValueStore, StorageKeys, dump_snapshot, load_snapshot

logger = get_logger(__name__)

CartState = Tuple[LineItem, ...]
Listener = Callable[[CartState], None]


class CartStore:
    """
    Holds the cart and mirrors every change to storage.

    Every mutation follows the same cycle under a single lock:
    read the latest committed state, compute the next one, persist it,
    and only then commit it to memory and notify listeners. A failed
    write raises PersistenceWriteFailure and leaves memory untouched.

    Usage:
        store = CartStore(get_store())
        await store.initialize()
        await store.add_to_cart({"id": "p1", "title": "Shirt", "image_url": "u1", "price": 50})
        await store.increment("p1")
        store.products
    """

    def __init__(
        self,
        backend: KeyValueStore,
        key: Optional[str] = None,
        write_attempts: int = CART_WRITE_ATTEMPTS,
    ):
        self._backend = backend
        self._key = key or StorageKeys.products_key()
        self._write_attempts = max(1, write_attempts)
        self._products: CartState = ()
        self._hydrated = False
        self._lock = asyncio.Lock()
        self._listeners: List[Listener] = []

    @property
    def key(self) -> str:
        return self._key

    @property
    def products(self) -> CartState:
        """Committed cart contents in insertion order."""
        return self._products

    @property
    def hydrated(self) -> bool:
        return self._hydrated

    @property
    def total_items(self) -> int:
        """Total number of units in the cart."""
        return sum(item.quantity for item in self._products)

    def get_item(self, product_id: str) -> Optional[LineItem]:
        return next((item for item in self._products if item.id == product_id), None)

    # ==================== LISTENERS ====================

    def add_listener(self, callback: Listener) -> None:
        """Call callback with the new contents after hydration and every commit."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback(self._products)
            except Exception:
                logger.exception(f"Cart listener {callback!r} failed")

    # ==================== HYDRATION ====================

    async def initialize(self) -> CartState:
        """
        Load the persisted cart once.

        Missing, unreadable or corrupted data leaves the cart empty.
        Later calls return the current contents without touching storage.
        """
        async with self._lock:
            if self._hydrated:
                return self._products

            self._products = await self._load()
            self._hydrated = True
            logger.info(f"Cart hydrated from {self._key} with {len(self._products)} item(s)")

        self._notify()
        return self._products

    async def _load(self) -> CartState:
        try:
            raw = await self._backend.get(self._key)
        except Exception as e:
            logger.warning(f"Failed to read cart from {self._key}: {e}")
            return ()

        if not raw:
            return ()

        try:
            return load_snapshot(raw)
        except PersistenceReadFailure as e:
            logger.warning(f"Ignoring stored cart at {self._key}: {e}")
            return ()

    # ==================== MUTATIONS ====================

    async def add_to_cart(self, product: ProductInput) -> CartState:
        """
        Add one unit of product.

        A product already in the cart gets its quantity bumped; a new one is
        appended with quantity 1 and its fields copied as given.

        Raises:
            ValueError: If product id is empty
            PersistenceWriteFailure: If the new cart could not be stored
        """
        if not isinstance(product, ProductDescriptor):
            product = ProductDescriptor.from_dict(product)

        def add(products: CartState) -> CartState:
            if any(item.id == product.id for item in products):
                return _bump(products, product.id, 1)
            return products + (LineItem.from_descriptor(product),)

        return await self._mutate("add_to_cart", product.id, add)

    async def increment(self, product_id: str) -> CartState:
        """Add one unit of a product already in the cart."""
        return await self._mutate(
            "increment", product_id, lambda products: _bump(products, product_id, 1)
        )

    async def decrement(self, product_id: str) -> CartState:
        """Remove one unit; the last unit removes the line item."""
        return await self._mutate(
            "decrement", product_id, lambda products: _bump(products, product_id, -1)
        )

    async def _mutate(
        self,
        operation: str,
        product_id: str,
        transform: Callable[[CartState], CartState],
    ) -> CartState:
        # Mutations issued before hydration would overwrite the stored cart
        await self.initialize()

        async with self._lock:
            updated = transform(self._products)
            await self._persist(updated, operation, product_id)
            self._products = updated

        self._notify()
        return updated

    async def _persist(self, products: CartState, operation: str, product_id: str) -> None:
        payload = dump_snapshot(products)
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._write_attempts),
                wait=wait_exponential(multiplier=0.1, max=2),
                reraise=True,
            ):
                with attempt:
                    await self._backend.set(self._key, payload)
        except Exception as e:
            logger.error(
                f"Failed to persist cart after {operation} "
                f"({sanitize_id_for_logging(product_id)}): {e}"
            )
            raise PersistenceWriteFailure(self._key) from e


def _bump(products: CartState, product_id: str, delta: int) -> CartState:
    """Shift one item's quantity by delta, dropping it when it reaches zero."""
    updated = []
    for item in products:
        if item.id == product_id:
            quantity = item.quantity + delta
            if quantity < 1:
                continue
            item = item.with_quantity(quantity)
        updated.append(item)
    return tuple(updated)
