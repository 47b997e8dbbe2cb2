"""
Cart provider for consumers outside the HTTP layer.

    async with CartProvider(CartStore(get_store())):
        cart = use_cart()
        await cart.add_to_cart(product)
"""
from contextvars import ContextVar, Token
from typing import Optional

from gomarket.errors import ERROR_NO_CART_PROVIDER, UsageError
from .service import CartStore

_active_store: ContextVar[Optional[CartStore]] = ContextVar("gomarket_cart_store", default=None)


class CartProvider:
    """Hydrates a store and makes it the active cart for the enclosed block."""

    def __init__(self, store: CartStore):
        self.store = store
        self._token: Optional[Token] = None

    async def __aenter__(self) -> CartStore:
        await self.store.initialize()
        self._token = _active_store.set(self.store)
        return self.store

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._token is not None:
            _active_store.reset(self._token)
            self._token = None


def use_cart() -> CartStore:
    """
    Get the active cart store.

    Raises:
        UsageError: If called outside a CartProvider block
    """
    store = _active_store.get()
    if store is None:
        raise UsageError(ERROR_NO_CART_PROVIDER)
    return store
