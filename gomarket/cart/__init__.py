"""Cart package: models, storage codec, store, and provider."""
from .models import LineItem, ProductDescriptor
from .service import CartStore
from .context import CartProvider, use_cart

__all__ = [
    "LineItem",
    "ProductDescriptor",
    "CartStore",
    "CartProvider",
    "use_cart",
]
