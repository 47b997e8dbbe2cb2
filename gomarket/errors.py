"""
Cart Errors

Centralized error messages and the exception types raised by the cart store.
"""

# Usage errors
ERROR_NO_CART_PROVIDER = "use_cart must be used within a CartProvider"
ERROR_NO_CART_STORE = "Cart store is not configured for this application"

# Validation errors
ERROR_EMPTY_PRODUCT_ID = "product_id must be a non-empty string"
ERROR_INVALID_PRICE = "price must be a finite number"
ERROR_MISSING_PRODUCT_FIELD = "product is missing a required field"

# Persistence errors
ERROR_CART_UNAVAILABLE = "Cart service unavailable"
ERROR_CORRUPTED_SNAPSHOT = "Stored cart snapshot is corrupted"


class CartError(Exception):
    """Base class for cart store errors."""


class UsageError(CartError):
    """Consumer surface accessed without an active cart store."""


class PersistenceReadFailure(CartError):
    """Stored cart snapshot could not be read or decoded."""


class PersistenceWriteFailure(CartError):
    """Cart snapshot could not be written; the mutation was not committed."""

    def __init__(self, key: str, message: str = ERROR_CART_UNAVAILABLE):
        super().__init__(f"{message}: failed to write {key}")
        self.key = key
