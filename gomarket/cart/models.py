"""Cart line item models."""
import math
from dataclasses import dataclass, replace
from typing import Mapping, Union

from gomarket.errors import ERROR_EMPTY_PRODUCT_ID, ERROR_INVALID_PRICE, ERROR_MISSING_PRODUCT_FIELD


@dataclass(frozen=True)
class ProductDescriptor:
    """Product as offered by the catalog: a line item without quantity."""
    id: str
    title: str
    image_url: str
    price: float

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError(ERROR_EMPTY_PRODUCT_ID)
        if isinstance(self.price, bool) or not isinstance(self.price, (int, float)) or not math.isfinite(self.price):
            raise ValueError(ERROR_INVALID_PRICE)

    @classmethod
    def from_dict(cls, data: Mapping) -> "ProductDescriptor":
        """
        Create from a mapping with id, title, image_url and price.

        Raises:
            ValueError: If a field is missing or invalid
        """
        try:
            return cls(
                id=data["id"],
                title=data["title"],
                image_url=data["image_url"],
                price=data["price"],
            )
        except KeyError as e:
            raise ValueError(f"{ERROR_MISSING_PRODUCT_FIELD}: {e.args[0]}") from e


@dataclass(frozen=True)
class LineItem:
    """Single product in the cart. Only quantity changes after insertion."""
    id: str
    title: str
    image_url: str
    price: float
    quantity: int = 1

    @classmethod
    def from_descriptor(cls, product: ProductDescriptor) -> "LineItem":
        """New line item with quantity 1."""
        return cls(
            id=product.id,
            title=product.title,
            image_url=product.image_url,
            price=product.price,
            quantity=1,
        )

    def with_quantity(self, quantity: int) -> "LineItem":
        return replace(self, quantity=quantity)

    def to_dict(self) -> dict:
        """Convert to the stored JSON shape."""
        return {
            "id": self.id,
            "title": self.title,
            "image_url": self.image_url,
            "price": self.price,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        """Create from the stored JSON shape."""
        quantity = data["quantity"]
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValueError(f"quantity must be a positive integer, got {quantity!r}")
        if not data["id"] or not isinstance(data["id"], str):
            raise ValueError(ERROR_EMPTY_PRODUCT_ID)
        price = data["price"]
        if isinstance(price, bool) or not isinstance(price, (int, float)) or not math.isfinite(price):
            raise ValueError(ERROR_INVALID_PRICE)
        return cls(
            id=data["id"],
            title=data["title"],
            image_url=data["image_url"],
            price=price,
            quantity=quantity,
        )


ProductInput = Union[ProductDescriptor, Mapping]
