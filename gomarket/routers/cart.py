"""
Cart Router

HTTP surface over the application's CartStore. The store is created by the
app lifespan and injected through get_cart_store.
"""
from fastapi import APIRouter, Depends, HTTPException, Request

from gomarket.cart import CartStore, ProductDescriptor
from gomarket.errors import ERROR_CART_UNAVAILABLE, ERROR_NO_CART_STORE, PersistenceWriteFailure, UsageError
from gomarket.logging import get_logger
from .models import AddToCartRequest, CartResponse, LineItemOut

logger = get_logger(__name__)

router = APIRouter(tags=["cart"])


def get_cart_store(request: Request) -> CartStore:
    """Get the store bound to this application."""
    store = getattr(request.app.state, "cart_store", None)
    if store is None:
        raise UsageError(ERROR_NO_CART_STORE)
    return store


def _format_cart_response(store: CartStore) -> CartResponse:
    return CartResponse(
        products=[LineItemOut(**item.to_dict()) for item in store.products],
        total_items=store.total_items,
    )


@router.get("/cart", response_model=CartResponse)
async def get_cart(store: CartStore = Depends(get_cart_store)):
    """Get cart contents."""
    return _format_cart_response(store)


@router.post("/cart/products", response_model=CartResponse)
async def add_to_cart(request: AddToCartRequest, store: CartStore = Depends(get_cart_store)):
    """Add one unit of a product."""
    try:
        product = ProductDescriptor(
            id=request.id,
            title=request.title,
            image_url=request.image_url,
            price=request.price,
        )
        await store.add_to_cart(product)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except PersistenceWriteFailure as e:
        logger.error(f"Failed to add to cart: {e}")
        raise HTTPException(status_code=503, detail=ERROR_CART_UNAVAILABLE)

    return _format_cart_response(store)


@router.post("/cart/products/{product_id}/increment", response_model=CartResponse)
async def increment_product(product_id: str, store: CartStore = Depends(get_cart_store)):
    """Add one unit of a product already in the cart."""
    try:
        await store.increment(product_id)
    except PersistenceWriteFailure as e:
        logger.error(f"Failed to increment cart item: {e}")
        raise HTTPException(status_code=503, detail=ERROR_CART_UNAVAILABLE)

    return _format_cart_response(store)


@router.post("/cart/products/{product_id}/decrement", response_model=CartResponse)
async def decrement_product(product_id: str, store: CartStore = Depends(get_cart_store)):
    """Remove one unit; the last unit drops the product."""
    try:
        await store.decrement(product_id)
    except PersistenceWriteFailure as e:
        logger.error(f"Failed to decrement cart item: {e}")
        raise HTTPException(status_code=503, detail=ERROR_CART_UNAVAILABLE)

    return _format_cart_response(store)
