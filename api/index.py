"""
GoMarket - Main FastAPI Application

Serves the cart to the storefront UI. One CartStore is created per
application session by the lifespan handler and shared by all requests.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gomarket.cart import CartProvider, CartStore
from gomarket.db import KeyValueStore, get_store
from gomarket.logging import get_logger
from gomarket.routers import cart_router

logger = get_logger(__name__)


def create_app(backend: Optional[KeyValueStore] = None) -> FastAPI:
    """
    Build the application.

    Args:
        backend: Key-value store for the cart; the configured singleton if omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler"""
        store = CartStore(backend if backend is not None else get_store())
        async with CartProvider(store):
            app.state.cart_store = store
            logger.info(f"Cart store ready ({len(store.products)} item(s) restored)")
            yield
        app.state.cart_store = None

    app = FastAPI(
        title="GoMarket Cart",
        description="Shopping cart with durable local persistence",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(cart_router, prefix="/api")

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "ok", "service": "gomarket"}

    return app


app = create_app()
