"""
GoMarket Cart

Client-side shopping cart with durable local persistence:
- db: key-value backends (file, Upstash Redis, memory)
- cart: line item models, snapshot codec, CartStore, provider
- routers: FastAPI surface over the store
"""

__all__ = ["cart", "db", "errors", "logging", "routers"]
