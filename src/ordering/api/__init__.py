"""Ordering domain API package."""

from ordering.api.routes import admin_order_router, cart_router, checkout_router, order_router

__all__ = ["cart_router", "checkout_router", "order_router", "admin_order_router"]
