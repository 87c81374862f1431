"""
API v1 package initialization.

Routers for the flower shop storefront API.
"""

from flowershop.api.v1.cart import router as cart_router
from flowershop.api.v1.orders import router as orders_router

__all__ = ["cart_router", "orders_router"]
