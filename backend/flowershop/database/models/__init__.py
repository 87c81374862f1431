"""
Database models package initialization.

Models are imported here so they are registered with the Base metadata for
Alembic and for ``create_all`` in tests.
"""

from flowershop.database.base import Base, BaseModel, ReferenceModel
from flowershop.database.models.address import Address
from flowershop.database.models.catalog import (
    PENDING_STATUS_NAME,
    DeliveryMethod,
    OrderStatus,
    Product,
    Shop,
)
from flowershop.database.models.coupon import Coupon, CouponRedemption
from flowershop.database.models.order import Order, OrderLine
from flowershop.database.models.payment import Payment, PaymentMethod

__all__ = [
    "Base",
    "BaseModel",
    "ReferenceModel",
    "Address",
    "PENDING_STATUS_NAME",
    "DeliveryMethod",
    "OrderStatus",
    "Product",
    "Shop",
    "Coupon",
    "CouponRedemption",
    "Order",
    "OrderLine",
    "Payment",
    "PaymentMethod",
]
