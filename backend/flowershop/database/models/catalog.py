"""
Reference data models used by checkout.

Products carry the authoritative price and stock that order finalization
reads and decrements. Delivery methods, shops and order statuses are lookup
tables maintained by the back office.
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from flowershop.database.base import BaseModel, ReferenceModel

PENDING_STATUS_NAME = "pending"


class Product(BaseModel):
    """
    Sellable product with its current price and stock level.

    Attributes:
        id: Product identifier
        name: Display name
        price: Current unit price, snapshotted onto order lines
        stock: Units on hand, decremented when an order is finalized
    """

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="price_non_negative"),
        CheckConstraint("stock >= 0", name="stock_non_negative"),
        {"comment": "Sellable products"},
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class DeliveryMethod(ReferenceModel):
    """Delivery option offered at checkout (courier, pickup, ...)."""

    __tablename__ = "delivery_methods"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)


class Shop(ReferenceModel):
    """Physical shop that fulfils an order."""

    __tablename__ = "shops"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)


class OrderStatus(ReferenceModel):
    """
    Order status taxonomy.

    The table must contain a row named ``pending``; checkout refuses to
    run without it.
    """

    __tablename__ = "order_statuses"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
