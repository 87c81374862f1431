"""
Order and order line models.

An order is only ever created by the checkout workflow, inside the same
transaction as its payment and lines, so a committed order always has a
payment and at least one line. Totals are locked in by finalization.
"""

from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flowershop.database.base import BaseModel, ReferenceModel
from flowershop.database.models.address import Address
from flowershop.database.models.catalog import DeliveryMethod, OrderStatus, Product, Shop
from flowershop.database.models.payment import Payment


class Order(BaseModel):
    """
    Customer order.

    Attributes:
        id: Order identifier
        order_number: Public-facing number shown to the customer
        user_id: Owning customer
        delivery_method_id: Chosen delivery method
        shop_id: Fulfilling shop
        address_id: Delivery address
        payment_id: Payment, one per order
        status_id: Current status; transitions after checkout belong to the back office
        total: Sum of line totals, written at finalization
    """

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total >= 0", name="total_non_negative"),
        {"comment": "Customer orders"},
    )

    order_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    delivery_method_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("delivery_methods.id", ondelete="RESTRICT"),
        nullable=False,
    )
    shop_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("shops.id", ondelete="RESTRICT"),
        nullable=False,
    )
    address_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("addresses.id", ondelete="RESTRICT"),
        nullable=False,
    )
    payment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("payments.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )
    status_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("order_statuses.id", ondelete="RESTRICT"),
        nullable=False,
    )
    total: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
        server_default=text("0"),
    )

    lines: Mapped[list["OrderLine"]] = relationship(
        "OrderLine",
        lazy="selectin",
        order_by="OrderLine.id",
        cascade="all, delete-orphan",
    )
    payment: Mapped[Payment] = relationship(Payment, lazy="selectin")
    address: Mapped[Address] = relationship(Address, lazy="selectin")
    delivery_method: Mapped[DeliveryMethod] = relationship(DeliveryMethod, lazy="selectin")
    shop: Mapped[Shop] = relationship(Shop, lazy="selectin")
    status: Mapped[OrderStatus] = relationship(OrderStatus, lazy="selectin")


class OrderLine(ReferenceModel):
    """
    One product and quantity on an order.

    ``unit_price`` is snapshotted from the product when the line is added
    and refreshed at finalization, which also computes ``line_total``.
    """

    __tablename__ = "order_lines"
    __table_args__ = (
        UniqueConstraint("order_id", "product_id", name="uq_order_lines_order_product"),
        CheckConstraint("quantity > 0", name="quantity_positive"),
        CheckConstraint("unit_price >= 0", name="unit_price_non_negative"),
        {"comment": "Order line items"},
    )

    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    line_total: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
        server_default=text("0"),
    )

    product: Mapped[Product] = relationship(Product, lazy="selectin")
