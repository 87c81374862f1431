"""
Payment database model.

A payment row is created as a shell at the start of checkout and receives
its method-specific detail as the workflow progresses: the last four card
digits, the cash tendered and change returned, or the redeemed coupon
snapshot. The amount is always computed server-side when the order is
finalized.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, Date, Integer, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column

from flowershop.database.base import BaseModel


class PaymentMethod(str, Enum):
    """Supported payment methods."""

    CARD = "card"
    CASH = "cash"
    COUPON = "coupon"

    @classmethod
    def from_string(cls, value: str) -> "PaymentMethod":
        """
        Convert string to PaymentMethod enum.

        Args:
            value: Method name, case-insensitive

        Returns:
            PaymentMethod enum value

        Raises:
            ValueError: If value is not a supported method
        """
        try:
            return cls((value or "").strip().lower())
        except ValueError as e:
            raise ValueError(
                f"Invalid payment method: {value}. "
                f"Must be one of: {', '.join(m.value for m in cls)}"
            ) from e


class Payment(BaseModel):
    """
    Payment attached to exactly one order.

    Attributes:
        id: Payment identifier
        user_id: Paying customer
        method: One of card, cash, coupon
        amount: Order total copied in at finalization
        card_last4: Last four digits of the card; the full number is never stored
        cash_accepted: Cash tendered by the customer
        cash_change: Change returned, only written once it is known to be >= 0
        coupon_code: Redeemed coupon code
        coupon_bonus: Coupon value at redemption time
        coupon_expires_on: Coupon expiry at redemption time
    """

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint(
            "method IN ('card', 'cash', 'coupon')",
            name="method_supported",
        ),
        CheckConstraint("amount >= 0", name="amount_non_negative"),
        CheckConstraint(
            "cash_change IS NULL OR cash_change >= 0",
            name="cash_change_non_negative",
        ),
        {"comment": "Order payments"},
    )

    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    method: Mapped[str] = mapped_column(String(10), nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
        server_default=text("0"),
    )

    card_last4: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)

    cash_accepted: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    cash_change: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    coupon_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    coupon_bonus: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    coupon_expires_on: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    @property
    def masked_card(self) -> Optional[str]:
        """Card reference safe to show to the customer."""
        if not self.card_last4:
            return None
        return f"**** **** **** {self.card_last4}"
