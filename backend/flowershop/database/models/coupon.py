"""
Coupon and coupon redemption models.

A coupon can be redeemed at most once per customer; the unique
(coupon_id, user_id) constraint on ``coupon_redemptions`` is what enforces
it, so concurrent attempts by the same customer cannot both succeed.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from flowershop.database.base import BaseModel, ReferenceModel


class Coupon(BaseModel):
    """
    Prepaid coupon with a fixed bonus value.

    The bonus must cover the whole order; partial coverage is rejected.
    The coupon is valid through ``expires_on`` inclusive.
    """

    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("bonus > 0", name="bonus_positive"),
        {"comment": "Prepaid coupons"},
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    bonus: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    expires_on: Mapped[date] = mapped_column(Date, nullable=False)

    def is_expired(self, today: date) -> bool:
        return self.expires_on < today


class CouponRedemption(ReferenceModel):
    """Record of a customer spending a coupon on a payment."""

    __tablename__ = "coupon_redemptions"
    __table_args__ = (
        UniqueConstraint("coupon_id", "user_id", name="uq_coupon_redemptions_coupon_user"),
        {"comment": "One redemption per coupon and customer"},
    )

    coupon_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("coupons.id", ondelete="RESTRICT"),
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("payments.id", ondelete="CASCADE"),
        nullable=False,
    )
    redeemed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
