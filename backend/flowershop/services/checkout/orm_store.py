"""
SQLAlchemy backend of the checkout store.

Each operation is expressed with ORM statements on the caller's session and
flushed immediately, so identifiers are available to the next step while
the transaction stays open. Works on PostgreSQL and SQLite.
"""

import secrets
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from flowershop.core.logging import get_logger
from flowershop.database.models import (
    PENDING_STATUS_NAME,
    Address,
    Coupon,
    CouponRedemption,
    Order,
    OrderLine,
    OrderStatus,
    Payment,
    Product,
)
from flowershop.services.checkout.store import (
    CheckoutStore,
    CouponAlreadyRedeemedError,
    CouponStatus,
    InsufficientStockError,
    NegativeChangeError,
    RecordNotFoundError,
    StatusNotConfiguredError,
)

logger = get_logger(__name__)

ORDER_NUMBER_PREFIX = "FL"
CENTS = Decimal("0.01")


def generate_order_number(now: Optional[datetime] = None) -> str:
    """
    Generate a public order number.

    Format: FL-YYYYMMDD-XXXXXX where X is an upper-case hex digit.

    Args:
        now: Timestamp to take the date part from, defaults to current UTC

    Returns:
        Order number string
    """
    now = now or datetime.now(timezone.utc)
    return f"{ORDER_NUMBER_PREFIX}-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


class SqlAlchemyCheckoutStore(CheckoutStore):
    """Checkout store implemented with SQLAlchemy ORM statements."""

    def __init__(self, session: AsyncSession, today: Optional[Callable[[], date]] = None):
        """
        Initialize store.

        Args:
            session: Async database session owning the checkout transaction
            today: Callable returning the current date, used for coupon expiry
        """
        self.session = session
        self._today = today or date.today

    async def _get_payment(self, payment_id: int) -> Payment:
        payment = await self.session.get(Payment, payment_id)
        if payment is None:
            raise RecordNotFoundError("Payment not found", payment_id=payment_id)
        return payment

    async def _get_order(self, order_id: int) -> Order:
        order = await self.session.get(Order, order_id)
        if order is None:
            raise RecordNotFoundError("Order not found", order_id=order_id)
        return order

    async def get_pending_status_id(self) -> int:
        result = await self.session.execute(
            select(OrderStatus.id).where(OrderStatus.name == PENDING_STATUS_NAME)
        )
        status_id = result.scalar_one_or_none()
        if status_id is None:
            raise StatusNotConfiguredError(
                "Pending order status is not configured",
                status_name=PENDING_STATUS_NAME,
            )
        return status_id

    async def create_payment(self, user_id: int, method: str) -> int:
        payment = Payment(user_id=user_id, method=method, amount=Decimal("0.00"))
        self.session.add(payment)
        await self.session.flush()
        return payment.id

    async def attach_card(self, payment_id: int, card_last4: str) -> None:
        payment = await self._get_payment(payment_id)
        payment.card_last4 = card_last4
        await self.session.flush()

    async def attach_cash(self, payment_id: int, accepted: Decimal) -> None:
        payment = await self._get_payment(payment_id)
        payment.cash_accepted = accepted.quantize(CENTS)
        await self.session.flush()

    async def set_cash_change(self, payment_id: int, change: Decimal) -> None:
        if change < 0:
            raise NegativeChangeError(
                "Cash change must not be negative",
                payment_id=payment_id,
                change=str(change),
            )
        payment = await self._get_payment(payment_id)
        payment.cash_change = change.quantize(CENTS)
        await self.session.flush()

    async def create_address(self, postal_code: str, street: str, house_number: int) -> int:
        address = Address(postal_code=postal_code, street=street, house_number=house_number)
        self.session.add(address)
        await self.session.flush()
        return address.id

    async def create_order(
        self,
        user_id: int,
        delivery_method_id: int,
        status_id: int,
        shop_id: int,
        address_id: int,
        payment_id: int,
    ) -> int:
        order = Order(
            order_number=generate_order_number(),
            user_id=user_id,
            delivery_method_id=delivery_method_id,
            status_id=status_id,
            shop_id=shop_id,
            address_id=address_id,
            payment_id=payment_id,
            total=Decimal("0.00"),
        )
        self.session.add(order)
        await self.session.flush()
        return order.id

    async def add_order_line(self, order_id: int, product_id: int, quantity: int) -> None:
        product = await self.session.get(Product, product_id)
        if product is None:
            raise RecordNotFoundError("Product not found", product_id=product_id)

        result = await self.session.execute(
            select(OrderLine).where(
                OrderLine.order_id == order_id,
                OrderLine.product_id == product_id,
            )
        )
        line = result.scalar_one_or_none()
        if line is not None:
            line.quantity += quantity
        else:
            self.session.add(
                OrderLine(
                    order_id=order_id,
                    product_id=product_id,
                    quantity=quantity,
                    unit_price=product.price,
                    line_total=Decimal("0.00"),
                )
            )
        await self.session.flush()

    async def finalize_order(self, order_id: int) -> None:
        order = await self._get_order(order_id)

        lines_result = await self.session.execute(
            select(OrderLine).where(OrderLine.order_id == order_id).order_by(OrderLine.id)
        )
        lines = list(lines_result.scalars())
        if not lines:
            raise RecordNotFoundError("Order has no lines", order_id=order_id)

        # Lock products in id order; SQLite ignores FOR UPDATE
        products_result = await self.session.execute(
            select(Product)
            .where(Product.id.in_(sorted({line.product_id for line in lines})))
            .order_by(Product.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        products = {product.id: product for product in products_result.scalars()}

        total = Decimal("0.00")
        for line in lines:
            product = products[line.product_id]
            if product.stock < line.quantity:
                raise InsufficientStockError(
                    "Insufficient stock",
                    product_id=product.id,
                    requested=line.quantity,
                    available=product.stock,
                )
            product.stock -= line.quantity
            line.unit_price = product.price
            line.line_total = (product.price * line.quantity).quantize(CENTS)
            total += line.line_total

        order.total = total
        payment = await self._get_payment(order.payment_id)
        payment.amount = total
        await self.session.flush()

        logger.debug(
            "Order finalized",
            order_id=order_id,
            line_count=len(lines),
            total=str(total),
        )

    async def apply_coupon(self, payment_id: int, code: str) -> CouponStatus:
        code = code.strip()
        payment = await self._get_payment(payment_id)

        result = await self.session.execute(select(Coupon).where(Coupon.code == code))
        coupon = result.scalar_one_or_none()
        if coupon is None:
            return CouponStatus.NOT_FOUND
        if coupon.is_expired(self._today()):
            return CouponStatus.EXPIRED
        if coupon.bonus < payment.amount:
            return CouponStatus.EXCEEDS_ORDER_VALUE

        existing = await self.session.execute(
            select(CouponRedemption.id).where(
                CouponRedemption.coupon_id == coupon.id,
                CouponRedemption.user_id == payment.user_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise CouponAlreadyRedeemedError(
                "Coupon already redeemed",
                coupon_id=coupon.id,
                payment_id=payment_id,
            )

        self.session.add(
            CouponRedemption(
                coupon_id=coupon.id,
                user_id=payment.user_id,
                payment_id=payment_id,
            )
        )
        try:
            await self.session.flush()
        except IntegrityError as e:
            # Concurrent redemption won the unique (coupon, user) race
            raise CouponAlreadyRedeemedError(
                "Coupon already redeemed",
                coupon_id=coupon.id,
                payment_id=payment_id,
            ) from e

        payment.coupon_code = coupon.code
        payment.coupon_bonus = coupon.bonus
        payment.coupon_expires_on = coupon.expires_on
        await self.session.flush()
        return CouponStatus.SUCCESS

    async def get_payment_amount(self, payment_id: int) -> Decimal:
        result = await self.session.execute(
            select(Payment.amount).where(Payment.id == payment_id)
        )
        amount = result.scalar_one_or_none()
        if amount is None:
            raise RecordNotFoundError("Payment not found", payment_id=payment_id)
        return Decimal(amount)

    async def get_order_number(self, order_id: int) -> str:
        result = await self.session.execute(
            select(Order.order_number).where(Order.id == order_id)
        )
        number = result.scalar_one_or_none()
        if number is None:
            raise RecordNotFoundError("Order not found", order_id=order_id)
        return number
