"""
Stored-procedure backend of the checkout store.

Every write goes through a PL/pgSQL function installed by the
``002_checkout_procedures`` migration. The functions signal business
failures with custom SQLSTATE codes in the ``FL5xx`` class, which are
mapped back to store errors here. Requires PostgreSQL.
"""

from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from flowershop.core.logging import get_logger
from flowershop.database.models import PENDING_STATUS_NAME
from flowershop.services.checkout.store import (
    CheckoutStore,
    CouponAlreadyRedeemedError,
    CouponExpiredError,
    CouponStatus,
    InsufficientStockError,
    NegativeChangeError,
    RecordNotFoundError,
    StatusNotConfiguredError,
    StoreError,
)

logger = get_logger(__name__)

SQLSTATE_ERRORS: dict[str, type[StoreError]] = {
    "FL501": CouponExpiredError,
    "FL502": CouponAlreadyRedeemedError,
    "FL503": InsufficientStockError,
    "FL504": NegativeChangeError,
    "FL404": RecordNotFoundError,
}


def get_sqlstate(error: DBAPIError) -> Optional[str]:
    """Return the SQLSTATE reported by the driver, if any."""
    original = error.orig
    return getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)


class ProcedureCheckoutStore(CheckoutStore):
    """
    Checkout store that delegates every operation to a stored procedure.

    Driver errors carrying one of the known SQLSTATE codes are re-raised as
    the matching StoreError; any other database error propagates unchanged.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _call(self, procedure: str, **params: Any) -> Any:
        placeholders = ", ".join(f":{name}" for name in params)
        statement = text(f"SELECT {procedure}({placeholders})")
        try:
            result = await self.session.execute(statement, params)
        except DBAPIError as e:
            sqlstate = get_sqlstate(e)
            error_class = SQLSTATE_ERRORS.get(sqlstate or "")
            if error_class is None:
                raise
            logger.debug(
                "Stored procedure signalled business failure",
                procedure=procedure,
                sqlstate=sqlstate,
            )
            raise error_class(
                str(e.orig),
                procedure=procedure,
                sqlstate=sqlstate,
            ) from e
        return result.scalar_one_or_none()

    async def get_pending_status_id(self) -> int:
        result = await self.session.execute(
            text("SELECT id FROM order_statuses WHERE name = :name"),
            {"name": PENDING_STATUS_NAME},
        )
        status_id = result.scalar_one_or_none()
        if status_id is None:
            raise StatusNotConfiguredError(
                "Pending order status is not configured",
                status_name=PENDING_STATUS_NAME,
            )
        return status_id

    async def create_payment(self, user_id: int, method: str) -> int:
        return await self._call("prc_create_payment", user_id=user_id, method=method)

    async def attach_card(self, payment_id: int, card_last4: str) -> None:
        await self._call("prc_payment_attach_card", payment_id=payment_id, card_last4=card_last4)

    async def attach_cash(self, payment_id: int, accepted: Decimal) -> None:
        await self._call("prc_payment_attach_cash", payment_id=payment_id, accepted=accepted)

    async def set_cash_change(self, payment_id: int, change: Decimal) -> None:
        await self._call("prc_payment_set_change", payment_id=payment_id, change=change)

    async def create_address(self, postal_code: str, street: str, house_number: int) -> int:
        return await self._call(
            "prc_create_address",
            postal_code=postal_code,
            street=street,
            house_number=house_number,
        )

    async def create_order(
        self,
        user_id: int,
        delivery_method_id: int,
        status_id: int,
        shop_id: int,
        address_id: int,
        payment_id: int,
    ) -> int:
        return await self._call(
            "prc_create_order",
            user_id=user_id,
            delivery_method_id=delivery_method_id,
            status_id=status_id,
            shop_id=shop_id,
            address_id=address_id,
            payment_id=payment_id,
        )

    async def add_order_line(self, order_id: int, product_id: int, quantity: int) -> None:
        await self._call("prc_add_item", order_id=order_id, product_id=product_id, quantity=quantity)

    async def finalize_order(self, order_id: int) -> None:
        await self._call("prc_finalize_order", order_id=order_id)

    async def apply_coupon(self, payment_id: int, code: str) -> CouponStatus:
        status = await self._call("prc_coupon_apply", payment_id=payment_id, code=code.strip())
        return CouponStatus(status)

    async def get_payment_amount(self, payment_id: int) -> Decimal:
        result = await self.session.execute(
            text("SELECT amount FROM payments WHERE id = :payment_id"),
            {"payment_id": payment_id},
        )
        amount = result.scalar_one_or_none()
        if amount is None:
            raise RecordNotFoundError("Payment not found", payment_id=payment_id)
        return Decimal(amount)

    async def get_order_number(self, order_id: int) -> str:
        result = await self.session.execute(
            text("SELECT order_number FROM orders WHERE id = :order_id"),
            {"order_id": order_id},
        )
        number = result.scalar_one_or_none()
        if number is None:
            raise RecordNotFoundError("Order not found", order_id=order_id)
        return number
