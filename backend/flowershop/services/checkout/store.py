"""
Checkout store port.

The checkout workflow never issues SQL itself. It talks to a CheckoutStore,
a fixed set of server-side operations bound to one session and therefore
one transaction. Two implementations exist: SqlAlchemyCheckoutStore, which
performs each operation with ORM statements, and ProcedureCheckoutStore,
which calls the equivalent PL/pgSQL functions.

Implementations only flush; committing or rolling back belongs to the
caller that owns the session.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from enum import IntEnum
from typing import Any


class CouponStatus(IntEnum):
    """Outcome codes of the apply-coupon operation."""

    SUCCESS = 0
    NOT_FOUND = 1
    EXPIRED = 2
    EXCEEDS_ORDER_VALUE = 3


class StoreError(Exception):
    """Base exception for checkout store failures."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.context = context


class StatusNotConfiguredError(StoreError):
    """Raised when the order status taxonomy has no pending status."""

    pass


class RecordNotFoundError(StoreError):
    """Raised when a referenced payment, order or product does not exist."""

    pass


class CouponAlreadyRedeemedError(StoreError):
    """Raised when the (coupon, customer) redemption already exists."""

    pass


class CouponExpiredError(StoreError):
    """Raised when the database rejects an expired coupon outright."""

    pass


class InsufficientStockError(StoreError):
    """Raised by finalization when a product has too little stock."""

    pass


class NegativeChangeError(StoreError):
    """Raised when a negative cash change would be persisted."""

    pass


class CheckoutStore(ABC):
    """Transactional operations used by the checkout workflow."""

    @abstractmethod
    async def get_pending_status_id(self) -> int:
        """Return the id of the ``pending`` order status."""

    @abstractmethod
    async def create_payment(self, user_id: int, method: str) -> int:
        """Insert a payment shell and return its id."""

    @abstractmethod
    async def attach_card(self, payment_id: int, card_last4: str) -> None:
        """Store the last four card digits on a payment."""

    @abstractmethod
    async def attach_cash(self, payment_id: int, accepted: Decimal) -> None:
        """Store the cash tendered on a payment."""

    @abstractmethod
    async def set_cash_change(self, payment_id: int, change: Decimal) -> None:
        """Store the change returned on a cash payment."""

    @abstractmethod
    async def create_address(self, postal_code: str, street: str, house_number: int) -> int:
        """Insert an address row and return its id."""

    @abstractmethod
    async def create_order(
        self,
        user_id: int,
        delivery_method_id: int,
        status_id: int,
        shop_id: int,
        address_id: int,
        payment_id: int,
    ) -> int:
        """Insert an order shell and return its id."""

    @abstractmethod
    async def add_order_line(self, order_id: int, product_id: int, quantity: int) -> None:
        """Add a product line to an order."""

    @abstractmethod
    async def finalize_order(self, order_id: int) -> None:
        """Lock in line totals and the order total, decrement stock."""

    @abstractmethod
    async def apply_coupon(self, payment_id: int, code: str) -> CouponStatus:
        """Validate and redeem a coupon against a finalized payment."""

    @abstractmethod
    async def get_payment_amount(self, payment_id: int) -> Decimal:
        """Return the server-computed payment amount."""

    @abstractmethod
    async def get_order_number(self, order_id: int) -> str:
        """Return the public order number."""
