"""Input and output types of the checkout workflow."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from flowershop.services.cart.store import CartLine
from flowershop.services.checkout.errors import CheckoutError


@dataclass(frozen=True)
class NewAddress:
    """Delivery address typed in at checkout."""

    street: str
    house_number: int
    postal_code: str


@dataclass(frozen=True)
class AddressInput:
    """Either a reference to an existing address or a new one."""

    address_id: Optional[int] = None
    new_address: Optional[NewAddress] = None


@dataclass(frozen=True)
class PaymentInput:
    """Payment method and its method-specific detail."""

    method: str
    card_number: Optional[str] = field(default=None, repr=False)
    cash_accepted: Optional[Decimal] = None
    coupon_code: Optional[str] = None


@dataclass(frozen=True)
class PlaceOrderCommand:
    """
    Request to turn a cart into an order.

    Attributes:
        user_id: Ordering customer
        delivery_method_id: Chosen delivery method
        shop_id: Fulfilling shop
        address: Delivery address input
        payment: Payment input
        lines: Explicit order lines; the customer's cart is used when omitted
    """

    user_id: int
    delivery_method_id: int
    shop_id: int
    address: AddressInput
    payment: PaymentInput
    lines: Optional[list[CartLine]] = None


@dataclass(frozen=True)
class PlacedOrder:
    """Committed order summary."""

    order_id: int
    order_number: str
    total: Decimal
    change: Optional[Decimal] = None


@dataclass(frozen=True)
class CheckoutResult:
    """Outcome of one checkout attempt."""

    order: Optional[PlacedOrder] = None
    error: Optional[CheckoutError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.order is not None
