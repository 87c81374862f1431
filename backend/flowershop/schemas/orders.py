"""
Order Pydantic schemas for API request/response validation.

Request schemas only enforce types and shapes. Checkout rules (complete
address, card length, cash amount, coupon code) are checked by the checkout
validation so every rejected field is reported in one response.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from flowershop.database.models import Order
from flowershop.services.cart.store import CartLine
from flowershop.services.checkout.commands import (
    AddressInput,
    NewAddress,
    PaymentInput,
    PlacedOrder,
    PlaceOrderCommand,
)


class OrderItemRequest(BaseModel):
    """Explicit order line."""

    product_id: int = Field(..., description="Product identifier")
    quantity: int = Field(..., description="Number of pieces")


class NewAddressRequest(BaseModel):
    """Delivery address typed in at checkout."""

    model_config = ConfigDict(str_strip_whitespace=True)

    street: str = Field(default="", max_length=200, description="Street name")
    house_number: int = Field(default=0, description="House number")
    postal_code: str = Field(default="", max_length=10, description="Postal code")


class PaymentRequest(BaseModel):
    """Payment method and its detail."""

    model_config = ConfigDict(str_strip_whitespace=True)

    method: str = Field(..., description="Payment method: card, cash or coupon")
    card_number: Optional[SecretStr] = Field(None, description="Card number, card payments only")
    cash_accepted: Optional[Decimal] = Field(
        None,
        decimal_places=2,
        description="Cash tendered, cash payments only",
    )
    coupon_code: Optional[str] = Field(None, max_length=50, description="Coupon code")


class PlaceOrderRequest(BaseModel):
    """
    Checkout request.

    Either ``address_id`` or ``new_address`` is given; ``new_address`` wins
    when both are. ``items`` defaults to the customer's cart.
    """

    delivery_method_id: int = Field(..., description="Delivery method identifier")
    shop_id: int = Field(..., description="Fulfilling shop identifier")
    address_id: Optional[int] = Field(None, description="Existing address identifier")
    new_address: Optional[NewAddressRequest] = Field(None, description="New delivery address")
    payment: PaymentRequest
    items: Optional[list[OrderItemRequest]] = Field(
        None,
        description="Explicit order lines, defaults to the cart",
    )

    def to_command(self, user_id: int) -> PlaceOrderCommand:
        new_address = None
        if self.new_address is not None:
            new_address = NewAddress(
                street=self.new_address.street,
                house_number=self.new_address.house_number,
                postal_code=self.new_address.postal_code,
            )
        card_number = self.payment.card_number
        lines = None
        if self.items is not None:
            lines = [CartLine(product_id=item.product_id, quantity=item.quantity) for item in self.items]

        return PlaceOrderCommand(
            user_id=user_id,
            delivery_method_id=self.delivery_method_id,
            shop_id=self.shop_id,
            address=AddressInput(address_id=self.address_id, new_address=new_address),
            payment=PaymentInput(
                method=self.payment.method,
                card_number=card_number.get_secret_value() if card_number else None,
                cash_accepted=self.payment.cash_accepted,
                coupon_code=self.payment.coupon_code,
            ),
            lines=lines,
        )


class PlaceOrderResponse(BaseModel):
    """Committed order summary."""

    order_id: int
    order_number: str
    total: Decimal
    change: Optional[Decimal] = None
    currency: str
    redirect_url: str

    @classmethod
    def from_placed(cls, placed: PlacedOrder, currency: str) -> "PlaceOrderResponse":
        return cls(
            order_id=placed.order_id,
            order_number=placed.order_number,
            total=placed.total,
            change=placed.change,
            currency=currency,
            redirect_url=f"/orders/{placed.order_id}",
        )


class FieldErrorResponse(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    """Error body shared by every endpoint."""

    error: str
    message: str
    fields: Optional[list[FieldErrorResponse]] = None
    request_id: Optional[str] = None


class PaymentDetailResponse(BaseModel):
    """Payment block of the order details view."""

    method: str
    amount: Decimal
    card: Optional[str] = Field(None, description="Masked card number")
    cash_accepted: Optional[Decimal] = None
    cash_returned: Optional[Decimal] = None
    coupon_code: Optional[str] = None
    coupon_bonus: Optional[Decimal] = None
    coupon_expires_on: Optional[date] = None


class OrderLineResponse(BaseModel):
    product_id: int
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderDetailResponse(BaseModel):
    """Order details for the owning customer."""

    order_id: int
    order_number: str
    created_at: Optional[datetime] = None
    status: str
    delivery_method: str
    shop: str
    address: str
    total: Decimal
    currency: str
    payment: PaymentDetailResponse
    items: list[OrderLineResponse]

    @classmethod
    def from_order(cls, order: Order, currency: str) -> "OrderDetailResponse":
        payment = order.payment
        return cls(
            order_id=order.id,
            order_number=order.order_number,
            created_at=order.created_at,
            status=order.status.name,
            delivery_method=order.delivery_method.name,
            shop=order.shop.name,
            address=order.address.display_name,
            total=order.total,
            currency=currency,
            payment=PaymentDetailResponse(
                method=payment.method,
                amount=payment.amount,
                card=payment.masked_card,
                cash_accepted=payment.cash_accepted,
                cash_returned=payment.cash_change,
                coupon_code=payment.coupon_code,
                coupon_bonus=payment.coupon_bonus,
                coupon_expires_on=payment.coupon_expires_on,
            ),
            items=[
                OrderLineResponse(
                    product_id=line.product_id,
                    name=line.product.name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=line.line_total,
                )
                for line in order.lines
            ],
        )
