"""
Checkout input validation.

Runs before any database work. Collects every problem found so the client
can highlight all offending fields at once.
"""

from decimal import Decimal
from typing import Optional

from flowershop.database.models import PaymentMethod
from flowershop.services.cart.store import CartLine
from flowershop.services.checkout.commands import AddressInput, PaymentInput, PlaceOrderCommand
from flowershop.services.checkout.errors import FieldError

MIN_CARD_DIGITS = 12
MAX_POSTAL_CODE_LENGTH = 10
# Column limits: integer ids and counts, Numeric(10, 2) amounts.
MAX_INTEGER = 2_147_483_647
MAX_AMOUNT = Decimal("99999999.99")


def card_digits(card_number: Optional[str]) -> str:
    """Return only the digits of a card number."""
    return "".join(ch for ch in (card_number or "") if ch.isdigit())


def _in_range(value: Optional[int]) -> bool:
    return value is not None and 0 < value <= MAX_INTEGER


def _validate_lines(lines: Optional[list[CartLine]]) -> list[FieldError]:
    if not lines:
        return [FieldError("items", "Add at least one valid item to the order.")]
    if any(not _in_range(line.product_id) or not _in_range(line.quantity) for line in lines):
        return [FieldError("items", "Add at least one valid item to the order.")]
    return []


def _validate_address(address: AddressInput) -> list[FieldError]:
    if address.new_address is not None:
        new = address.new_address
        errors = []
        if not (new.street or "").strip():
            errors.append(FieldError("new_address.street", "Please enter the street."))
        if not _in_range(new.house_number):
            errors.append(FieldError("new_address.house_number", "Please enter the house number."))
        postal_code = (new.postal_code or "").strip()
        if not postal_code:
            errors.append(FieldError("new_address.postal_code", "Please enter the postal code."))
        elif len(postal_code) > MAX_POSTAL_CODE_LENGTH:
            errors.append(FieldError("new_address.postal_code", "The postal code is too long."))
        return errors

    if not _in_range(address.address_id):
        return [FieldError("address_id", "Please select an existing address.")]
    return []


def _validate_payment(payment: PaymentInput) -> list[FieldError]:
    try:
        method = PaymentMethod.from_string(payment.method or "")
    except ValueError:
        return [FieldError("payment.method", "Please choose a supported payment method.")]

    if method is PaymentMethod.CARD:
        if len(card_digits(payment.card_number)) < MIN_CARD_DIGITS:
            return [
                FieldError(
                    "payment.card_number",
                    f"Enter a valid card number (at least {MIN_CARD_DIGITS} digits).",
                )
            ]
    elif method is PaymentMethod.CASH:
        if payment.cash_accepted is None or payment.cash_accepted <= Decimal("0"):
            return [FieldError("payment.cash_accepted", "Enter the cash amount accepted.")]
        if payment.cash_accepted > MAX_AMOUNT:
            return [FieldError("payment.cash_accepted", "The cash amount is too large.")]
    elif method is PaymentMethod.COUPON:
        if not (payment.coupon_code or "").strip():
            return [FieldError("payment.coupon_code", "Enter the coupon code.")]
    return []


def validate_place_order(command: PlaceOrderCommand, lines: Optional[list[CartLine]]) -> list[FieldError]:
    """
    Validate a checkout request.

    Args:
        command: Checkout request
        lines: Order lines resolved from the command or the cart

    Returns:
        Field errors, empty when the request is valid
    """
    errors: list[FieldError] = []
    if not _in_range(command.user_id):
        errors.append(FieldError("user_id", "Unknown customer."))
    if not _in_range(command.delivery_method_id):
        errors.append(FieldError("delivery_method_id", "Please choose a delivery method."))
    if not _in_range(command.shop_id):
        errors.append(FieldError("shop_id", "Please choose a shop."))
    errors.extend(_validate_address(command.address))
    errors.extend(_validate_payment(command.payment))
    errors.extend(_validate_lines(lines))
    return errors
