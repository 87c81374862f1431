"""
Payment step of the checkout workflow.

Creates the payment shell and attaches method-specific detail. Only the last
four card digits ever leave this module; the full number is neither stored
nor logged.
"""

from decimal import Decimal

from flowershop.core.logging import get_logger
from flowershop.database.models import PaymentMethod
from flowershop.services.checkout.errors import (
    BusinessRuleReason,
    BusinessRuleViolation,
    CheckoutValidationError,
    FieldError,
)
from flowershop.services.checkout.results import StepResult, capture
from flowershop.services.checkout.store import CheckoutStore
from flowershop.services.checkout.validation import MIN_CARD_DIGITS, card_digits

logger = get_logger(__name__)


class PaymentService:
    """Creates payments and records card, cash and change details."""

    def __init__(self, store: CheckoutStore):
        self.store = store

    async def create_payment(self, user_id: int, method: str) -> StepResult[int]:
        """
        Create an empty payment of the given method.

        Args:
            user_id: Paying customer
            method: Payment method name (card, cash, coupon)

        Returns:
            Result carrying the new payment id
        """
        try:
            payment_method = PaymentMethod.from_string(method)
        except ValueError:
            return StepResult.failure(
                CheckoutValidationError(
                    [FieldError("payment.method", "Please choose a supported payment method.")],
                    method=method,
                )
            )

        result = await capture(
            "create_payment",
            self.store.create_payment(user_id, payment_method.value),
        )
        if result.ok:
            logger.info(
                "Payment shell created",
                payment_id=result.value,
                method=payment_method.value,
            )
        return result

    async def attach_card(self, payment_id: int, card_number: str) -> StepResult[None]:
        """
        Record the last four digits of the card on the payment.

        Args:
            payment_id: Payment to update
            card_number: Full card number as typed by the customer

        Returns:
            Empty result
        """
        digits = card_digits(card_number)
        if len(digits) < MIN_CARD_DIGITS:
            return StepResult.failure(
                CheckoutValidationError(
                    [
                        FieldError(
                            "payment.card_number",
                            f"Enter a valid card number (at least {MIN_CARD_DIGITS} digits).",
                        )
                    ],
                    payment_id=payment_id,
                )
            )
        return await capture("attach_card", self.store.attach_card(payment_id, digits[-4:]))

    async def attach_cash(self, payment_id: int, accepted: Decimal) -> StepResult[None]:
        """Record the cash tendered; the change is computed after finalization."""
        return await capture("attach_cash", self.store.attach_cash(payment_id, accepted))

    async def set_cash_change(self, payment_id: int, change: Decimal) -> StepResult[None]:
        if change < 0:
            return StepResult.failure(
                BusinessRuleViolation(
                    BusinessRuleReason.CASH_INSUFFICIENT,
                    payment_id=payment_id,
                    change=str(change),
                )
            )
        return await capture("set_cash_change", self.store.set_cash_change(payment_id, change))

    async def get_amount(self, payment_id: int) -> StepResult[Decimal]:
        """Read the server-computed amount due on a payment."""
        return await capture("get_amount", self.store.get_payment_amount(payment_id))
