"""
Checkout error taxonomy and failure translation.

Every failure a checkout attempt can end with is one of four kinds:

- CheckoutValidationError: malformed input, found before any database work
- BusinessRuleViolation: coupon or cash rules, insufficient stock
- DuplicateRedemption: the customer already spent this coupon
- IntegrityOrTransientError: anything else the database reports

Each kind carries a stable, user-facing message. Internal error codes and
driver messages stay in ``context`` for logging and never reach the client.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from flowershop.services.checkout.store import (
    CouponAlreadyRedeemedError,
    CouponExpiredError,
    InsufficientStockError,
    StoreError,
)

GENERIC_FAILURE_MESSAGE = "The order could not be created. Please try again."


class CheckoutError(Exception):
    """Base exception for checkout failures."""

    kind = "checkout_error"
    user_message = GENERIC_FAILURE_MESSAGE

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.context = context


@dataclass(frozen=True)
class FieldError:
    """Validation message bound to one input field."""

    field: str
    message: str


class CheckoutValidationError(CheckoutError):
    """Raised when checkout input is malformed or incomplete."""

    kind = "validation_error"

    def __init__(self, errors: list[FieldError], **context: Any):
        super().__init__(
            "Checkout input failed validation",
            fields=[error.field for error in errors],
            **context,
        )
        self.errors = errors

    @property
    def user_message(self) -> str:
        return self.errors[0].message if self.errors else "Invalid checkout input."


class BusinessRuleReason(str, Enum):
    """Business rules that can abort a checkout mid-transaction."""

    COUPON_NOT_FOUND = "coupon_not_found"
    COUPON_EXPIRED = "coupon_expired"
    COUPON_EXCEEDS_ORDER_VALUE = "coupon_exceeds_order_value"
    CASH_INSUFFICIENT = "cash_insufficient"
    INSUFFICIENT_STOCK = "insufficient_stock"


BUSINESS_RULE_MESSAGES: dict[BusinessRuleReason, str] = {
    BusinessRuleReason.COUPON_NOT_FOUND: "The coupon code does not exist.",
    BusinessRuleReason.COUPON_EXPIRED: "This coupon has expired.",
    BusinessRuleReason.COUPON_EXCEEDS_ORDER_VALUE: (
        "The order total must not be higher than the coupon value."
    ),
    BusinessRuleReason.CASH_INSUFFICIENT: (
        "Cash accepted must not be less than the order total."
    ),
    BusinessRuleReason.INSUFFICIENT_STOCK: (
        "Some products are no longer available in the requested quantity."
    ),
}


class BusinessRuleViolation(CheckoutError):
    """Raised when a business rule rejects the order mid-transaction."""

    kind = "business_rule_violation"

    def __init__(self, reason: BusinessRuleReason, **context: Any):
        super().__init__(f"Business rule violated: {reason.value}", reason=reason.value, **context)
        self.reason = reason

    @property
    def user_message(self) -> str:
        return BUSINESS_RULE_MESSAGES[self.reason]


class DuplicateRedemption(CheckoutError):
    """Raised when a customer tries to spend the same coupon twice."""

    kind = "duplicate_redemption"
    user_message = (
        "You have already used this coupon. "
        "Each coupon can be used only once per customer."
    )


class IntegrityOrTransientError(CheckoutError):
    """Raised for database failures that are not business rules."""

    kind = "integrity_or_transient"
    user_message = GENERIC_FAILURE_MESSAGE


def translate_failure(step: str, error: BaseException) -> CheckoutError:
    """
    Map a raw failure raised by a checkout step to a checkout error.

    Args:
        step: Name of the step that failed, kept in the error context
        error: Exception raised by the store or the database driver

    Returns:
        The checkout error to report
    """
    if isinstance(error, CheckoutError):
        return error

    context = {"step": step, "error_type": type(error).__name__}

    if isinstance(error, CouponAlreadyRedeemedError):
        return DuplicateRedemption("Coupon already redeemed by this customer", **context, **error.context)
    if isinstance(error, CouponExpiredError):
        return BusinessRuleViolation(BusinessRuleReason.COUPON_EXPIRED, **context, **error.context)
    if isinstance(error, InsufficientStockError):
        return BusinessRuleViolation(BusinessRuleReason.INSUFFICIENT_STOCK, **context, **error.context)
    if isinstance(error, StoreError):
        return IntegrityOrTransientError(str(error), **context, **error.context)
    if isinstance(error, (SQLAlchemyError, asyncio.TimeoutError, OSError)):
        return IntegrityOrTransientError(
            "Database operation failed",
            detail=str(error),
            **context,
        )

    return IntegrityOrTransientError("Unexpected checkout failure", detail=str(error), **context)
