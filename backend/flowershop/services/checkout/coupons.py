"""
Coupon step of the checkout workflow.

A coupon pays for the whole order or not at all: its bonus must cover the
finalized amount. Each customer may redeem a given coupon once; a second
attempt is rejected by the unique redemption constraint.
"""

from flowershop.core.logging import get_logger
from flowershop.services.checkout.errors import BusinessRuleReason, BusinessRuleViolation
from flowershop.services.checkout.results import StepResult, capture
from flowershop.services.checkout.store import CheckoutStore, CouponStatus

logger = get_logger(__name__)

COUPON_STATUS_REASONS = {
    CouponStatus.NOT_FOUND: BusinessRuleReason.COUPON_NOT_FOUND,
    CouponStatus.EXPIRED: BusinessRuleReason.COUPON_EXPIRED,
    CouponStatus.EXCEEDS_ORDER_VALUE: BusinessRuleReason.COUPON_EXCEEDS_ORDER_VALUE,
}


class CouponApplier:
    """Validates and redeems coupon codes against finalized payments."""

    def __init__(self, store: CheckoutStore):
        self.store = store

    async def apply(self, payment_id: int, code: str) -> StepResult[CouponStatus]:
        """
        Redeem a coupon for a payment.

        Must run after finalization, since the coupon value is compared with
        the payment amount.

        Args:
            payment_id: Finalized payment
            code: Coupon code as entered, surrounding whitespace ignored

        Returns:
            Successful result with CouponStatus.SUCCESS, or a failed result
            with a business rule violation or duplicate redemption
        """
        code = (code or "").strip()
        result = await capture("apply_coupon", self.store.apply_coupon(payment_id, code))
        if not result.ok:
            return result

        status = CouponStatus(result.value)
        logger.info("Coupon evaluated", payment_id=payment_id, coupon_status=status.name)

        if status is CouponStatus.SUCCESS:
            return StepResult.success(status)
        return StepResult.failure(
            BusinessRuleViolation(
                COUPON_STATUS_REASONS[status],
                payment_id=payment_id,
                coupon_status=int(status),
            )
        )
