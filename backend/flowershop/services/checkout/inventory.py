"""Order line and finalization step of the checkout workflow."""

from typing import Iterable

from flowershop.core.logging import get_logger
from flowershop.services.cart.store import CartLine
from flowershop.services.checkout.results import StepResult, capture
from flowershop.services.checkout.store import CheckoutStore

logger = get_logger(__name__)


class InventoryFinalizer:
    """
    Adds lines to an order and locks in its pricing.

    Finalization is the only place stock is decremented. It must run after
    every line is added and before anything reads the payment amount.
    """

    def __init__(self, store: CheckoutStore):
        self.store = store

    async def add_lines(self, order_id: int, lines: Iterable[CartLine]) -> StepResult[int]:
        """
        Add every line to the order, stopping at the first failure.

        Args:
            order_id: Order being built
            lines: Product and quantity pairs

        Returns:
            Result carrying the number of lines added
        """
        count = 0
        for line in lines:
            result = await capture(
                "add_order_line",
                self.store.add_order_line(order_id, line.product_id, line.quantity),
            )
            if not result.ok:
                return StepResult.failure(result.error)
            count += 1
        return StepResult.success(count)

    async def finalize(self, order_id: int) -> StepResult[None]:
        result = await capture("finalize_order", self.store.finalize_order(order_id))
        if result.ok:
            logger.info("Order totals locked in", order_id=order_id)
        return result
