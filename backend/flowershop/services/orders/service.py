"""
Order query service.

Read-only access to placed orders for their owners. Orders are written only
by the checkout workflow.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flowershop.core.logging import get_logger
from flowershop.database.models import Order

logger = get_logger(__name__)


class OrderServiceError(Exception):
    """Base exception for order service errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.context = context


class OrderNotFoundError(OrderServiceError):
    """Raised when an order does not exist or belongs to someone else."""

    pass


class OrderQueryService:
    """Loads order details for the order owner."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_order_details(self, order_id: int, user_id: int) -> Order:
        """
        Load an order with its payment, address, lines and reference data.

        Args:
            order_id: Order identifier
            user_id: Requesting customer

        Returns:
            Order with relationships loaded

        Raises:
            OrderNotFoundError: If no such order belongs to the customer
        """
        result = await self.session.execute(
            select(Order).where(Order.id == order_id, Order.user_id == user_id)
        )
        order = result.scalar_one_or_none()
        if order is None:
            logger.info("Order not found for customer", order_id=order_id, user_id=user_id)
            raise OrderNotFoundError("Order not found", order_id=order_id)
        return order
