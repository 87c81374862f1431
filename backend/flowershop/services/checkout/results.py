"""
Explicit step results for the checkout workflow.

Each checkout component returns a StepResult instead of letting store
exceptions unwind through the coordinator. The coordinator checks every
result and rolls back on the first failure.
"""

from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, TypeVar

from flowershop.core.logging import get_logger
from flowershop.services.checkout.errors import CheckoutError, translate_failure

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StepResult(Generic[T]):
    """Value produced by a checkout step, or the error that stopped it."""

    value: Optional[T] = None
    error: Optional[CheckoutError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "StepResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: CheckoutError) -> "StepResult[T]":
        return cls(error=error)


async def capture(step: str, operation: Awaitable[T]) -> StepResult[T]:
    """
    Await a store operation and wrap its outcome in a StepResult.

    Args:
        step: Step name used for logging and error context
        operation: Awaitable store call

    Returns:
        Successful result with the operation's value, or a failed result
        carrying the translated checkout error
    """
    try:
        return StepResult.success(await operation)
    except Exception as e:
        error = translate_failure(step, e)
        logger.warning(
            "Checkout step failed",
            step=step,
            error_kind=error.kind,
            error_type=type(e).__name__,
        )
        return StepResult.failure(error)
