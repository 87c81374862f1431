"""
Order placement workflow.

OrderWorkflowCoordinator turns a cart into a committed order inside one
database transaction. Steps run in a fixed order:

1. look up the pending order status
2. create the payment shell
3. attach card last-4 or cash tendered
4. resolve the delivery address
5. create the order
6. add the order lines
7. finalize totals and stock
8. redeem the coupon (coupon payments)
9. reconcile cash and record change (cash payments)
10. commit, then clear the cart

Every step returns a StepResult. On the first failed result the coordinator
rolls the transaction back and returns the error, so no order, payment,
redemption or stock change from a failed attempt is ever committed.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flowershop.core.config import get_settings
from flowershop.core.logging import get_logger, log_performance
from flowershop.database.models import PaymentMethod
from flowershop.services.cart.store import CartLine, CartStore, cart_key
from flowershop.services.checkout.addresses import AddressResolver
from flowershop.services.checkout.commands import CheckoutResult, PlacedOrder, PlaceOrderCommand
from flowershop.services.checkout.coupons import CouponApplier
from flowershop.services.checkout.errors import (
    BusinessRuleReason,
    BusinessRuleViolation,
    CheckoutError,
    CheckoutValidationError,
    translate_failure,
)
from flowershop.services.checkout.inventory import InventoryFinalizer
from flowershop.services.checkout.orm_store import SqlAlchemyCheckoutStore
from flowershop.services.checkout.payments import PaymentService
from flowershop.services.checkout.procedure_store import ProcedureCheckoutStore
from flowershop.services.checkout.results import capture
from flowershop.services.checkout.store import CheckoutStore
from flowershop.services.checkout.validation import validate_place_order

logger = get_logger(__name__)

StoreFactory = Callable[[AsyncSession], CheckoutStore]


class CheckoutState(str, Enum):
    """Progress of one order placement attempt."""

    DRAFT = "draft"
    PAYMENT_SHELL_CREATED = "payment_shell_created"
    ADDRESS_RESOLVED = "address_resolved"
    ORDER_CREATED = "order_created"
    ITEMS_ADDED = "items_added"
    FINALIZED = "finalized"
    COUPON_EVALUATED = "coupon_evaluated"
    CASH_RECONCILED = "cash_reconciled"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


def create_checkout_store(session: AsyncSession, backend: Optional[str] = None) -> CheckoutStore:
    """
    Build the configured checkout store for a session.

    Args:
        session: Session owning the checkout transaction
        backend: ``orm`` or ``procedures``, defaults to settings

    Returns:
        Checkout store bound to the session

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = backend or get_settings().checkout_store_backend
    if backend == "orm":
        return SqlAlchemyCheckoutStore(session)
    if backend == "procedures":
        return ProcedureCheckoutStore(session)
    raise ValueError(f"Unknown checkout store backend: {backend}")


class _Attempt:
    """Mutable progress of one checkout attempt, used for logging."""

    def __init__(self, user_id: int, method: str):
        self.state = CheckoutState.DRAFT
        self.ids: dict[str, Any] = {"user_id": user_id, "method": method}

    def advance(self, state: CheckoutState, **ids: Any) -> None:
        previous = self.state
        self.state = state
        self.ids.update(ids)
        logger.info(
            "Checkout state changed",
            from_state=previous.value,
            to_state=state.value,
            **self.ids,
        )


class OrderWorkflowCoordinator:
    """
    Places orders atomically.

    The coordinator owns the session and the transaction; components only
    see the checkout store bound to that session.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cart_store: CartStore,
        store_factory: Optional[StoreFactory] = None,
    ):
        """
        Initialize coordinator.

        Args:
            session_factory: Factory producing one session per attempt
            cart_store: Cart storage read before and cleared after the transaction
            store_factory: Builds the checkout store for a session,
                defaults to the configured backend
        """
        self.session_factory = session_factory
        self.cart_store = cart_store
        self.store_factory = store_factory or create_checkout_store

    async def place_order(self, command: PlaceOrderCommand) -> CheckoutResult:
        """
        Place an order.

        Args:
            command: Checkout request

        Returns:
            CheckoutResult with the placed order, or with the error that
            aborted the attempt
        """
        identity = cart_key(command.user_id)
        lines = command.lines
        if lines is None:
            try:
                lines = await self.cart_store.get(identity)
            except Exception as e:
                return CheckoutResult(error=translate_failure("read_cart", e))

        attempt = _Attempt(command.user_id, command.payment.method)

        errors = validate_place_order(command, lines)
        if errors:
            logger.info(
                "Checkout rejected by validation",
                fields=[error.field for error in errors],
                user_id=command.user_id,
            )
            return CheckoutResult(error=CheckoutValidationError(errors))

        with log_performance(logger, "place_order", user_id=command.user_id):
            async with self.session_factory() as session:
                store = self.store_factory(session)
                outcome = await self._run(store, command, lines, attempt)
                if isinstance(outcome, CheckoutError):
                    await self._rollback(session, attempt, outcome)
                    return CheckoutResult(error=outcome)

                try:
                    await session.commit()
                except Exception as e:
                    error = translate_failure("commit", e)
                    await self._rollback(session, attempt, error)
                    return CheckoutResult(error=error)
                attempt.advance(CheckoutState.COMMITTED, order_number=outcome.order_number)

        await self._clear_cart(identity, command)
        return CheckoutResult(order=outcome)

    async def _run(
        self,
        store: CheckoutStore,
        command: PlaceOrderCommand,
        lines: list[CartLine],
        attempt: _Attempt,
    ) -> Union[PlacedOrder, CheckoutError]:
        payments = PaymentService(store)
        addresses = AddressResolver(store)
        inventory = InventoryFinalizer(store)
        coupons = CouponApplier(store)
        method = PaymentMethod.from_string(command.payment.method)

        status = await capture("get_pending_status", store.get_pending_status_id())
        if not status.ok:
            return status.error

        payment = await payments.create_payment(command.user_id, method.value)
        if not payment.ok:
            return payment.error
        payment_id = payment.value

        if method is PaymentMethod.CARD:
            detail = await payments.attach_card(payment_id, command.payment.card_number)
        elif method is PaymentMethod.CASH:
            detail = await payments.attach_cash(payment_id, command.payment.cash_accepted)
        else:
            detail = None
        if detail is not None and not detail.ok:
            return detail.error
        attempt.advance(CheckoutState.PAYMENT_SHELL_CREATED, payment_id=payment_id)

        address = await addresses.resolve(command.address)
        if not address.ok:
            return address.error
        attempt.advance(CheckoutState.ADDRESS_RESOLVED, address_id=address.value)

        order = await capture(
            "create_order",
            store.create_order(
                command.user_id,
                command.delivery_method_id,
                status.value,
                command.shop_id,
                address.value,
                payment_id,
            ),
        )
        if not order.ok:
            return order.error
        order_id = order.value
        attempt.advance(CheckoutState.ORDER_CREATED, order_id=order_id)

        added = await inventory.add_lines(order_id, lines)
        if not added.ok:
            return added.error
        attempt.advance(CheckoutState.ITEMS_ADDED, line_count=added.value)

        finalized = await inventory.finalize(order_id)
        if not finalized.ok:
            return finalized.error
        attempt.advance(CheckoutState.FINALIZED)

        change: Optional[Decimal] = None
        if method is PaymentMethod.COUPON:
            redeemed = await coupons.apply(payment_id, command.payment.coupon_code)
            if not redeemed.ok:
                return redeemed.error
            attempt.advance(CheckoutState.COUPON_EVALUATED)

        amount = await payments.get_amount(payment_id)
        if not amount.ok:
            return amount.error

        if method is PaymentMethod.CASH:
            accepted = command.payment.cash_accepted
            if accepted < amount.value:
                return BusinessRuleViolation(
                    BusinessRuleReason.CASH_INSUFFICIENT,
                    payment_id=payment_id,
                    accepted=str(accepted),
                    amount=str(amount.value),
                )
            change = accepted - amount.value
            recorded = await payments.set_cash_change(payment_id, change)
            if not recorded.ok:
                return recorded.error
            attempt.advance(CheckoutState.CASH_RECONCILED, change=str(change))

        number = await capture("get_order_number", store.get_order_number(order_id))
        if not number.ok:
            return number.error

        return PlacedOrder(
            order_id=order_id,
            order_number=number.value,
            total=amount.value,
            change=change,
        )

    async def _rollback(self, session: AsyncSession, attempt: _Attempt, error: CheckoutError) -> None:
        try:
            await session.rollback()
        except Exception as e:
            logger.error(
                "Checkout rollback failed",
                error=str(e),
                error_type=type(e).__name__,
                **attempt.ids,
            )
        logger.warning(
            "Checkout rolled back",
            failed_state=attempt.state.value,
            error_kind=error.kind,
            **attempt.ids,
        )
        attempt.state = CheckoutState.ROLLED_BACK

    async def _clear_cart(self, identity: str, command: PlaceOrderCommand) -> None:
        try:
            await self.cart_store.clear(identity)
        except Exception as e:
            logger.error(
                "Failed to clear cart after checkout",
                user_id=command.user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
