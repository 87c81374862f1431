"""
Tests for the individual checkout steps.

Each component is driven with a mocked CheckoutStore so its result handling
can be checked without a database.
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from flowershop.services.cart.store import CartLine
from flowershop.services.checkout.addresses import AddressResolver
from flowershop.services.checkout.commands import AddressInput, NewAddress
from flowershop.services.checkout.coupons import CouponApplier
from flowershop.services.checkout.errors import (
    BusinessRuleReason,
    BusinessRuleViolation,
    CheckoutValidationError,
    DuplicateRedemption,
    IntegrityOrTransientError,
)
from flowershop.services.checkout.inventory import InventoryFinalizer
from flowershop.services.checkout.payments import PaymentService
from flowershop.services.checkout.store import (
    CheckoutStore,
    CouponAlreadyRedeemedError,
    CouponStatus,
    RecordNotFoundError,
)


@pytest.fixture
def store():
    return AsyncMock(spec=CheckoutStore)


# ============================================================================
# Payment Service Tests
# ============================================================================


class TestPaymentService:
    """Test payment shell creation and detail recording."""

    @pytest.mark.asyncio
    async def test_create_payment_normalizes_method(self, store):
        store.create_payment.return_value = 11

        result = await PaymentService(store).create_payment(42, "CASH")

        assert result.value == 11
        store.create_payment.assert_awaited_once_with(42, "cash")

    @pytest.mark.asyncio
    async def test_create_payment_rejects_unknown_method(self, store):
        result = await PaymentService(store).create_payment(42, "cheque")

        assert isinstance(result.error, CheckoutValidationError)
        store.create_payment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_attach_card_passes_last_four_only(self, store):
        result = await PaymentService(store).attach_card(11, "4111 1111 1111 1234")

        assert result.ok
        store.attach_card.assert_awaited_once_with(11, "1234")

    @pytest.mark.asyncio
    async def test_attach_card_rejects_short_number(self, store):
        result = await PaymentService(store).attach_card(11, "1234")

        assert isinstance(result.error, CheckoutValidationError)
        store.attach_card.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_negative_change_is_business_rule(self, store):
        result = await PaymentService(store).set_cash_change(11, Decimal("-0.01"))

        assert isinstance(result.error, BusinessRuleViolation)
        assert result.error.reason is BusinessRuleReason.CASH_INSUFFICIENT
        store.set_cash_change.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_amount_failure(self, store):
        store.get_payment_amount.side_effect = RecordNotFoundError("Payment not found", payment_id=11)

        result = await PaymentService(store).get_amount(11)

        assert isinstance(result.error, IntegrityOrTransientError)


# ============================================================================
# Address Resolver Tests
# ============================================================================


class TestAddressResolver:
    """Test delivery address resolution."""

    @pytest.mark.asyncio
    async def test_existing_address_is_used_as_given(self, store):
        result = await AddressResolver(store).resolve(AddressInput(address_id=3))

        assert result.value == 3
        store.create_address.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_new_address_is_created_trimmed(self, store):
        store.create_address.return_value = 9
        address = AddressInput(
            address_id=3,
            new_address=NewAddress(street=" Karlova ", house_number=12, postal_code=" 11000"),
        )

        result = await AddressResolver(store).resolve(address)

        assert result.value == 9
        store.create_address.assert_awaited_once_with("11000", "Karlova", 12)

    @pytest.mark.asyncio
    async def test_missing_address_is_validation_error(self, store):
        result = await AddressResolver(store).resolve(AddressInput())

        assert isinstance(result.error, CheckoutValidationError)


# ============================================================================
# Coupon Applier Tests
# ============================================================================


class TestCouponApplier:
    """Test coupon status mapping."""

    @pytest.mark.asyncio
    async def test_success(self, store):
        store.apply_coupon.return_value = CouponStatus.SUCCESS

        result = await CouponApplier(store).apply(11, " SAVE10 ")

        assert result.value is CouponStatus.SUCCESS
        store.apply_coupon.assert_awaited_once_with(11, "SAVE10")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,reason",
        [
            (CouponStatus.NOT_FOUND, BusinessRuleReason.COUPON_NOT_FOUND),
            (CouponStatus.EXPIRED, BusinessRuleReason.COUPON_EXPIRED),
            (CouponStatus.EXCEEDS_ORDER_VALUE, BusinessRuleReason.COUPON_EXCEEDS_ORDER_VALUE),
        ],
    )
    async def test_rejected_status(self, store, status, reason):
        store.apply_coupon.return_value = status

        result = await CouponApplier(store).apply(11, "SAVE10")

        assert isinstance(result.error, BusinessRuleViolation)
        assert result.error.reason is reason

    @pytest.mark.asyncio
    async def test_raw_status_code_is_accepted(self, store):
        store.apply_coupon.return_value = 2

        result = await CouponApplier(store).apply(11, "OLD")

        assert result.error.reason is BusinessRuleReason.COUPON_EXPIRED

    @pytest.mark.asyncio
    async def test_duplicate_redemption(self, store):
        store.apply_coupon.side_effect = CouponAlreadyRedeemedError("dup")

        result = await CouponApplier(store).apply(11, "SAVE10")

        assert isinstance(result.error, DuplicateRedemption)


# ============================================================================
# Inventory Finalizer Tests
# ============================================================================


class TestInventoryFinalizer:
    """Test line insertion and finalization."""

    @pytest.mark.asyncio
    async def test_add_lines_counts_lines(self, store):
        lines = [CartLine(product_id=7, quantity=2), CartLine(product_id=8, quantity=1)]

        result = await InventoryFinalizer(store).add_lines(5, lines)

        assert result.value == 2
        assert store.add_order_line.await_count == 2

    @pytest.mark.asyncio
    async def test_add_lines_stops_at_first_failure(self, store):
        store.add_order_line.side_effect = [None, RecordNotFoundError("Product not found"), None]
        lines = [CartLine(product_id=pid, quantity=1) for pid in (7, 999, 8)]

        result = await InventoryFinalizer(store).add_lines(5, lines)

        assert isinstance(result.error, IntegrityOrTransientError)
        assert store.add_order_line.await_count == 2
