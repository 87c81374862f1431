"""Tests for the cart service."""

from decimal import Decimal

import pytest

from flowershop.services.cart.service import (
    CartService,
    CartSummary,
    InvalidQuantityError,
    ProductNotFoundError,
)
from flowershop.services.cart.store import CartLine, InMemoryCartStore, cart_key
from tests.helpers import CUSTOMER_ID


@pytest.fixture
async def service(session_factory, cart_store, seed):
    async with session_factory() as session:
        yield CartService(cart_store, session)


class TestCartSummary:
    def test_totals(self):
        summary = CartSummary(
            lines=[
                CartLine(product_id=7, quantity=2, unit_price=Decimal("150.00")),
                CartLine(product_id=8, quantity=1, unit_price=Decimal("45.50")),
            ]
        )

        assert summary.item_count == 3
        assert summary.total == Decimal("345.50")

    def test_empty(self):
        assert CartSummary(lines=[]).total == Decimal("0.00")


class TestCartService:
    """Test cart maintenance."""

    @pytest.mark.asyncio
    async def test_add_item_captures_catalog_data(self, service, seed):
        """
        Test adding a product.

        Verifies:
        - Name and price are copied from the catalog
        - The line is persisted in the store
        """
        summary = await service.add_item(CUSTOMER_ID, seed.roses_id, 2)

        assert summary.lines == [
            CartLine(product_id=seed.roses_id, quantity=2, name="Red roses", unit_price=Decimal("150.00"))
        ]
        assert await service.store.get(cart_key(CUSTOMER_ID)) == summary.lines

    @pytest.mark.asyncio
    async def test_add_existing_item_increases_quantity(self, service, seed):
        await service.add_item(CUSTOMER_ID, seed.roses_id, 1)

        summary = await service.add_item(CUSTOMER_ID, seed.roses_id, 2)

        assert len(summary.lines) == 1
        assert summary.lines[0].quantity == 3

    @pytest.mark.asyncio
    async def test_add_unknown_product(self, service):
        with pytest.raises(ProductNotFoundError) as exc_info:
            await service.add_item(CUSTOMER_ID, 999)

        assert exc_info.value.code == "PRODUCT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_add_non_positive_quantity(self, service, seed):
        with pytest.raises(InvalidQuantityError):
            await service.add_item(CUSTOMER_ID, seed.roses_id, 0)

    @pytest.mark.asyncio
    async def test_increment_and_decrement(self, service, seed):
        await service.add_item(CUSTOMER_ID, seed.roses_id, 1)

        assert (await service.increment(CUSTOMER_ID, seed.roses_id)).item_count == 2
        assert (await service.decrement(CUSTOMER_ID, seed.roses_id)).item_count == 1

    @pytest.mark.asyncio
    async def test_decrement_to_zero_removes_line(self, service, seed):
        await service.add_item(CUSTOMER_ID, seed.roses_id, 1)

        summary = await service.decrement(CUSTOMER_ID, seed.roses_id)

        assert summary.lines == []
        assert await service.store.get(cart_key(CUSTOMER_ID)) == []

    @pytest.mark.asyncio
    async def test_increment_unknown_line_is_ignored(self, service):
        summary = await service.increment(CUSTOMER_ID, 7)

        assert summary.lines == []

    @pytest.mark.asyncio
    async def test_remove_and_clear(self, service, seed):
        await service.add_item(CUSTOMER_ID, seed.roses_id, 1)
        await service.add_item(CUSTOMER_ID, seed.tulips_id, 1)

        summary = await service.remove_item(CUSTOMER_ID, seed.roses_id)
        assert [line.product_id for line in summary.lines] == [seed.tulips_id]

        await service.clear(CUSTOMER_ID)
        assert (await service.get_cart(CUSTOMER_ID)).lines == []
