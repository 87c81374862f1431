"""
Tests for the order API endpoints.

Covers order placement status codes and bodies for each checkout outcome,
and owner-only order details.
"""

from decimal import Decimal

import pytest

from flowershop.services.cart.store import cart_key
from tests.helpers import CUSTOMER_ID, OTHER_CUSTOMER_ID, auth_headers, fill_cart

ORDERS_URL = "/api/v1/orders"


def order_body(seed, payment: dict, **overrides) -> dict:
    body = {
        "delivery_method_id": seed.delivery_method_id,
        "shop_id": seed.shop_id,
        "address_id": seed.address_id,
        "payment": payment,
    }
    body.update(overrides)
    return body


# ============================================================================
# Order Placement Tests
# ============================================================================


class TestPlaceOrder:
    """Test POST /orders."""

    @pytest.mark.asyncio
    async def test_requires_authentication(self, api_client, seed):
        response = await api_client.post(ORDERS_URL, json=order_body(seed, {"method": "cash", "cash_accepted": "400"}))

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_cash_order_from_cart(self, api_client, cart_store, seed):
        """
        Test placing a cash order from the cart.

        Verifies:
        - 201 with total, change and redirect URL
        - Location header points at the order resource
        - Cart is emptied
        """
        # Arrange
        await fill_cart(cart_store, CUSTOMER_ID, (seed.roses_id, 2))

        # Act
        response = await api_client.post(
            ORDERS_URL,
            json=order_body(seed, {"method": "cash", "cash_accepted": "400"}),
            headers=auth_headers(),
        )

        # Assert
        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["total"]) == Decimal("300")
        assert Decimal(data["change"]) == Decimal("100")
        assert data["currency"] == "CZK"
        assert data["redirect_url"] == f"/orders/{data['order_id']}"
        assert response.headers["location"] == f"{ORDERS_URL}/{data['order_id']}"
        assert await cart_store.get(cart_key(CUSTOMER_ID)) == []

    @pytest.mark.asyncio
    async def test_explicit_items_with_new_address(self, api_client, seed):
        response = await api_client.post(
            ORDERS_URL,
            json=order_body(
                seed,
                {"method": "card", "card_number": "4111 1111 1111 1111"},
                address_id=None,
                new_address={"street": "Vodickova", "house_number": 5, "postal_code": "11000"},
                items=[{"product_id": seed.tulips_id, "quantity": 2}],
            ),
            headers=auth_headers(),
        )

        assert response.status_code == 201
        assert Decimal(response.json()["total"]) == Decimal("91.00")
        assert "change" not in response.json() or response.json()["change"] is None

    @pytest.mark.asyncio
    async def test_validation_error_lists_fields(self, api_client, seed):
        response = await api_client.post(
            ORDERS_URL,
            json=order_body(seed, {"method": "card", "card_number": "1234"}, address_id=None),
            headers=auth_headers(),
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "validation_error"
        assert {field["field"] for field in data["fields"]} == {
            "address_id",
            "payment.card_number",
            "items",
        }

    @pytest.mark.asyncio
    async def test_values_beyond_column_range_are_bad_request(self, api_client, seed):
        response = await api_client.post(
            ORDERS_URL,
            json=order_body(
                seed,
                {"method": "cash", "cash_accepted": "1000000000000"},
                items=[{"product_id": seed.roses_id, "quantity": 3_000_000_000}],
            ),
            headers=auth_headers(),
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "validation_error"
        assert {field["field"] for field in data["fields"]} == {"payment.cash_accepted", "items"}

    @pytest.mark.asyncio
    async def test_malformed_body_is_bad_request(self, api_client, seed):
        response = await api_client.post(
            ORDERS_URL,
            json={"shop_id": "abc", "payment": {"method": "cash"}},
            headers=auth_headers(),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_insufficient_cash_is_conflict(self, api_client, cart_store, seed):
        await fill_cart(cart_store, CUSTOMER_ID, (seed.roses_id, 2))

        response = await api_client.post(
            ORDERS_URL,
            json=order_body(seed, {"method": "cash", "cash_accepted": "250"}),
            headers=auth_headers(),
        )

        assert response.status_code == 409
        data = response.json()
        assert data["error"] == "business_rule_violation"
        assert data["message"] == "Cash accepted must not be less than the order total."
        assert set(data) <= {"error", "message", "request_id"}
        assert len(await cart_store.get(cart_key(CUSTOMER_ID))) == 1

    @pytest.mark.asyncio
    async def test_duplicate_coupon_is_conflict(self, api_client, cart_store, seed):
        payment = {"method": "coupon", "coupon_code": "BIG500"}
        await fill_cart(cart_store, CUSTOMER_ID, (seed.roses_id, 1))
        first = await api_client.post(ORDERS_URL, json=order_body(seed, payment), headers=auth_headers())
        assert first.status_code == 201

        await fill_cart(cart_store, CUSTOMER_ID, (seed.roses_id, 1))
        second = await api_client.post(ORDERS_URL, json=order_body(seed, payment), headers=auth_headers())

        assert second.status_code == 409
        assert second.json()["error"] == "duplicate_redemption"

    @pytest.mark.asyncio
    async def test_database_failure_is_service_unavailable(self, api_client, seed):
        response = await api_client.post(
            ORDERS_URL,
            json=order_body(
                seed,
                {"method": "cash", "cash_accepted": "100"},
                items=[{"product_id": 999, "quantity": 1}],
            ),
            headers=auth_headers(),
        )

        assert response.status_code == 503
        data = response.json()
        assert data["error"] == "integrity_or_transient"
        assert data["message"] == "The order could not be created. Please try again."


# ============================================================================
# Order Details Tests
# ============================================================================


class TestGetOrder:
    """Test GET /orders/{id}."""

    async def _place_card_order(self, api_client, seed) -> int:
        response = await api_client.post(
            ORDERS_URL,
            json=order_body(
                seed,
                {"method": "card", "card_number": "4111111111111111"},
                items=[{"product_id": seed.roses_id, "quantity": 2}],
            ),
            headers=auth_headers(),
        )
        assert response.status_code == 201
        return response.json()["order_id"]

    @pytest.mark.asyncio
    async def test_owner_sees_order_details(self, api_client, seed):
        """
        Test reading a placed card order.

        Verifies:
        - Reference data names are resolved
        - Card is masked to the last four digits
        - Lines carry the finalized prices
        """
        order_id = await self._place_card_order(api_client, seed)

        response = await api_client.get(f"{ORDERS_URL}/{order_id}", headers=auth_headers())

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "pending"
        assert data["delivery_method"] == "Courier"
        assert data["shop"] == "Old Town"
        assert data["address"] == "Karlova 12, 11000"
        assert Decimal(data["total"]) == Decimal("300")
        assert data["payment"]["method"] == "card"
        assert data["payment"]["card"] == "**** **** **** 1111"
        assert "4111111111111111" not in response.text
        assert len(data["items"]) == 1
        assert Decimal(data["items"][0]["line_total"]) == Decimal("300")

    @pytest.mark.asyncio
    async def test_other_customer_gets_not_found(self, api_client, seed):
        order_id = await self._place_card_order(api_client, seed)

        response = await api_client.get(f"{ORDERS_URL}/{order_id}", headers=auth_headers(OTHER_CUSTOMER_ID))

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_unknown_order(self, api_client, seed):
        response = await api_client.get(f"{ORDERS_URL}/999", headers=auth_headers())

        assert response.status_code == 404
