"""Tests for the cart API endpoints."""

import pytest

from tests.helpers import auth_headers

CART_URL = "/api/v1/cart"


class TestCartApi:
    """Test cart endpoints through the application."""

    @pytest.mark.asyncio
    async def test_requires_authentication(self, api_client):
        response = await api_client.get(CART_URL)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_empty_cart(self, api_client, seed):
        response = await api_client.get(CART_URL, headers=auth_headers())

        assert response.status_code == 200
        assert response.json()["items"] == []
        assert response.json()["currency"] == "CZK"

    @pytest.mark.asyncio
    async def test_add_item(self, api_client, seed):
        response = await api_client.post(
            f"{CART_URL}/items",
            json={"product_id": seed.roses_id, "quantity": 2},
            headers=auth_headers(),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["item_count"] == 2
        assert data["items"][0]["name"] == "Red roses"
        assert float(data["total"]) == 300.0

    @pytest.mark.asyncio
    async def test_add_unknown_product(self, api_client, seed):
        response = await api_client.post(
            f"{CART_URL}/items",
            json={"product_id": 999, "quantity": 1},
            headers=auth_headers(),
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_add_zero_quantity_is_rejected(self, api_client, seed):
        response = await api_client.post(
            f"{CART_URL}/items",
            json={"product_id": seed.roses_id, "quantity": 0},
            headers=auth_headers(),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_increment_decrement_remove(self, api_client, seed):
        headers = auth_headers()
        await api_client.post(f"{CART_URL}/items", json={"product_id": seed.roses_id}, headers=headers)

        response = await api_client.post(f"{CART_URL}/items/{seed.roses_id}/increment", headers=headers)
        assert response.json()["item_count"] == 2

        response = await api_client.post(f"{CART_URL}/items/{seed.roses_id}/decrement", headers=headers)
        assert response.json()["item_count"] == 1

        response = await api_client.delete(f"{CART_URL}/items/{seed.roses_id}", headers=headers)
        assert response.json()["items"] == []

    @pytest.mark.asyncio
    async def test_clear_cart(self, api_client, seed):
        headers = auth_headers()
        await api_client.post(f"{CART_URL}/items", json={"product_id": seed.roses_id}, headers=headers)

        response = await api_client.delete(CART_URL, headers=headers)

        assert response.status_code == 204
        assert (await api_client.get(CART_URL, headers=headers)).json()["items"] == []
