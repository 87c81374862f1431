"""
Cart storage.

A cart is a list of product lines keyed by the customer's identity. The
checkout workflow only reads a cart once and clears it after a successful
commit; the cart service maintains it between checkouts.

Two backends are provided: RedisCartStore keeps carts as JSON values with
a TTL, InMemoryCartStore keeps them in a process-local dict.
"""

import asyncio
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Optional, Protocol

from flowershop.cache.redis_client import RedisClient
from flowershop.core.logging import get_logger

logger = get_logger(__name__)

CART_KEY_PREFIX = "cart:user"


def cart_key(user_id: int) -> str:
    """Return the cart identity of a customer."""
    return f"{CART_KEY_PREFIX}:{user_id}"


@dataclass
class CartLine:
    """
    One product in a cart.

    ``name`` and ``unit_price`` are display data captured when the product
    was added; checkout always re-prices from the catalog.
    """

    product_id: int
    quantity: int
    name: str = ""
    unit_price: Decimal = Decimal("0.00")

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["unit_price"] = str(self.unit_price)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CartLine":
        return cls(
            product_id=int(data["product_id"]),
            quantity=int(data["quantity"]),
            name=data.get("name", ""),
            unit_price=Decimal(str(data.get("unit_price", "0.00"))),
        )


class CartStore(Protocol):
    """Key-value store of carts."""

    async def get(self, identity: str) -> list[CartLine]:
        ...

    async def save(self, identity: str, lines: list[CartLine]) -> None:
        ...

    async def clear(self, identity: str) -> None:
        ...


class RedisCartStore:
    """Cart store backed by Redis JSON values with expiry."""

    def __init__(self, client: RedisClient, ttl_days: int = 30):
        self.client = client
        self.ttl_seconds = ttl_days * 24 * 60 * 60

    async def get(self, identity: str) -> list[CartLine]:
        data = await self.client.get_json(identity)
        if not data:
            return []
        return [CartLine.from_dict(item) for item in data.get("items", [])]

    async def save(self, identity: str, lines: list[CartLine]) -> None:
        if not lines:
            await self.clear(identity)
            return
        await self.client.set_json(
            identity,
            {"items": [line.to_dict() for line in lines]},
            ex=self.ttl_seconds,
        )

    async def clear(self, identity: str) -> None:
        await self.client.delete(identity)
        logger.debug("Cart cleared", cart=identity)


class InMemoryCartStore:
    """Process-local cart store for development and tests."""

    def __init__(self, initial: Optional[dict[str, list[CartLine]]] = None):
        self._carts: dict[str, list[dict[str, Any]]] = {}
        self._lock = asyncio.Lock()
        for identity, lines in (initial or {}).items():
            self._carts[identity] = [line.to_dict() for line in lines]

    async def get(self, identity: str) -> list[CartLine]:
        async with self._lock:
            return [CartLine.from_dict(item) for item in self._carts.get(identity, [])]

    async def save(self, identity: str, lines: list[CartLine]) -> None:
        async with self._lock:
            if lines:
                self._carts[identity] = [line.to_dict() for line in lines]
            else:
                self._carts.pop(identity, None)

    async def clear(self, identity: str) -> None:
        async with self._lock:
            self._carts.pop(identity, None)
