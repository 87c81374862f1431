"""
Shopping cart service.

Adds, increments, decrements and removes cart lines. Product name and price
are looked up from the catalog when a product is first added.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from flowershop.core.logging import get_logger
from flowershop.database.models import Product
from flowershop.services.cart.store import CartLine, CartStore, cart_key

logger = get_logger(__name__)


class CartServiceError(Exception):
    """Base exception for cart service errors."""

    def __init__(self, message: str, code: str, **context):
        super().__init__(message)
        self.code = code
        self.context = context


class ProductNotFoundError(CartServiceError):
    """Raised when a product to add does not exist."""

    def __init__(self, product_id: int, **context):
        super().__init__(
            f"Product not found: {product_id}",
            code="PRODUCT_NOT_FOUND",
            product_id=product_id,
            **context,
        )


class InvalidQuantityError(CartServiceError):
    """Raised when a non-positive quantity is added."""

    def __init__(self, quantity: int, **context):
        super().__init__(
            f"Invalid quantity: {quantity}",
            code="INVALID_QUANTITY",
            quantity=quantity,
            **context,
        )


@dataclass(frozen=True)
class CartSummary:
    """Cart contents with derived totals."""

    lines: list[CartLine]

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def total(self) -> Decimal:
        return sum(
            (line.unit_price * line.quantity for line in self.lines),
            Decimal("0.00"),
        )


class CartService:
    """Cart maintenance for one customer at a time."""

    def __init__(self, store: CartStore, session: AsyncSession):
        """
        Initialize cart service.

        Args:
            store: Cart storage backend
            session: Database session used for product lookups
        """
        self.store = store
        self.session = session

    @staticmethod
    def _find(lines: list[CartLine], product_id: int) -> Optional[CartLine]:
        return next((line for line in lines if line.product_id == product_id), None)

    async def get_cart(self, user_id: int) -> CartSummary:
        return CartSummary(lines=await self.store.get(cart_key(user_id)))

    async def add_item(self, user_id: int, product_id: int, quantity: int = 1) -> CartSummary:
        """
        Add a product or increase its quantity.

        Args:
            user_id: Cart owner
            product_id: Product to add
            quantity: Number of pieces to add

        Returns:
            Updated cart

        Raises:
            InvalidQuantityError: If quantity is not positive
            ProductNotFoundError: If the product does not exist
        """
        if quantity <= 0:
            raise InvalidQuantityError(quantity, product_id=product_id)

        product = await self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        identity = cart_key(user_id)
        lines = await self.store.get(identity)
        line = self._find(lines, product_id)
        if line is None:
            lines.append(
                CartLine(
                    product_id=product.id,
                    quantity=quantity,
                    name=product.name,
                    unit_price=product.price,
                )
            )
        else:
            line.quantity += quantity
        await self.store.save(identity, lines)

        logger.info("Product added to cart", product_id=product_id, quantity=quantity)
        return CartSummary(lines=lines)

    async def increment(self, user_id: int, product_id: int) -> CartSummary:
        """Increase a line by one piece; unknown products are ignored."""
        identity = cart_key(user_id)
        lines = await self.store.get(identity)
        line = self._find(lines, product_id)
        if line is not None:
            line.quantity += 1
            await self.store.save(identity, lines)
        return CartSummary(lines=lines)

    async def decrement(self, user_id: int, product_id: int) -> CartSummary:
        """Decrease a line by one piece, removing it at zero."""
        identity = cart_key(user_id)
        lines = await self.store.get(identity)
        line = self._find(lines, product_id)
        if line is not None:
            line.quantity -= 1
            if line.quantity <= 0:
                lines.remove(line)
            await self.store.save(identity, lines)
        return CartSummary(lines=lines)

    async def remove_item(self, user_id: int, product_id: int) -> CartSummary:
        identity = cart_key(user_id)
        lines = [line for line in await self.store.get(identity) if line.product_id != product_id]
        await self.store.save(identity, lines)
        return CartSummary(lines=lines)

    async def clear(self, user_id: int) -> None:
        await self.store.clear(cart_key(user_id))
