"""Builders and queries shared by the test modules."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flowershop.core.security import create_access_token
from flowershop.database.models import Product
from flowershop.services.cart.store import CartLine, InMemoryCartStore, cart_key
from flowershop.services.checkout.commands import (
    AddressInput,
    NewAddress,
    PaymentInput,
    PlaceOrderCommand,
)

CUSTOMER_ID = 42
OTHER_CUSTOMER_ID = 43


@dataclass
class SeedData:
    """Identifiers of the reference rows every test starts with."""

    roses_id: int = 7
    tulips_id: int = 8
    delivery_method_id: int = 1
    shop_id: int = 1
    address_id: int = 1
    pending_status_id: int = 1


async def count_rows(session_factory: async_sessionmaker[AsyncSession], model: Any) -> int:
    """Count rows of a model table in a fresh session."""
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar_one()


async def product_stock(session_factory: async_sessionmaker[AsyncSession], product_id: int) -> int:
    async with session_factory() as session:
        result = await session.execute(select(Product.stock).where(Product.id == product_id))
        return result.scalar_one()


async def fill_cart(cart_store: InMemoryCartStore, user_id: int, *lines: tuple[int, int]) -> None:
    await cart_store.save(
        cart_key(user_id),
        [CartLine(product_id=product_id, quantity=quantity) for product_id, quantity in lines],
    )


def make_command(
    seed: SeedData,
    payment: PaymentInput,
    user_id: int = CUSTOMER_ID,
    lines: Optional[list[CartLine]] = None,
    address: Optional[AddressInput] = None,
) -> PlaceOrderCommand:
    """Build a checkout command against the seeded reference data."""
    return PlaceOrderCommand(
        user_id=user_id,
        delivery_method_id=seed.delivery_method_id,
        shop_id=seed.shop_id,
        address=address or AddressInput(address_id=seed.address_id),
        payment=payment,
        lines=lines,
    )


def cash(amount: str) -> PaymentInput:
    return PaymentInput(method="cash", cash_accepted=Decimal(amount))


def card(number: str = "4111 1111 1111 1111") -> PaymentInput:
    return PaymentInput(method="card", card_number=number)


def coupon(code: str) -> PaymentInput:
    return PaymentInput(method="coupon", coupon_code=code)


def new_address(street: str = "Vodickova", house_number: int = 5, postal_code: str = "11000") -> AddressInput:
    return AddressInput(new_address=NewAddress(street=street, house_number=house_number, postal_code=postal_code))


def auth_headers(user_id: int = CUSTOMER_ID) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
