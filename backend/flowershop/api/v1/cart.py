"""Shopping cart API endpoints."""

from fastapi import APIRouter, HTTPException, status

from flowershop.api.deps import CartStoreDep, CurrentUserId, DatabaseSession
from flowershop.core.config import get_settings
from flowershop.core.logging import get_logger
from flowershop.schemas.cart import AddCartItemRequest, CartResponse
from flowershop.services.cart.service import CartService, CartSummary, ProductNotFoundError

logger = get_logger(__name__)

router = APIRouter(prefix="/cart", tags=["cart"])


def _response(summary: CartSummary) -> CartResponse:
    return CartResponse.from_summary(summary, get_settings().currency)


@router.get("", response_model=CartResponse, summary="Get cart")
async def get_cart(user_id: CurrentUserId, store: CartStoreDep, db: DatabaseSession) -> CartResponse:
    return _response(await CartService(store, db).get_cart(user_id))


@router.post(
    "/items",
    response_model=CartResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add product to cart",
)
async def add_cart_item(
    body: AddCartItemRequest,
    user_id: CurrentUserId,
    store: CartStoreDep,
    db: DatabaseSession,
) -> CartResponse:
    """
    Add a product or increase its quantity.

    Raises:
        HTTPException: 404 if the product does not exist
    """
    try:
        summary = await CartService(store, db).add_item(user_id, body.product_id, body.quantity)
    except ProductNotFoundError as e:
        logger.info("Product to add not found", **e.context)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return _response(summary)


@router.post("/items/{product_id}/increment", response_model=CartResponse)
async def increment_cart_item(
    product_id: int,
    user_id: CurrentUserId,
    store: CartStoreDep,
    db: DatabaseSession,
) -> CartResponse:
    return _response(await CartService(store, db).increment(user_id, product_id))


@router.post("/items/{product_id}/decrement", response_model=CartResponse)
async def decrement_cart_item(
    product_id: int,
    user_id: CurrentUserId,
    store: CartStoreDep,
    db: DatabaseSession,
) -> CartResponse:
    return _response(await CartService(store, db).decrement(user_id, product_id))


@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(
    product_id: int,
    user_id: CurrentUserId,
    store: CartStoreDep,
    db: DatabaseSession,
) -> CartResponse:
    return _response(await CartService(store, db).remove_item(user_id, product_id))


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(user_id: CurrentUserId, store: CartStoreDep, db: DatabaseSession) -> None:
    await CartService(store, db).clear(user_id)
