"""
FastAPI dependencies for authentication, persistence and checkout wiring.

Authentication only verifies the bearer token and extracts the customer id;
account management lives outside this service.
"""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from flowershop.cache.redis_client import get_redis_client
from flowershop.core.config import get_settings
from flowershop.core.logging import get_logger, set_user_id
from flowershop.core.security import TokenError, get_token_user_id
from flowershop.database.connection import get_db, get_session_factory
from flowershop.services.cart.store import CartStore, InMemoryCartStore, RedisCartStore
from flowershop.services.checkout.coordinator import OrderWorkflowCoordinator

logger = get_logger(__name__)

security = HTTPBearer(auto_error=False)

_memory_cart_store: Optional[InMemoryCartStore] = None


async def get_current_user_id(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> int:
    """
    Validate the bearer token and return the customer id.

    Raises:
        HTTPException: 401 if the token is missing, expired or invalid
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        logger.warning("Authentication failed: No credentials provided")
        raise credentials_exception

    try:
        user_id = get_token_user_id(credentials.credentials)
    except TokenError as e:
        logger.warning(
            "Authentication failed: Token rejected",
            code=e.code,
            error_type=type(e).__name__,
        )
        raise credentials_exception

    set_user_id(str(user_id))
    return user_id


async def get_cart_store() -> CartStore:
    """Return the configured cart store."""
    global _memory_cart_store

    settings = get_settings()
    if settings.cart_backend == "memory":
        if _memory_cart_store is None:
            _memory_cart_store = InMemoryCartStore()
        return _memory_cart_store

    client = await get_redis_client()
    return RedisCartStore(client, ttl_days=settings.cart_ttl_days)


async def get_checkout_coordinator(
    cart_store: Annotated[CartStore, Depends(get_cart_store)],
) -> OrderWorkflowCoordinator:
    """Build a checkout coordinator over the application session factory."""
    return OrderWorkflowCoordinator(get_session_factory(), cart_store)


CurrentUserId = Annotated[int, Depends(get_current_user_id)]
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CartStoreDep = Annotated[CartStore, Depends(get_cart_store)]
CheckoutCoordinator = Annotated[OrderWorkflowCoordinator, Depends(get_checkout_coordinator)]
