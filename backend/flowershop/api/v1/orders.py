"""
Order API endpoints.

Order placement runs the checkout workflow and maps its error kinds to
HTTP responses: validation 400, business rules and duplicate coupon
redemption 409, database failures 503. Order details are visible to
their owner only.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from flowershop.api.deps import CheckoutCoordinator, CurrentUserId, DatabaseSession
from flowershop.core.config import get_settings
from flowershop.core.logging import get_logger, get_request_id
from flowershop.core.rate_limit import limiter
from flowershop.schemas.orders import (
    ErrorResponse,
    FieldErrorResponse,
    OrderDetailResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
)
from flowershop.services.checkout.errors import (
    BusinessRuleViolation,
    CheckoutError,
    CheckoutValidationError,
    DuplicateRedemption,
)
from flowershop.services.orders.service import OrderNotFoundError, OrderQueryService

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


def checkout_error_status(error: CheckoutError) -> int:
    if isinstance(error, CheckoutValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(error, (BusinessRuleViolation, DuplicateRedemption)):
        return status.HTTP_409_CONFLICT
    return status.HTTP_503_SERVICE_UNAVAILABLE


def checkout_error_response(error: CheckoutError) -> JSONResponse:
    """
    Render a checkout error.

    Only the error kind and its user-facing message are exposed; the error
    context stays in the logs.
    """
    fields = None
    if isinstance(error, CheckoutValidationError):
        fields = [FieldErrorResponse(field=e.field, message=e.message) for e in error.errors]

    body = ErrorResponse(
        error=error.kind,
        message=error.user_message,
        fields=fields,
        request_id=get_request_id() or None,
    )
    return JSONResponse(
        status_code=checkout_error_status(error),
        content=body.model_dump(mode="json", exclude_none=True),
    )


@router.post(
    "",
    response_model=PlaceOrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Place order",
    description="Turn the cart (or explicit items) into an order with payment, atomically",
)
@limiter.limit(get_settings().order_rate_limit)
async def place_order(
    request: Request,
    body: PlaceOrderRequest,
    user_id: CurrentUserId,
    coordinator: CheckoutCoordinator,
) -> JSONResponse:
    """
    Place an order for the authenticated customer.

    Args:
        request: Incoming request, used by the rate limiter
        body: Checkout request
        user_id: Authenticated customer
        coordinator: Checkout workflow

    Returns:
        201 with the order summary and a Location header, or an error body
    """
    logger.info(
        "Placing order",
        user_id=user_id,
        method=body.payment.method,
        explicit_items=body.items is not None,
    )

    result = await coordinator.place_order(body.to_command(user_id))
    if not result.ok:
        return checkout_error_response(result.error)

    settings = get_settings()
    response = PlaceOrderResponse.from_placed(result.order, settings.currency)
    logger.info(
        "Order placed",
        order_id=result.order.order_id,
        order_number=result.order.order_number,
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=response.model_dump(mode="json"),
        headers={"Location": f"{settings.api_v1_prefix}/orders/{result.order.order_id}"},
    )


@router.get(
    "/{order_id}",
    response_model=OrderDetailResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get order details",
)
async def get_order(
    order_id: int,
    user_id: CurrentUserId,
    db: DatabaseSession,
):
    service = OrderQueryService(db)
    try:
        order = await service.get_order_details(order_id, user_id)
    except OrderNotFoundError:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=ErrorResponse(
                error="not_found",
                message="Order not found.",
                request_id=get_request_id() or None,
            ).model_dump(mode="json", exclude_none=True),
        )
    return OrderDetailResponse.from_order(order, get_settings().currency)
