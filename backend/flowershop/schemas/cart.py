"""Cart Pydantic schemas for API request/response validation."""

from decimal import Decimal

from pydantic import BaseModel, Field

from flowershop.services.cart.service import CartSummary


class AddCartItemRequest(BaseModel):
    """Add a product to the cart."""

    product_id: int = Field(..., gt=0, description="Product identifier")
    quantity: int = Field(default=1, ge=1, le=999, description="Pieces to add")


class CartLineResponse(BaseModel):
    product_id: int
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class CartResponse(BaseModel):
    """Cart contents with totals."""

    items: list[CartLineResponse]
    item_count: int
    total: Decimal
    currency: str

    @classmethod
    def from_summary(cls, summary: CartSummary, currency: str) -> "CartResponse":
        return cls(
            items=[
                CartLineResponse(
                    product_id=line.product_id,
                    name=line.name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=line.unit_price * line.quantity,
                )
                for line in summary.lines
            ],
            item_count=summary.item_count,
            total=summary.total,
            currency=currency,
        )
