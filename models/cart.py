# cart is the in-memory state of one POS session. Nothing here is persisted:
# a completed sale clears the cart and only the receipt leaves the engine.
from decimal import Decimal

from pydantic import BaseModel, Field

from enums.discount_type import DiscountType
from models.cartItem import CartItemDTO


class CartDiscountDTO(BaseModel):
    """Cart-level discount as entered by the operator."""
    type: DiscountType = DiscountType.FIXED
    value: Decimal = Field(..., ge=0)


class CartSummaryDTO(BaseModel):
    line_count: int = 0
    item_count: int = 0
    subtotal: Decimal = Decimal("0")
    discount_total: Decimal = Decimal("0")
    total: Decimal = Decimal("0")


class CartDTO(BaseModel):
    """Read-only snapshot of a cart for rendering layers."""
    session_id: str
    version: int
    items: list[CartItemDTO] = []
    discount: CartDiscountDTO | None = None
    summary: CartSummaryDTO
