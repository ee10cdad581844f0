from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field


class CartItemDTO(BaseModel):
    """
    One cart line. Owned by exactly one CartStore and mutated in place.

    name and unit_price are snapshots taken from the stock lookup when the line
    was created; stock_quantity_at_add is refreshed by every successful stock
    validation so it always holds the last known availability.
    """
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int = Field(..., ge=1)
    stock_quantity_at_add: int = Field(..., ge=0)
    line_discount: Decimal = Decimal("0")
    added_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def gross(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def line_total(self) -> Decimal:
        return self.gross - self.line_discount
