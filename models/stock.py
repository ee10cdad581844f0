from decimal import Decimal

from pydantic import BaseModel, Field


class StockLevelDTO(BaseModel):
    """Answer of the stock lookup service for one product."""
    product_id: str
    name: str
    unit_price: Decimal = Field(..., ge=0)
    available_quantity: int = Field(..., ge=0)
