from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from enums.checkout_state import CheckoutState


class SessionSummaryDTO(BaseModel):
    """Session tab data (name, state, totals) without cart lines."""
    id: str
    display_name: str
    customer_id: str | None = None
    customer_name: str | None = None
    created_at: datetime
    last_active: datetime
    is_active: bool
    state: CheckoutState
    item_count: int
    total: Decimal
