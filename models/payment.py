from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field

from enums.checkout_state import CheckoutState
from enums.payment_method import PaymentMethod
from models.cartItem import CartItemDTO


class PaymentRequestDTO(BaseModel):
    """Payload sent to the payment service."""
    session_id: str
    amount: Decimal
    method: PaymentMethod
    reference: str | None = None


class PaymentAuthorizationDTO(BaseModel):
    """Successful payment service response."""
    authorized_amount: Decimal
    transaction_reference: str | None = None


class SaleReceiptDTO(BaseModel):
    """Record of a completed sale, handed to receipt printing/reporting layers."""
    session_id: str
    customer_id: str | None = None
    customer_name: str | None = None
    items: list[CartItemDTO]
    subtotal: Decimal
    discount_total: Decimal
    total: Decimal
    payment_method: PaymentMethod
    authorized_amount: Decimal
    transaction_reference: str | None = None
    amount_tendered: Decimal | None = None
    change_due: Decimal = Decimal("0")
    completed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CheckoutStatusDTO(BaseModel):
    """Checkout state of one session as shown next to the cart."""
    session_id: str
    state: CheckoutState
    amount_due: Decimal | None = None
    payment_outstanding: bool = False
    last_outcome: CheckoutState | None = None
