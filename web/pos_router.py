"""
API router for the POS front end.

Exposes the session registry, cart, checkout and keyboard focus of every
open session. The registry lives on app.state (see web/app.py).

Engine errors are not handled here: they propagate to the
PosEngineException handler registered by the app, which renders
{"error", "message", "details"} with the mapped HTTP status.
"""

import logging
from decimal import Decimal

from fastapi import APIRouter, Request, status
from pydantic import BaseModel, Field

from enums.checkout_state import CheckoutState
from enums.discount_type import DiscountType
from enums.navigation_intent import NavigationIntent
from exceptions.payment import InvalidCheckoutStateException
from models.cart import CartDTO
from models.payment import CheckoutStatusDTO, SaleReceiptDTO
from models.session import SessionSummaryDTO
from services.session import Session, SessionRegistry

logger = logging.getLogger(__name__)

pos_router = APIRouter(prefix="/api/pos", tags=["pos"])


class CreateSessionPayload(BaseModel):
    display_name: str | None = Field(None, max_length=100)
    customer_id: str | None = None
    customer_name: str | None = Field(None, max_length=200)


class RenameSessionPayload(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=100)


class CustomerPayload(BaseModel):
    customer_id: str | None = None
    customer_name: str | None = Field(None, max_length=200)


class AddItemPayload(BaseModel):
    product_id: str = Field(..., min_length=1, description="SKU or scanned barcode")
    quantity: int = 1


class QuantityPayload(BaseModel):
    quantity: int


class LineDiscountPayload(BaseModel):
    amount: Decimal


class CartDiscountPayload(BaseModel):
    value: Decimal
    type: DiscountType = DiscountType.FIXED


class PaymentPayload(BaseModel):
    method: str
    reference: str | None = Field(None, max_length=100)
    amount_tendered: Decimal | None = None


class FocusPayload(BaseModel):
    intent: NavigationIntent


def _registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def _session(request: Request, session_id: str) -> Session:
    session = _registry(request).get_session(session_id)
    session.touch()
    return session


def _sessions_view(registry: SessionRegistry) -> dict:
    return {
        "active_session_id": registry.active_session_id,
        "max_sessions": registry.max_sessions,
        "max_sessions_reached": registry.is_max_sessions_reached(),
        "sessions": [summary.model_dump(mode="json") for summary in registry.summaries()],
    }


def _checkout_view(session: Session) -> CheckoutStatusDTO:
    checkout = session.checkout
    return CheckoutStatusDTO(
        session_id=session.id,
        state=checkout.state,
        amount_due=checkout.amount_due,
        payment_outstanding=checkout.payment_outstanding,
        last_outcome=checkout.last_outcome
    )


# ----------------------------------------------------------------------
# Sessions
# ----------------------------------------------------------------------

@pos_router.get("/sessions")
async def list_sessions(request: Request):
    return _sessions_view(_registry(request))


@pos_router.post("/sessions", status_code=status.HTTP_201_CREATED, response_model=SessionSummaryDTO)
async def create_session(request: Request, payload: CreateSessionPayload):
    registry = _registry(request)
    session_id = registry.create_session(
        display_name=payload.display_name,
        customer_id=payload.customer_id,
        customer_name=payload.customer_name
    )
    return registry.get_session(session_id).summary(is_active=True)


@pos_router.post("/sessions/{session_id}/activate")
async def activate_session(request: Request, session_id: str):
    registry = _registry(request)
    registry.switch_active(session_id)
    return _sessions_view(registry)


@pos_router.patch("/sessions/{session_id}", response_model=SessionSummaryDTO)
async def rename_session(request: Request, session_id: str, payload: RenameSessionPayload):
    registry = _registry(request)
    session = registry.rename_session(session_id, payload.display_name)
    return session.summary(session.id == registry.active_session_id)


@pos_router.put("/sessions/{session_id}/customer", response_model=SessionSummaryDTO)
async def set_customer(request: Request, session_id: str, payload: CustomerPayload):
    registry = _registry(request)
    session = registry.set_customer(session_id, payload.customer_id, payload.customer_name)
    return session.summary(session.id == registry.active_session_id)


@pos_router.delete("/sessions/{session_id}/customer", response_model=SessionSummaryDTO)
async def clear_customer(request: Request, session_id: str):
    registry = _registry(request)
    session = registry.clear_customer(session_id)
    return session.summary(session.id == registry.active_session_id)


@pos_router.delete("/sessions/{session_id}")
async def close_session(request: Request, session_id: str):
    registry = _registry(request)
    registry.close_session(session_id)
    return _sessions_view(registry)


# ----------------------------------------------------------------------
# Cart
# ----------------------------------------------------------------------

@pos_router.get("/sessions/{session_id}/cart", response_model=CartDTO)
async def get_cart(request: Request, session_id: str):
    return _registry(request).get_session(session_id).cart.snapshot()


@pos_router.post("/sessions/{session_id}/cart/items", response_model=CartDTO)
async def add_item(request: Request, session_id: str, payload: AddItemPayload):
    session = _session(request, session_id)
    await session.cart.add_item(payload.product_id, payload.quantity)
    return session.cart.snapshot()


@pos_router.put("/sessions/{session_id}/cart/items/{product_id}", response_model=CartDTO)
async def update_quantity(request: Request, session_id: str, product_id: str, payload: QuantityPayload):
    session = _session(request, session_id)
    await session.cart.update_quantity(product_id, payload.quantity)
    return session.cart.snapshot()


@pos_router.delete("/sessions/{session_id}/cart/items/{product_id}", response_model=CartDTO)
async def remove_item(request: Request, session_id: str, product_id: str):
    session = _session(request, session_id)
    await session.cart.remove_item(product_id)
    return session.cart.snapshot()


@pos_router.put("/sessions/{session_id}/cart/items/{product_id}/discount", response_model=CartDTO)
async def apply_line_discount(request: Request, session_id: str, product_id: str, payload: LineDiscountPayload):
    session = _session(request, session_id)
    await session.cart.apply_line_discount(product_id, payload.amount)
    return session.cart.snapshot()


@pos_router.put("/sessions/{session_id}/cart/discount", response_model=CartDTO)
async def apply_discount(request: Request, session_id: str, payload: CartDiscountPayload):
    session = _session(request, session_id)
    await session.cart.apply_discount(payload.value, payload.type)
    return session.cart.snapshot()


@pos_router.delete("/sessions/{session_id}/cart/discount", response_model=CartDTO)
async def remove_discount(request: Request, session_id: str):
    session = _session(request, session_id)
    await session.cart.remove_discount()
    return session.cart.snapshot()


@pos_router.delete("/sessions/{session_id}/cart", response_model=CartDTO)
async def clear_cart(request: Request, session_id: str):
    session = _session(request, session_id)
    if session.state != CheckoutState.ITEM_ENTRY:
        raise InvalidCheckoutStateException(session.id, session.state.value, "cancel the payment before clearing the cart")
    session.cart.clear()
    return session.cart.snapshot()


# ----------------------------------------------------------------------
# Checkout
# ----------------------------------------------------------------------

@pos_router.get("/sessions/{session_id}/checkout", response_model=CheckoutStatusDTO)
async def get_checkout(request: Request, session_id: str):
    return _checkout_view(_registry(request).get_session(session_id))


@pos_router.post("/sessions/{session_id}/checkout", response_model=CheckoutStatusDTO)
async def proceed_to_checkout(request: Request, session_id: str):
    session = _session(request, session_id)
    session.checkout.proceed_to_checkout()
    return _checkout_view(session)


@pos_router.post("/sessions/{session_id}/checkout/payment", response_model=SaleReceiptDTO)
async def submit_payment(request: Request, session_id: str, payload: PaymentPayload):
    session = _session(request, session_id)
    receipt = await session.checkout.submit_payment(
        payload.method,
        reference=payload.reference,
        amount_tendered=payload.amount_tendered
    )
    logger.info(f"Receipt issued for session {session_id}: total {receipt.total}, change {receipt.change_due}")
    return receipt


@pos_router.post("/sessions/{session_id}/checkout/cancel", response_model=CheckoutStatusDTO)
async def cancel_checkout(request: Request, session_id: str):
    session = _session(request, session_id)
    session.checkout.cancel()
    return _checkout_view(session)


# ----------------------------------------------------------------------
# Keyboard focus
# ----------------------------------------------------------------------

@pos_router.get("/sessions/{session_id}/focus")
async def get_focus(request: Request, session_id: str):
    session = _registry(request).get_session(session_id)
    return {"session_id": session.id, "focus": session.navigation.current}


@pos_router.post("/sessions/{session_id}/focus")
async def move_focus(request: Request, session_id: str, payload: FocusPayload):
    session = _registry(request).get_session(session_id)
    return {"session_id": session.id, "focus": session.navigation.handle(payload.intent)}
