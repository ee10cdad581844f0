"""
Unit Tests: Checkout

Tests for services/checkout.py covering:
- proceed_to_checkout() guards
- submit_payment() success, decline, network failure and mismatch
- cancel() and the outstanding-submission guard
"""

import asyncio
from decimal import Decimal

import pytest

from enums.checkout_state import CheckoutState
from enums.payment_method import PaymentMethod
from exceptions import (
    EmptyCartException,
    InvalidCheckoutStateException,
    InvalidPaymentDetailsException,
    NetworkFailureException,
    PaymentDeclinedException,
    PaymentMismatchException,
)


@pytest.fixture
def session(registry):
    return registry.active_session


@pytest.fixture
def checkout(session):
    return session.checkout


class TestProceedToCheckout:

    def test_empty_cart_cannot_checkout(self, checkout):
        with pytest.raises(EmptyCartException):
            checkout.proceed_to_checkout()

        assert checkout.state == CheckoutState.ITEM_ENTRY

    @pytest.mark.asyncio
    async def test_proceed_fixes_amount_due(self, session, checkout):
        await session.cart.add_item("BRK-001", 2)

        amount_due = checkout.proceed_to_checkout()

        assert amount_due == Decimal("20.00")
        assert checkout.state == CheckoutState.PAYMENT_IN_PROGRESS

    @pytest.mark.asyncio
    async def test_proceed_twice_is_noop(self, session, checkout):
        await session.cart.add_item("BRK-001", 2)
        checkout.proceed_to_checkout()

        assert checkout.proceed_to_checkout() == Decimal("20.00")
        assert checkout.state == CheckoutState.PAYMENT_IN_PROGRESS


class TestSubmitPayment:

    @pytest.mark.asyncio
    async def test_submit_requires_payment_state(self, session, checkout):
        await session.cart.add_item("BRK-001", 1)

        with pytest.raises(InvalidCheckoutStateException):
            await checkout.submit_payment(PaymentMethod.CASH)

    @pytest.mark.asyncio
    async def test_successful_payment_completes_sale(self, registry, session, checkout, payment_service):
        registry.set_customer(session.id, "C-9", "Ana")
        await session.cart.add_item("BRK-001", 2)
        await session.cart.add_item("OIL-002", 1)
        checkout.proceed_to_checkout()

        receipt = await checkout.submit_payment(PaymentMethod.CASH, amount_tendered="30")

        assert receipt.total == Decimal("27.50")
        assert receipt.authorized_amount == Decimal("27.50")
        assert receipt.change_due == Decimal("2.50")
        assert receipt.customer_name == "Ana"
        assert [item.product_id for item in receipt.items] == ["BRK-001", "OIL-002"]
        assert payment_service.submissions == [(session.id, Decimal("27.50"), PaymentMethod.CASH, None)]

        assert session.cart.is_empty
        assert checkout.state == CheckoutState.ITEM_ENTRY
        assert checkout.last_outcome == CheckoutState.COMPLETED
        assert checkout.last_receipt == receipt

    @pytest.mark.asyncio
    async def test_method_accepts_string(self, session, checkout):
        await session.cart.add_item("BRK-001", 1)
        checkout.proceed_to_checkout()

        receipt = await checkout.submit_payment("ewallet")

        assert receipt.payment_method == PaymentMethod.EWALLET

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", [PaymentMethod.CARD, PaymentMethod.BANK_TRANSFER])
    async def test_reference_required(self, session, checkout, payment_service, method):
        await session.cart.add_item("BRK-001", 1)
        checkout.proceed_to_checkout()

        with pytest.raises(InvalidPaymentDetailsException):
            await checkout.submit_payment(method, reference="  ")

        assert payment_service.submissions == []
        assert checkout.state == CheckoutState.PAYMENT_IN_PROGRESS

    @pytest.mark.asyncio
    async def test_card_payment_keeps_reference(self, session, checkout, payment_service):
        await session.cart.add_item("BRK-001", 1)
        checkout.proceed_to_checkout()

        await checkout.submit_payment(PaymentMethod.CARD, reference="AUTH-4411")

        assert payment_service.submissions[0][3] == "AUTH-4411"

    @pytest.mark.asyncio
    async def test_short_cash_tender_rejected(self, session, checkout):
        await session.cart.add_item("BRK-001", 2)
        checkout.proceed_to_checkout()

        with pytest.raises(InvalidPaymentDetailsException):
            await checkout.submit_payment(PaymentMethod.CASH, amount_tendered="19.99")

        assert len(session.cart.items) == 1

    @pytest.mark.asyncio
    async def test_tender_only_for_cash(self, session, checkout):
        await session.cart.add_item("BRK-001", 1)
        checkout.proceed_to_checkout()

        with pytest.raises(InvalidPaymentDetailsException):
            await checkout.submit_payment(PaymentMethod.CHECK, amount_tendered="20")

    @pytest.mark.asyncio
    async def test_unknown_method(self, session, checkout):
        await session.cart.add_item("BRK-001", 1)
        checkout.proceed_to_checkout()

        with pytest.raises(InvalidPaymentDetailsException):
            await checkout.submit_payment("barter")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        PaymentDeclinedException("s", Decimal("10.00"), "insufficient funds"),
        NetworkFailureException("Payment service", "timeout"),
    ])
    async def test_failure_cancels_sale_and_keeps_cart(self, session, checkout, payment_service, error):
        await session.cart.add_item("BRK-001", 1)
        checkout.proceed_to_checkout()
        payment_service.error = error

        with pytest.raises(type(error)):
            await checkout.submit_payment(PaymentMethod.CASH)

        assert checkout.state == CheckoutState.ITEM_ENTRY
        assert checkout.last_outcome == CheckoutState.CANCELLED
        assert session.cart.get_item("BRK-001").quantity == 1
        assert not checkout.payment_outstanding

    @pytest.mark.asyncio
    async def test_retry_after_decline(self, session, checkout, payment_service):
        await session.cart.add_item("BRK-001", 1)
        checkout.proceed_to_checkout()
        payment_service.error = PaymentDeclinedException(session.id, Decimal("10.00"))

        with pytest.raises(PaymentDeclinedException):
            await checkout.submit_payment(PaymentMethod.CASH)

        payment_service.error = None
        checkout.proceed_to_checkout()
        receipt = await checkout.submit_payment(PaymentMethod.CASH)

        assert receipt.total == Decimal("10.00")
        assert session.cart.is_empty

    @pytest.mark.asyncio
    async def test_authorized_amount_mismatch(self, session, checkout, payment_service):
        await session.cart.add_item("BRK-001", 2)
        checkout.proceed_to_checkout()
        payment_service.authorize_amount = Decimal("15.00")

        with pytest.raises(PaymentMismatchException) as exc_info:
            await checkout.submit_payment(PaymentMethod.CASH)

        assert exc_info.value.received == Decimal("15.00")
        assert checkout.state == CheckoutState.PAYMENT_IN_PROGRESS
        assert session.cart.total == Decimal("20.00")

    @pytest.mark.asyncio
    async def test_cart_change_during_payment_is_mismatch(self, session, checkout, payment_service):
        await session.cart.add_item("BRK-001", 2)
        checkout.proceed_to_checkout()
        gate = payment_service.hold()

        payment = asyncio.create_task(checkout.submit_payment(PaymentMethod.CASH))
        await payment_service.submitted.wait()
        await session.cart.update_quantity("BRK-001", 3)
        gate.set()

        with pytest.raises(PaymentMismatchException) as exc_info:
            await payment

        assert exc_info.value.expected == Decimal("30.00")
        assert exc_info.value.received == Decimal("20.00")
        assert checkout.state == CheckoutState.PAYMENT_IN_PROGRESS
        assert checkout.amount_due == Decimal("30.00")
        assert session.cart.get_item("BRK-001").quantity == 3

    @pytest.mark.asyncio
    async def test_cart_swapped_for_same_total_is_mismatch(self, session, checkout, payment_service, stock_lookup):
        stock_lookup.set_stock("ALT-010", "Brake Pad Set (OEM)", "10.00", 5)
        await session.cart.add_item("BRK-001", 2)
        checkout.proceed_to_checkout()
        gate = payment_service.hold()

        payment = asyncio.create_task(checkout.submit_payment(PaymentMethod.CASH))
        await payment_service.submitted.wait()
        await session.cart.remove_item("BRK-001")
        await session.cart.add_item("ALT-010", 2)
        gate.set()

        with pytest.raises(PaymentMismatchException) as exc_info:
            await payment

        assert exc_info.value.expected == Decimal("20.00")
        assert exc_info.value.received == Decimal("20.00")
        assert checkout.state == CheckoutState.PAYMENT_IN_PROGRESS
        assert checkout.last_receipt is None
        assert [item.product_id for item in session.cart.items] == ["ALT-010"]

    @pytest.mark.asyncio
    async def test_receipt_lists_lines_as_submitted(self, session, checkout):
        await session.cart.add_item("BRK-001", 2)
        checkout.proceed_to_checkout()

        receipt = await checkout.submit_payment(PaymentMethod.CASH)

        assert [(item.product_id, item.quantity) for item in receipt.items] == [("BRK-001", 2)]
        assert receipt.subtotal == Decimal("20.00")
        assert session.cart.is_empty

    @pytest.mark.asyncio
    async def test_second_submission_refused_while_outstanding(self, session, checkout, payment_service):
        await session.cart.add_item("BRK-001", 1)
        checkout.proceed_to_checkout()
        gate = payment_service.hold()

        payment = asyncio.create_task(checkout.submit_payment(PaymentMethod.CASH))
        await payment_service.submitted.wait()

        with pytest.raises(InvalidCheckoutStateException):
            await checkout.submit_payment(PaymentMethod.CASH)

        gate.set()
        await payment
        assert len(payment_service.submissions) == 1


class TestCancel:

    @pytest.mark.asyncio
    async def test_cancel_returns_to_item_entry_with_cart(self, session, checkout):
        await session.cart.add_item("BRK-001", 2)
        checkout.proceed_to_checkout()

        checkout.cancel()

        assert checkout.state == CheckoutState.ITEM_ENTRY
        assert checkout.last_outcome == CheckoutState.CANCELLED
        assert checkout.amount_due is None
        assert session.cart.total == Decimal("20.00")

    def test_cancel_in_item_entry_is_noop(self, checkout):
        checkout.cancel()

        assert checkout.state == CheckoutState.ITEM_ENTRY
        assert checkout.last_outcome is None

    @pytest.mark.asyncio
    async def test_cancel_refused_while_submission_outstanding(self, session, checkout, payment_service):
        await session.cart.add_item("BRK-001", 1)
        checkout.proceed_to_checkout()
        gate = payment_service.hold()

        payment = asyncio.create_task(checkout.submit_payment(PaymentMethod.CASH))
        await payment_service.submitted.wait()

        with pytest.raises(InvalidCheckoutStateException):
            checkout.cancel()

        gate.set()
        await payment
        assert checkout.last_outcome == CheckoutState.COMPLETED
