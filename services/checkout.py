import logging
from decimal import Decimal
from typing import Callable

from enums.checkout_state import CheckoutState
from enums.payment_method import PaymentMethod
from exceptions.cart import EmptyCartException
from exceptions.payment import (
    InvalidCheckoutStateException,
    InvalidPaymentDetailsException,
    PaymentDeclinedException,
    PaymentMismatchException
)
from exceptions.service import NetworkFailureException
from models.payment import SaleReceiptDTO
from services.cart import CartStore
from services.payment import PaymentService
from utils.checkout_state_machine import CheckoutStateMachine
from utils.money import ZERO, to_money

logger = logging.getLogger(__name__)


class Checkout:
    """
    Drives one session's sale from item entry through payment.

    COMPLETED and CANCELLED are reached and left within the same call: the
    session is immediately back in ITEM_ENTRY and last_outcome tells which
    way the previous sale ended.
    """

    def __init__(self, session_id: str, cart: CartStore, payment_service: PaymentService,
                 customer_info: Callable[[], tuple[str | None, str | None]] | None = None):
        self.session_id = session_id
        self.cart = cart
        self._payment_service = payment_service
        self._customer_info = customer_info or (lambda: (None, None))

        self.state = CheckoutState.ITEM_ENTRY
        self.amount_due: Decimal | None = None
        self.last_outcome: CheckoutState | None = None
        self.last_receipt: SaleReceiptDTO | None = None
        self._submission_outstanding = False
        self._state_listeners: list[Callable[[CheckoutState], None]] = []

    def add_state_listener(self, listener: Callable[[CheckoutState], None]) -> None:
        """Register a callback invoked with the new state after every transition."""
        self._state_listeners.append(listener)

    @property
    def payment_outstanding(self) -> bool:
        """True while a submission is with the payment service."""
        return self._submission_outstanding

    def proceed_to_checkout(self) -> Decimal:
        """
        Fix the amount due and move to PAYMENT_IN_PROGRESS.

        Repeated calls while already in payment are no-ops.

        Returns:
            Amount due

        Raises:
            EmptyCartException: cart has no items
        """
        if self.state == CheckoutState.PAYMENT_IN_PROGRESS:
            return self.amount_due

        if self.cart.is_empty:
            raise EmptyCartException(self.session_id)

        self._transition(CheckoutState.PAYMENT_IN_PROGRESS)
        self.amount_due = self.cart.total
        return self.amount_due

    async def submit_payment(self, method: PaymentMethod | str, reference: str | None = None,
                             amount_tendered=None) -> SaleReceiptDTO:
        """
        Submit the cart total to the payment service and settle the sale.

        Args:
            method: Payment method
            reference: Terminal/transfer reference (required for card and bank transfer)
            amount_tendered: Cash handed over by the customer (cash only, optional)

        Returns:
            Receipt of the completed sale; the cart is cleared

        Raises:
            InvalidCheckoutStateException: not in PAYMENT_IN_PROGRESS or a submission is outstanding
            InvalidPaymentDetailsException: missing reference, unknown method or short cash tender
            PaymentMismatchException: authorized amount differs or the cart changed meanwhile
                (state stays PAYMENT_IN_PROGRESS)
            PaymentDeclinedException, NetworkFailureException: sale cancelled, cart kept
        """
        if self.state != CheckoutState.PAYMENT_IN_PROGRESS:
            raise InvalidCheckoutStateException(self.session_id, self.state.value, "proceed to checkout first")
        if self._submission_outstanding:
            raise InvalidCheckoutStateException(
                self.session_id, self.state.value, "a payment submission is already outstanding"
            )

        method = self._parse_method(method)
        reference = (reference or "").strip() or None
        amount = self.cart.total
        self.amount_due = amount

        if method.requires_reference and not reference:
            raise InvalidPaymentDetailsException(method.value, "reference is required")
        tendered, change_due = self._settle_tender(method, amount, amount_tendered)

        # Sale as submitted; any cart mutation after this point bumps the version
        submitted_version = self.cart.version
        submitted_items = [item.model_copy() for item in self.cart.items]
        submitted_subtotal = self.cart.subtotal
        submitted_discount_total = self.cart.discount_total

        self._submission_outstanding = True
        try:
            authorization = await self._payment_service.submit(self.session_id, amount, method, reference)
        except (PaymentDeclinedException, NetworkFailureException) as e:
            logger.warning(f"Payment for session {self.session_id} failed: {e}")
            self._cancel_sale()
            raise
        finally:
            self._submission_outstanding = False

        authorized = to_money(authorization.authorized_amount)
        current_total = self.cart.total
        cart_changed = self.cart.version != submitted_version
        if authorized != amount or cart_changed:
            logger.error(
                f"Payment mismatch for session {self.session_id}: submitted {amount}, "
                f"authorized {authorized}, cart total now {current_total}, cart changed: {cart_changed}"
            )
            self.amount_due = current_total
            raise PaymentMismatchException(self.session_id, expected=current_total, received=authorized)

        customer_id, customer_name = self._customer_info()
        receipt = SaleReceiptDTO(
            session_id=self.session_id,
            customer_id=customer_id,
            customer_name=customer_name,
            items=submitted_items,
            subtotal=submitted_subtotal,
            discount_total=submitted_discount_total,
            total=amount,
            payment_method=method,
            authorized_amount=authorized,
            transaction_reference=authorization.transaction_reference or reference,
            amount_tendered=tendered,
            change_due=change_due
        )

        self._transition(CheckoutState.COMPLETED)
        self.cart.clear()
        self._transition(CheckoutState.ITEM_ENTRY)
        self.last_outcome = CheckoutState.COMPLETED
        self.last_receipt = receipt
        self.amount_due = None
        logger.info(f"Sale completed for session {self.session_id}: {amount} via {method.value}")
        return receipt

    def cancel(self) -> None:
        """
        Cancel the payment step and return to item entry with the cart intact.

        Raises:
            InvalidCheckoutStateException: a submission is outstanding (it cannot be recalled)
        """
        if self.state == CheckoutState.ITEM_ENTRY:
            return
        if self._submission_outstanding:
            raise InvalidCheckoutStateException(
                self.session_id, self.state.value, "payment already submitted and cannot be recalled"
            )
        self._cancel_sale()

    def _cancel_sale(self) -> None:
        self._transition(CheckoutState.CANCELLED)
        self._transition(CheckoutState.ITEM_ENTRY)
        self.last_outcome = CheckoutState.CANCELLED
        self.amount_due = None

    def _transition(self, to_state: CheckoutState) -> None:
        if not CheckoutStateMachine.validate_and_log_transition(self.session_id, self.state, to_state):
            raise InvalidCheckoutStateException(
                self.session_id, self.state.value, f"cannot move to {to_state.value}"
            )
        self.state = to_state
        for listener in self._state_listeners:
            listener(to_state)

    @staticmethod
    def _parse_method(method) -> PaymentMethod:
        try:
            return PaymentMethod(method)
        except ValueError:
            raise InvalidPaymentDetailsException(str(method), "unknown payment method")

    @staticmethod
    def _settle_tender(method: PaymentMethod, amount: Decimal, amount_tendered) -> tuple[Decimal | None, Decimal]:
        if amount_tendered is None:
            return None, to_money(ZERO)
        if not method.accepts_tender:
            raise InvalidPaymentDetailsException(method.value, "only cash payments accept a tendered amount")

        try:
            tendered = to_money(amount_tendered)
        except ValueError:
            raise InvalidPaymentDetailsException(method.value, f"tendered amount {amount_tendered!r} is not a number")
        if tendered < amount:
            raise InvalidPaymentDetailsException(
                method.value, f"tendered {tendered} does not cover total {amount}"
            )
        return tendered, tendered - amount
