"""
Payment and checkout exceptions.
"""

from decimal import Decimal

from .base import PosEngineException


class PaymentException(PosEngineException):
    """Base exception for payment and checkout errors."""
    pass


class InvalidCheckoutStateException(PaymentException):
    """Raised when a checkout operation is not allowed in the current state."""

    def __init__(self, session_id: str, current_state: str, reason: str):
        super().__init__(
            f"Checkout for session {session_id} is in state '{current_state}': {reason}",
            details={'session_id': session_id, 'current_state': current_state, 'reason': reason}
        )
        self.session_id = session_id
        self.current_state = current_state
        self.reason = reason


class PaymentMismatchException(PaymentException):
    """Raised when the authorized amount does not match the cart total."""

    def __init__(self, session_id: str, expected: Decimal, received: Decimal):
        super().__init__(
            f"Payment mismatch for session {session_id}: expected {expected}, authorized {received}",
            details={'session_id': session_id, 'expected': str(expected), 'received': str(received)}
        )
        self.session_id = session_id
        self.expected = expected
        self.received = received


class PaymentDeclinedException(PaymentException):
    """Raised when the payment service declines a submission."""

    def __init__(self, session_id: str, amount: Decimal, reason: str | None = None):
        message = f"Payment of {amount} declined for session {session_id}"
        if reason:
            message += f": {reason}"

        super().__init__(
            message,
            details={'session_id': session_id, 'amount': str(amount), 'reason': reason}
        )
        self.session_id = session_id
        self.amount = amount
        self.reason = reason


class InvalidPaymentDetailsException(PaymentException):
    """Raised when payment details are incomplete (missing reference, short cash tender)."""

    def __init__(self, method: str, reason: str):
        super().__init__(
            f"Invalid {method} payment: {reason}",
            details={'method': method, 'reason': reason}
        )
        self.method = method
        self.reason = reason
