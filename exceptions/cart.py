"""
Cart-related exceptions.
"""

from .base import PosEngineException


class CartException(PosEngineException):
    """Base exception for cart-related errors."""
    pass


class InvalidQuantityException(CartException):
    """Raised when a requested quantity is zero or negative."""

    def __init__(self, product_id: str, quantity: int):
        super().__init__(
            f"Invalid quantity {quantity} for product {product_id}: must be at least 1",
            details={'product_id': product_id, 'quantity': quantity}
        )
        self.product_id = product_id
        self.quantity = quantity


class OutOfStockException(CartException):
    """Raised when the resulting line quantity would exceed available stock."""

    def __init__(self, product_id: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}",
            details={'product_id': product_id, 'requested': requested, 'available': available}
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class ItemNotFoundException(CartException):
    """Raised when a cart line for the product does not exist."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product {product_id} is not in the cart",
            details={'product_id': product_id}
        )
        self.product_id = product_id


class InvalidDiscountException(CartException):
    """Raised when a discount is negative, exceeds 100% or would drive a total below zero."""

    def __init__(self, value, reason: str, product_id: str | None = None):
        target = f"product {product_id}" if product_id else "cart"
        details = {'value': value, 'reason': reason}
        if product_id:
            details['product_id'] = product_id

        super().__init__(f"Invalid discount {value} for {target}: {reason}", details)
        self.value = value
        self.reason = reason
        self.product_id = product_id


class EmptyCartException(CartException):
    """Raised when trying to check out an empty cart."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Cart is empty for session {session_id}",
            details={'session_id': session_id}
        )
        self.session_id = session_id


class OperationAbandonedException(CartException):
    """Raised when a stock lookup resolves after its cart was cleared or closed."""

    def __init__(self, session_id: str, operation: str, product_id: str):
        super().__init__(
            f"{operation} for product {product_id} abandoned: session {session_id} changed while awaiting stock",
            details={'session_id': session_id, 'operation': operation, 'product_id': product_id}
        )
        self.session_id = session_id
        self.operation = operation
        self.product_id = product_id
