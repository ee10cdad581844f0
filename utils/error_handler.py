"""
Error Handler Utility for the POS HTTP surface

Provides centralized error handling with:
- Stable error keys the front end switches on
- HTTP status per exception type
- Logging at the right level (registry-contract errors are caller bugs)

Usage in routes:
    from utils.error_handler import handle_service_error

    try:
        await session.cart.add_item(product_id, quantity)
    except PosEngineException as e:
        error = handle_service_error(e)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())
"""

import logging
from dataclasses import dataclass, field

from exceptions import (
    PosEngineException,
    InvalidQuantityException,
    OutOfStockException,
    ItemNotFoundException,
    InvalidDiscountException,
    EmptyCartException,
    OperationAbandonedException,
    ProductNotFoundException,
    SessionNotFoundException,
    CannotCloseLastSessionException,
    SessionBusyException,
    InvalidCheckoutStateException,
    PaymentMismatchException,
    PaymentDeclinedException,
    InvalidPaymentDetailsException,
    NetworkFailureException,
)

logger = logging.getLogger(__name__)

# Exception type -> (error key, HTTP status)
ERROR_MAPPING: dict[type, tuple[str, int]] = {
    # Cart exceptions
    InvalidQuantityException: ("error_invalid_quantity", 400),
    OutOfStockException: ("error_out_of_stock", 409),
    ItemNotFoundException: ("error_item_not_found", 404),
    InvalidDiscountException: ("error_invalid_discount", 400),
    EmptyCartException: ("error_empty_cart", 409),
    OperationAbandonedException: ("error_operation_abandoned", 409),

    # Stock exceptions
    ProductNotFoundException: ("error_product_not_found", 404),

    # Session exceptions
    SessionNotFoundException: ("error_session_not_found", 404),
    CannotCloseLastSessionException: ("error_cannot_close_last_session", 409),
    SessionBusyException: ("error_session_busy", 409),

    # Payment exceptions
    InvalidCheckoutStateException: ("error_invalid_checkout_state", 409),
    PaymentMismatchException: ("error_payment_mismatch", 409),
    PaymentDeclinedException: ("error_payment_declined", 402),
    InvalidPaymentDetailsException: ("error_invalid_payment_details", 400),

    # Collaborator exceptions
    NetworkFailureException: ("error_network_failure", 502),
}

# Raised only when the caller breaks the registry contract
CONTRACT_ERRORS = (SessionNotFoundException, CannotCloseLastSessionException)


@dataclass
class ErrorResponse:
    error: str
    message: str
    status_code: int
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message, "details": self.details}


def _json_safe(details: dict) -> dict:
    return {key: value if isinstance(value, (str, int, float, bool, type(None))) else str(value)
            for key, value in details.items()}


def handle_service_error(exception: PosEngineException) -> ErrorResponse:
    """
    Convert an engine exception to the error payload shown to the operator.

    Example:
        >>> handle_service_error(EmptyCartException("abc")).status_code
        409
    """
    mapping = None
    for exception_type in type(exception).__mro__:
        mapping = ERROR_MAPPING.get(exception_type)
        if mapping:
            break

    if mapping is None:
        logger.error(f"Unmapped exception type: {type(exception).__name__}")
        mapping = ("error_unexpected", 500)

    if isinstance(exception, CONTRACT_ERRORS):
        logger.error(f"Registry contract violated: {type(exception).__name__} - {exception}")
    else:
        logger.warning(f"Service error handled: {type(exception).__name__} - {exception}")

    error_key, status_code = mapping
    return ErrorResponse(
        error=error_key,
        message=exception.message,
        status_code=status_code,
        details=_json_safe(exception.details)
    )


def handle_unexpected_error(exception: Exception) -> ErrorResponse:
    """Handle anything that is not a PosEngineException; logs the full traceback."""
    logger.error(f"Unexpected error: {type(exception).__name__} - {str(exception)}", exc_info=exception)
    return ErrorResponse(
        error="error_unexpected",
        message="Unexpected error, please try again",
        status_code=500
    )
