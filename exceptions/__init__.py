"""
Custom exceptions for the POS cart engine.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the engine.

Exception Hierarchy:
--------------------
PosEngineException (base)
├── CartException
│   ├── InvalidQuantityException
│   ├── OutOfStockException
│   ├── ItemNotFoundException
│   ├── InvalidDiscountException
│   ├── EmptyCartException
│   └── OperationAbandonedException
├── StockException
│   └── ProductNotFoundException
├── SessionException
│   ├── SessionNotFoundException
│   ├── CannotCloseLastSessionException
│   └── SessionBusyException
├── PaymentException
│   ├── InvalidCheckoutStateException
│   ├── PaymentMismatchException
│   ├── PaymentDeclinedException
│   └── InvalidPaymentDetailsException
└── ServiceException
    └── NetworkFailureException

Usage:
------
Services raise specific exceptions:
    raise OutOfStockException(product_id="BRK-001", requested=10, available=5)

The UI layer catches and displays user-friendly messages:
    try:
        await session.cart.add_item("BRK-001", 2)
    except CartException as e:
        show_error(handle_service_error(e))
"""

from .base import PosEngineException
from .cart import (
    CartException,
    InvalidQuantityException,
    OutOfStockException,
    ItemNotFoundException,
    InvalidDiscountException,
    EmptyCartException,
    OperationAbandonedException
)
from .stock import StockException, ProductNotFoundException
from .session import (
    SessionException,
    SessionNotFoundException,
    CannotCloseLastSessionException,
    SessionBusyException
)
from .payment import (
    PaymentException,
    InvalidCheckoutStateException,
    PaymentMismatchException,
    PaymentDeclinedException,
    InvalidPaymentDetailsException
)
from .service import ServiceException, NetworkFailureException

__all__ = [
    # Base
    'PosEngineException',

    # Cart
    'CartException',
    'InvalidQuantityException',
    'OutOfStockException',
    'ItemNotFoundException',
    'InvalidDiscountException',
    'EmptyCartException',
    'OperationAbandonedException',

    # Stock
    'StockException',
    'ProductNotFoundException',

    # Session
    'SessionException',
    'SessionNotFoundException',
    'CannotCloseLastSessionException',
    'SessionBusyException',

    # Payment
    'PaymentException',
    'InvalidCheckoutStateException',
    'PaymentMismatchException',
    'PaymentDeclinedException',
    'InvalidPaymentDetailsException',

    # Service
    'ServiceException',
    'NetworkFailureException',
]
