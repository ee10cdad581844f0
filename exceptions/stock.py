"""
Stock lookup exceptions.
"""

from .base import PosEngineException


class StockException(PosEngineException):
    """Base exception for stock lookup errors."""
    pass


class ProductNotFoundException(StockException):
    """Raised when the stock lookup service does not know the product."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product {product_id} not found",
            details={'product_id': product_id}
        )
        self.product_id = product_id
