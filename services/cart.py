"""
Cart Store: one session's line items and derived totals.

Every mutating operation is serialized through a per-cart asyncio.Lock, so
operations submitted to the same cart run one at a time in submission order,
including the stock lookup they await. Nothing is written to the cart before
the lookup returns; a failed operation leaves the cart exactly as it was.

clear(), abandon_pending() and close() bump the cart generation without
waiting for the lock. An operation that was submitted under an older
generation discards its lookup response instead of applying it.
"""

import asyncio
import logging
from decimal import Decimal

import config
from enums.discount_type import DiscountType
from enums.price_policy import PricePolicy
from exceptions.cart import (
    InvalidQuantityException,
    OutOfStockException,
    ItemNotFoundException,
    InvalidDiscountException,
    OperationAbandonedException
)
from models.cart import CartDiscountDTO, CartSummaryDTO, CartDTO
from models.cartItem import CartItemDTO
from models.stock import StockLevelDTO
from services.stock_lookup import StockLookupService
from utils.money import ZERO, HUNDRED, to_money, percentage_of

logger = logging.getLogger(__name__)


def _is_valid_quantity(quantity) -> bool:
    return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity > 0


class CartStore:

    def __init__(self, session_id: str, stock_lookup: StockLookupService,
                 price_policy: PricePolicy | None = None):
        self.session_id = session_id
        self._stock_lookup = stock_lookup
        self._price_policy = price_policy or config.CART_PRICE_POLICY
        self._items: dict[str, CartItemDTO] = {}
        self._discount: CartDiscountDTO | None = None
        self._lock = asyncio.Lock()
        self._generation = 0
        self._closed = False

        self.subtotal = to_money(ZERO)
        self.discount_total = to_money(ZERO)
        self.total = to_money(ZERO)
        self.item_count = 0
        self.version = 0

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def items(self) -> list[CartItemDTO]:
        return list(self._items.values())

    @property
    def discount(self) -> CartDiscountDTO | None:
        return self._discount

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def is_closed(self) -> bool:
        return self._closed

    def get_item(self, product_id: str) -> CartItemDTO | None:
        return self._items.get(product_id)

    def summary(self) -> CartSummaryDTO:
        return CartSummaryDTO(
            line_count=len(self._items),
            item_count=self.item_count,
            subtotal=self.subtotal,
            discount_total=self.discount_total,
            total=self.total
        )

    def snapshot(self) -> CartDTO:
        """Detached copy of the cart for rendering layers."""
        return CartDTO(
            session_id=self.session_id,
            version=self.version,
            items=[item.model_copy() for item in self._items.values()],
            discount=self._discount.model_copy() if self._discount else None,
            summary=self.summary()
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add_item(self, product_id: str, requested_quantity: int = 1) -> CartItemDTO:
        """
        Add a product, merging into the existing line if present.

        Args:
            product_id: Product identifier (SKU or barcode)
            requested_quantity: Units to add (>= 1)

        Returns:
            The created or updated cart line

        Raises:
            InvalidQuantityException: requested_quantity <= 0
            ProductNotFoundException: stock lookup does not know the product
            OutOfStockException: resulting line quantity exceeds available stock
            OperationAbandonedException: cart cleared or closed while awaiting stock
        """
        if not _is_valid_quantity(requested_quantity):
            raise InvalidQuantityException(product_id, requested_quantity)

        generation = self._submit("add_item", product_id)
        async with self._lock:
            stock = await self._lookup(product_id, generation, "add_item")

            existing = self._items.get(product_id)
            current_quantity = existing.quantity if existing else 0
            new_quantity = current_quantity + requested_quantity

            if new_quantity > stock.available_quantity:
                logger.info(
                    f"Cart {self.session_id}: rejected add of {requested_quantity} x {product_id} "
                    f"(line would be {new_quantity}, stock {stock.available_quantity})"
                )
                raise OutOfStockException(product_id, new_quantity, stock.available_quantity)

            if existing:
                existing.quantity = new_quantity
                self._apply_stock_snapshot(existing, stock)
                item = existing
            else:
                item = CartItemDTO(
                    product_id=product_id,
                    name=stock.name,
                    unit_price=to_money(stock.unit_price),
                    quantity=new_quantity,
                    stock_quantity_at_add=stock.available_quantity,
                    line_discount=to_money(ZERO)
                )
                self._items[product_id] = item

            self._recalculate()
            logger.info(f"Cart {self.session_id}: {product_id} quantity {current_quantity} -> {new_quantity}")
            return item

    async def update_quantity(self, product_id: str, new_quantity: int) -> CartItemDTO:
        """
        Replace a line's quantity after re-validating against a fresh stock lookup.

        Raises:
            ItemNotFoundException: product not in cart
            InvalidQuantityException: new_quantity <= 0
            OutOfStockException: new_quantity exceeds the latest known stock
            OperationAbandonedException: cart cleared or closed while awaiting stock
        """
        generation = self._submit("update_quantity", product_id)
        async with self._lock:
            if product_id not in self._items:
                raise ItemNotFoundException(product_id)
            if not _is_valid_quantity(new_quantity):
                raise InvalidQuantityException(product_id, new_quantity)

            stock = await self._lookup(product_id, generation, "update_quantity")

            item = self._items[product_id]
            if new_quantity > stock.available_quantity:
                logger.info(
                    f"Cart {self.session_id}: rejected quantity {new_quantity} for {product_id} "
                    f"(stock {stock.available_quantity})"
                )
                raise OutOfStockException(product_id, new_quantity, stock.available_quantity)

            old_quantity = item.quantity
            item.quantity = new_quantity
            self._apply_stock_snapshot(item, stock)
            self._recalculate()
            logger.info(f"Cart {self.session_id}: {product_id} quantity {old_quantity} -> {new_quantity}")
            return item

    async def remove_item(self, product_id: str) -> None:
        """Remove the line for product_id. Absent products are a no-op."""
        self._submit("remove_item", product_id)
        async with self._lock:
            if self._items.pop(product_id, None) is None:
                return
            self._recalculate()
            logger.info(f"Cart {self.session_id}: removed {product_id}")

    async def apply_discount(self, value, discount_type: DiscountType = DiscountType.FIXED) -> CartSummaryDTO:
        """
        Set the cart-level discount (replaces any previous one).

        A fixed discount must not exceed the current subtotal. A percentage
        discount (0-100) is re-evaluated whenever the subtotal changes.

        Raises:
            InvalidDiscountException: negative value, percentage over 100, or
                a fixed amount that would drive the total below zero
        """
        self._submit("apply_discount", None)
        async with self._lock:
            amount = self._parse_discount(value)

            if discount_type == DiscountType.PERCENTAGE and amount > HUNDRED:
                raise InvalidDiscountException(value, "percentage cannot exceed 100%")
            if discount_type == DiscountType.FIXED and amount > self.subtotal:
                raise InvalidDiscountException(
                    value, f"would drive total below zero (subtotal {self.subtotal})"
                )

            self._discount = CartDiscountDTO(type=discount_type, value=amount)
            self._recalculate()
            logger.info(f"Cart {self.session_id}: {discount_type.value} discount {amount} applied")
            return self.summary()

    async def remove_discount(self) -> CartSummaryDTO:
        self._submit("remove_discount", None)
        async with self._lock:
            if self._discount is not None:
                self._discount = None
                self._recalculate()
            return self.summary()

    async def apply_line_discount(self, product_id: str, value) -> CartItemDTO:
        """
        Set a fixed discount on one line.

        Raises:
            ItemNotFoundException: product not in cart
            InvalidDiscountException: negative or larger than the line's gross amount
        """
        self._submit("apply_line_discount", product_id)
        async with self._lock:
            item = self._items.get(product_id)
            if item is None:
                raise ItemNotFoundException(product_id)

            amount = self._parse_discount(value, product_id)
            if amount > item.gross:
                raise InvalidDiscountException(
                    value, f"exceeds line amount {to_money(item.gross)}", product_id
                )

            item.line_discount = amount
            self._recalculate()
            return item

    async def revalidate_stock(self) -> dict[str, int]:
        """
        Re-check every line against current stock.

        Refreshes each line's stock snapshot. Does not change quantities.

        Returns:
            Dict mapping product_id -> available quantity for lines whose
            quantity now exceeds stock (empty when everything is sellable)
        """
        generation = self._submit("revalidate_stock", None)
        async with self._lock:
            levels = {}
            for product_id in list(self._items):
                levels[product_id] = await self._lookup(product_id, generation, "revalidate_stock")

            # Every lookup succeeded: only now touch the lines
            shortages = {}
            for product_id, stock in levels.items():
                item = self._items[product_id]
                item.stock_quantity_at_add = stock.available_quantity
                if item.quantity > stock.available_quantity:
                    shortages[product_id] = stock.available_quantity
            if shortages:
                logger.warning(f"Cart {self.session_id}: stock shortages {shortages}")
            return shortages

    def clear(self) -> None:
        """Empty the cart, drop discounts and discard every in-flight lookup."""
        self._generation += 1
        self._items.clear()
        self._discount = None
        self._recalculate()
        logger.info(f"Cart {self.session_id}: cleared")

    def abandon_pending(self) -> None:
        """Discard responses of lookups still in flight (operator navigated away)."""
        self._generation += 1
        logger.debug(f"Cart {self.session_id}: pending operations abandoned")

    def close(self) -> None:
        """Mark the cart closed. Pending and future operations are refused."""
        self._closed = True
        self._generation += 1

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _submit(self, operation: str, product_id: str | None) -> int:
        if self._closed:
            raise OperationAbandonedException(self.session_id, operation, product_id or "-")
        return self._generation

    async def _lookup(self, product_id: str, generation: int, operation: str) -> StockLevelDTO:
        if generation != self._generation or self._closed:
            raise OperationAbandonedException(self.session_id, operation, product_id)

        stock = await self._stock_lookup.lookup(product_id)

        if generation != self._generation or self._closed:
            logger.info(f"Cart {self.session_id}: discarding stale stock response for {product_id} ({operation})")
            raise OperationAbandonedException(self.session_id, operation, product_id)
        return stock

    def _apply_stock_snapshot(self, item: CartItemDTO, stock: StockLevelDTO) -> None:
        item.stock_quantity_at_add = stock.available_quantity
        if self._price_policy == PricePolicy.REFRESH:
            new_price = to_money(stock.unit_price)
            if new_price != item.unit_price:
                logger.info(f"Cart {self.session_id}: re-priced {item.product_id} {item.unit_price} -> {new_price}")
                item.unit_price = new_price
        # Quantity or price may have shrunk the gross below the line discount
        if item.line_discount > item.gross:
            item.line_discount = to_money(item.gross)

    def _parse_discount(self, value, product_id: str | None = None) -> Decimal:
        try:
            amount = to_money(value)
        except ValueError:
            raise InvalidDiscountException(value, "not a number", product_id)
        if amount < ZERO:
            raise InvalidDiscountException(value, "cannot be negative", product_id)
        return amount

    def _recalculate(self) -> None:
        subtotal = to_money(sum((item.line_total for item in self._items.values()), ZERO))

        discount_total = to_money(ZERO)
        if self._discount is not None:
            if self._discount.type == DiscountType.PERCENTAGE:
                discount_total = percentage_of(subtotal, self._discount.value)
            else:
                discount_total = self._discount.value
            # Clamp so the total floors at zero
            discount_total = min(discount_total, subtotal)

        self.subtotal = subtotal
        self.discount_total = discount_total
        self.total = max(to_money(ZERO), subtotal - discount_total)
        self.item_count = sum(item.quantity for item in self._items.values())
        self.version += 1
