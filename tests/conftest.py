"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import asyncio
import os
import sys
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Set environment before config.py is imported by any module under test
os.environ.setdefault('RUNTIME_ENVIRONMENT', 'TEST')
os.environ.setdefault('DB_URL', 'sqlite+aiosqlite:///:memory:')
os.environ.setdefault('CURRENCY', 'EUR')
os.environ.setdefault('MONEY_DECIMALS', '2')
os.environ.setdefault('MAX_SESSIONS', '5')
os.environ.setdefault('CART_PRICE_POLICY', 'SNAPSHOT')
os.environ.setdefault('STOCK_LOOKUP_BACKEND', 'catalog')
os.environ.setdefault('PAYMENT_BACKEND', 'cash')
os.environ.setdefault('SESSION_CLEANUP_INTERVAL_MINUTES', '0')
os.environ.setdefault('LOG_MASK_SECRETS', 'true')

from exceptions.stock import ProductNotFoundException
from models.payment import PaymentAuthorizationDTO
from models.stock import StockLevelDTO
from services.payment import PaymentService
from services.stock_lookup import StockLookupService


# ============================================================================
# Collaborator fakes
# ============================================================================

class FakeStockLookup(StockLookupService):
    """
    In-memory stock lookup.

    hold(product_id) makes the next lookups for that product wait until the
    returned event is set, so tests can interleave operations deterministically.
    """

    def __init__(self, products: dict[str, tuple[str, str, int]] | None = None):
        self.products: dict[str, StockLevelDTO] = {}
        self.calls: list[str] = []
        self._gates: dict[str, asyncio.Event] = {}
        for product_id, (name, price, quantity) in (products or {}).items():
            self.set_stock(product_id, name, price, quantity)

    def set_stock(self, product_id: str, name: str, price: str, quantity: int) -> None:
        self.products[product_id] = StockLevelDTO(
            product_id=product_id,
            name=name,
            unit_price=Decimal(price),
            available_quantity=quantity
        )

    def hold(self, product_id: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[product_id] = gate
        return gate

    async def lookup(self, product_id: str) -> StockLevelDTO:
        self.calls.append(product_id)
        gate = self._gates.get(product_id)
        if gate is not None:
            await gate.wait()
        if product_id not in self.products:
            raise ProductNotFoundException(product_id)
        return self.products[product_id].model_copy()


class FakePaymentService(PaymentService):
    """
    Scriptable payment service.

    - authorize_amount: force the authorized amount (None = echo the submitted amount)
    - error: exception raised instead of authorizing
    - hold(): make the next submission wait until the returned event is set
    """

    def __init__(self):
        self.submissions: list[tuple[str, Decimal, object, str | None]] = []
        self.authorize_amount: Decimal | None = None
        self.error: Exception | None = None
        self._gate: asyncio.Event | None = None
        self.submitted = asyncio.Event()

    def hold(self) -> asyncio.Event:
        self._gate = asyncio.Event()
        return self._gate

    async def submit(self, session_id, amount, method, reference=None) -> PaymentAuthorizationDTO:
        self.submissions.append((session_id, amount, method, reference))
        self.submitted.set()
        if self._gate is not None:
            await self._gate.wait()
        if self.error is not None:
            raise self.error
        authorized = self.authorize_amount if self.authorize_amount is not None else amount
        return PaymentAuthorizationDTO(authorized_amount=authorized, transaction_reference="TX-TEST-1")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def stock_lookup():
    """Catalog of spare parts used across the suite."""
    return FakeStockLookup({
        "BRK-001": ("Brake Pad Set", "10.00", 5),
        "OIL-002": ("Engine Oil 1L", "7.50", 20),
        "FLT-003": ("Oil Filter", "4.99", 12),
        "SPK-004": ("Spark Plug", "3.25", 0),
    })


@pytest.fixture
def payment_service():
    return FakePaymentService()


@pytest.fixture
def cart(stock_lookup):
    from services.cart import CartStore
    return CartStore("session-1", stock_lookup)


@pytest.fixture
def registry(stock_lookup, payment_service):
    from services.session import SessionRegistry
    return SessionRegistry(stock_lookup, payment_service, max_sessions=5)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine (in-memory SQLite)."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool
    )

    # Import and create all tables
    from db import Base
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session_maker(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
