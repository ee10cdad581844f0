import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable

import aiohttp
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

import config
from exceptions.service import NetworkFailureException
from exceptions.stock import ProductNotFoundException
from models.stock import StockLevelDTO
from repositories.product import ProductRepository

logger = logging.getLogger(__name__)


class StockLookupService(ABC):
    """
    Read-only price/availability source consumed by the cart.

    lookup() either returns the current StockLevelDTO or raises
    ProductNotFoundException. Transport problems surface as
    NetworkFailureException.
    """

    @abstractmethod
    async def lookup(self, product_id: str) -> StockLevelDTO:
        ...


class CatalogStockLookupService(StockLookupService):
    """Stock lookup backed by the local product catalog table."""

    def __init__(self, session_factory: Callable | None = None):
        if session_factory is None:
            from db import get_db_session
            session_factory = get_db_session
        self._session_factory = session_factory

    async def lookup(self, product_id: str) -> StockLevelDTO:
        try:
            async with self._session_factory() as session:
                product = await ProductRepository.get_by_identifier(product_id, session)
        except SQLAlchemyError as e:
            logger.error(f"Catalog lookup failed for product {product_id}: {e}")
            raise NetworkFailureException("Stock lookup", str(e))

        if product is None:
            raise ProductNotFoundException(product_id)

        if not product.is_active:
            # Inactive products stay in the catalog for history but cannot be sold
            logger.warning(f"Product {product_id} is not active, refusing lookup")
            raise ProductNotFoundException(product_id)

        return StockLevelDTO(
            product_id=product_id,
            name=product.name,
            unit_price=product.price,
            available_quantity=product.stock_quantity
        )


class HttpStockLookupService(StockLookupService):
    """
    Stock lookup against the inventory REST API.

    GET {base_url}/products/{product_id}/stock
        200 -> {"name": ..., "unit_price": "10.00", "available_quantity": 5}
        404 -> product unknown
    """

    def __init__(self, base_url: str | None = None, timeout_seconds: float | None = None,
                 http_session: aiohttp.ClientSession | None = None):
        self.base_url = (base_url or config.STOCK_LOOKUP_URL).rstrip('/')
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds or config.STOCK_LOOKUP_TIMEOUT_SECONDS)
        self._http_session = http_session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._http_session is None or self._http_session.closed:
            self._http_session = aiohttp.ClientSession(timeout=self.timeout)
        return self._http_session

    async def close(self) -> None:
        if self._http_session is not None and not self._http_session.closed:
            await self._http_session.close()

    async def lookup(self, product_id: str) -> StockLevelDTO:
        url = f"{self.base_url}/products/{product_id}/stock"
        session = await self._get_session()
        try:
            async with session.get(url) as response:
                if response.status == 404:
                    raise ProductNotFoundException(product_id)
                if response.status != 200:
                    raise NetworkFailureException("Stock lookup", f"HTTP {response.status}")
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Stock lookup request failed for product {product_id}: {e!r}")
            raise NetworkFailureException("Stock lookup", repr(e))
        except ValueError as e:
            logger.error(f"Stock lookup for product {product_id} returned a body that is not JSON: {e}")
            raise NetworkFailureException("Stock lookup", f"malformed response: {e}")

        try:
            return StockLevelDTO(
                product_id=product_id,
                name=payload.get("name") or product_id,
                unit_price=payload["unit_price"],
                available_quantity=payload["available_quantity"]
            )
        except (AttributeError, KeyError, TypeError, ValidationError) as e:
            logger.error(f"Malformed stock lookup response for product {product_id}: {payload!r}")
            raise NetworkFailureException("Stock lookup", f"malformed response: {e}")


def create_stock_lookup_service() -> StockLookupService:
    """Build the stock lookup backend selected by config.STOCK_LOOKUP_BACKEND."""
    if config.STOCK_LOOKUP_BACKEND == "http":
        return HttpStockLookupService()
    return CatalogStockLookupService()
