from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute
from models.product import Product, ProductDTO


class ProductRepository:

    @staticmethod
    async def get_by_identifier(identifier: str, session: AsyncSession) -> ProductDTO | None:
        """
        Resolve a product by SKU or scanned barcode.

        The POS search box and the barcode scanner feed the same field, so the
        cart only ever sees one opaque product identifier.

        Returns:
            ProductDTO if found, None otherwise
        """
        stmt = (select(Product)
                .where(or_(Product.sku == identifier, Product.barcode == identifier))
                .limit(1))
        product = await session_execute(stmt, session)
        result = product.scalar()

        if result is None:
            return None

        return ProductDTO.model_validate(result, from_attributes=True)
