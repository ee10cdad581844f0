# product is a catalog entry of the spare-parts inventory. The POS engine only
# ever reads it (price and stock level) through the stock lookup service; the
# catalog CRUD screens own all writes.
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Numeric, Boolean, CheckConstraint

from models.base import Base


class Product(Base):
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True, autoincrement=True)
    sku = Column(String(64), nullable=False, unique=True, index=True)
    barcode = Column(String(64), nullable=True, unique=True, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint('price >= 0', name='check_price_non_negative'),
        CheckConstraint('stock_quantity >= 0', name='check_stock_non_negative'),
    )


class ProductDTO(BaseModel):
    id: int | None = None
    sku: str
    barcode: str | None = None
    name: str
    price: Decimal
    stock_quantity: int = 0
    is_active: bool = True
