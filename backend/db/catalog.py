"""
Catalog tables (branches, master products, variants).

Owned by the catalog workflow; the inventory ledger only reads them for
existence checks and display metadata.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Branch(Base):
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    location = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    stock_balances = relationship("StockBalance", back_populates="branch")

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "is_active": bool(self.is_active),
        }


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sku = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)

    variants = relationship("Variant", back_populates="product", cascade="all, delete-orphan")


class Variant(Base):
    __tablename__ = "variants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    barcode = Column(String, nullable=False, unique=True)
    model = Column(String, nullable=True)
    color = Column(String, nullable=True)
    purchase_price = Column(Numeric(12, 2), nullable=False, default=0)
    sale_price = Column(Numeric(12, 2), nullable=False, default=0)

    product = relationship("Product", back_populates="variants")
    stock_balances = relationship("StockBalance", back_populates="variant")
