from datetime import datetime

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Boolean, DateTime, Text
from sqlalchemy.orm import relationship
from arbati.db.base import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    name_ar = Column(String(255), nullable=True)
    name_ku = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Product(Base):
    """
    Catalog product. Prices are IQD: mufrad (retail) and jumla (wholesale).
    Sold on product (IQD) invoices.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    name_ar = Column(String(255), nullable=True)
    name_ku = Column(String(255), nullable=True)
    sku = Column(String(64), unique=True, nullable=False, index=True)
    barcode = Column(String(64), nullable=True)
    description = Column(Text, nullable=True)
    purchase_price = Column(Numeric(12, 2), nullable=False, default=0)
    mufrad_price = Column(Numeric(12, 2), nullable=False, default=0)
    jumla_price = Column(Numeric(12, 2), nullable=False, default=0)
    rmb_price = Column(Numeric(12, 2), nullable=True)
    default_tax_rate = Column(Numeric(5, 2), nullable=False, default=0)
    stock_quantity = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=10)
    image = Column(String(512), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("Category")
