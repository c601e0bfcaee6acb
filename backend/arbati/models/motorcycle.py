import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, Enum
from arbati.db.base import Base


class MotorcycleStatus(str, enum.Enum):
    IN_STOCK = "IN_STOCK"
    RESERVED = "RESERVED"
    SOLD = "SOLD"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class Motorcycle(Base):
    """Motorcycle stock. Priced in USD; sold on motorcycle (USD) invoices."""
    __tablename__ = "motorcycles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    sku = Column(String(64), unique=True, nullable=False, index=True)
    usd_retail_price = Column(Numeric(12, 2), nullable=False, default=0)
    usd_wholesale_price = Column(Numeric(12, 2), nullable=False, default=0)
    rmb_price = Column(Numeric(12, 2), nullable=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=10)
    status = Column(Enum(MotorcycleStatus, native_enum=False, length=32), nullable=False, default=MotorcycleStatus.IN_STOCK)
    image = Column(String(512), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def refresh_status(self) -> None:
        """Keep status in step with stock, leaving manual RESERVED untouched."""
        if self.status == MotorcycleStatus.RESERVED:
            return
        self.status = MotorcycleStatus.IN_STOCK if (self.stock_quantity or 0) > 0 else MotorcycleStatus.OUT_OF_STOCK
