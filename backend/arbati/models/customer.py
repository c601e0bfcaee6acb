import enum
import json
from datetime import datetime

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, Text, Enum
from sqlalchemy.orm import relationship
from arbati.db.base import Base


class CustomerType(str, enum.Enum):
    INDIVIDUAL = "INDIVIDUAL"
    COMPANY = "COMPANY"


class Address(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    name_ar = Column(String(255), nullable=True)
    sku = Column(String(64), unique=True, nullable=False, index=True)  # customer code
    type = Column(Enum(CustomerType, native_enum=False, length=32), nullable=False, default=CustomerType.INDIVIDUAL)
    phone = Column(String(64), nullable=True)
    email = Column(String(255), nullable=True)
    city = Column(String(128), nullable=True)
    address_id = Column(Integer, ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True)
    image = Column(String(512), nullable=True)
    attachment = Column(Text, nullable=True)  # JSON list of file URLs
    notes = Column(Text, nullable=True)
    debt_iqd = Column(Numeric(14, 2), nullable=False, default=0)
    debt_usd = Column(Numeric(14, 2), nullable=False, default=0)
    current_balance = Column(Numeric(14, 2), nullable=False, default=0)  # IQD running balance
    last_payment_date = Column(DateTime, nullable=True)
    days_overdue = Column(Integer, nullable=False, default=0)
    notification_days = Column(Integer, nullable=True)
    notification_type = Column(String(32), nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    address = relationship("Address")
    created_by = relationship("User")

    @property
    def attachments(self) -> list:
        """Decoded attachment URLs. Malformed JSON reads as no attachments."""
        if not self.attachment:
            return []
        try:
            value = json.loads(self.attachment)
        except (TypeError, ValueError):
            return []
        return [str(v) for v in value] if isinstance(value, list) else []

    @attachments.setter
    def attachments(self, urls: list) -> None:
        self.attachment = json.dumps(list(urls)) if urls else None
