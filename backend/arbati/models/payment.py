import enum
from datetime import datetime

from sqlalchemy import Column, Integer, ForeignKey, Numeric, DateTime, Text, Enum
from sqlalchemy.orm import relationship
from arbati.db.base import Base


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    CHECK = "CHECK"
    OTHER = "OTHER"


class CustomerPayment(Base):
    __tablename__ = "customer_payments"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True)
    amount_iqd = Column(Numeric(14, 2), nullable=False, default=0)
    amount_usd = Column(Numeric(14, 2), nullable=False, default=0)
    payment_method = Column(Enum(PaymentMethod, native_enum=False, length=32), nullable=False, default=PaymentMethod.CASH)
    payment_date = Column(DateTime, default=datetime.utcnow)
    description = Column(Text, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    customer = relationship("Customer", backref="payments")
    invoice = relationship("Invoice")
