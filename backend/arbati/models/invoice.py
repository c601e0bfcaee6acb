"""
Invoice and its line items.

kind and currency are written once by the invoice and payment services.
Rows created before those columns existed read as UNKNOWN until
`arbati-backfill` classifies them.
"""
import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, Text, Enum
from sqlalchemy.orm import relationship
from arbati.db.base import Base


class InvoiceStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    FINALIZED = "FINALIZED"
    PAID = "PAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class InvoiceKind(str, enum.Enum):
    WHOLESALE_MOTORCYCLE = "WHOLESALE_MOTORCYCLE"
    WHOLESALE_PRODUCT = "WHOLESALE_PRODUCT"
    RETAIL_MOTORCYCLE = "RETAIL_MOTORCYCLE"
    RETAIL_PRODUCT = "RETAIL_PRODUCT"
    PAYMENT = "PAYMENT"
    UNKNOWN = "UNKNOWN"

    @property
    def slug(self) -> str:
        """URL form used by the ?type= filter, e.g. wholesale-motorcycle."""
        return self.value.lower().replace("_", "-")

    @classmethod
    def from_slug(cls, value: str) -> "InvoiceKind":
        return cls(value.strip().upper().replace("-", "_"))


class Currency(str, enum.Enum):
    IQD = "IQD"
    USD = "USD"


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(128), unique=True, nullable=False, index=True)
    status = Column(Enum(InvoiceStatus, native_enum=False, length=32), nullable=False, default=InvoiceStatus.DRAFT)
    kind = Column(Enum(InvoiceKind, native_enum=False, length=32), nullable=False, default=InvoiceKind.UNKNOWN, index=True)
    currency = Column(Enum(Currency, native_enum=False, length=8), nullable=False, default=Currency.IQD)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="SET NULL"), nullable=True)
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
    discount = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(14, 2), nullable=False, default=0)
    amount_due = Column(Numeric(14, 2), nullable=False, default=0)
    invoice_date = Column(DateTime, default=datetime.utcnow)
    due_date = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", backref="invoices")
    sale = relationship("Sale", backref="invoices")
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        order_by="InvoiceItem.order",
        cascade="all, delete-orphan",
    )


class InvoiceItem(Base):
    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    motorcycle_id = Column(Integer, ForeignKey("motorcycles.id", ondelete="SET NULL"), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(14, 2), nullable=False, default=0)
    discount = Column(Numeric(5, 2), nullable=False, default=0)  # percent
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)  # percent
    line_total = Column(Numeric(14, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=0)

    invoice = relationship("Invoice", back_populates="items")
    product = relationship("Product")
    motorcycle = relationship("Motorcycle")
