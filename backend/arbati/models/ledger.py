from datetime import datetime

from sqlalchemy import Column, Integer, ForeignKey, Numeric, DateTime, String
from sqlalchemy.orm import relationship
from arbati.db.base import Base


class CustomerBalance(Base):
    """Balance history row. Negative amounts are payments (credits)."""
    __tablename__ = "customer_balances"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    balance = Column(Numeric(14, 2), nullable=False)  # running IQD balance after this row
    description = Column(String(512), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    customer = relationship("Customer", backref="balance_history")

    @property
    def entry_type(self) -> str:
        if self.amount is not None and self.amount < 0:
            return "payment"
        if self.invoice_id:
            return "invoice"
        if self.sale_id:
            return "sale"
        return "adjustment"
