from pydantic import BaseModel, Field, model_validator
from typing import List, Optional

from arbati.models.invoice import Currency
from arbati.models.payment import PaymentMethod
from arbati.models.sale import SaleType


class InvoiceItemCreate(BaseModel):
    product_id: Optional[int] = None
    motorcycle_id: Optional[int] = None
    quantity: int = Field(..., gt=0)
    unit_price: Optional[float] = Field(None, ge=0)  # defaults to the catalog price for the sale type
    discount: float = Field(0, ge=0, le=100)
    tax_rate: Optional[float] = Field(None, ge=0, le=100)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def one_reference(self):
        if (self.product_id is None) == (self.motorcycle_id is None):
            raise ValueError("Each item needs exactly one of product_id or motorcycle_id")
        return self


class InvoiceCreate(BaseModel):
    sale_type: SaleType = SaleType.MUFRAD
    customer_id: Optional[int] = None
    items: List[InvoiceItemCreate] = Field(..., min_length=1)
    discount: float = Field(0, ge=0)
    amount_paid: float = Field(0, ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    currency: Optional[Currency] = None
    notes: Optional[str] = None


class InvoiceCancel(BaseModel):
    reason: Optional[str] = None


class PaymentCreate(BaseModel):
    amount_iqd: float = Field(0, ge=0)
    amount_usd: float = Field(0, ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    description: Optional[str] = None
    invoice_id: Optional[int] = None

    @model_validator(mode="after")
    def some_amount(self):
        if self.amount_iqd <= 0 and self.amount_usd <= 0:
            raise ValueError("Payment amount must be greater than zero")
        return self
