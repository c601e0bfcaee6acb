from pydantic import BaseModel, Field
from typing import List, Optional

from arbati.models.customer import CustomerType


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1)
    name_ar: Optional[str] = None
    sku: str = Field(..., min_length=1)
    type: CustomerType = CustomerType.INDIVIDUAL
    phone: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    address_id: Optional[int] = None
    image: Optional[str] = None
    attachments: List[str] = []
    notes: Optional[str] = None
    debt_iqd: float = Field(0, ge=0)
    debt_usd: float = Field(0, ge=0)
    notification_days: Optional[int] = Field(None, ge=0)
    notification_type: Optional[str] = None


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    name_ar: Optional[str] = None
    sku: Optional[str] = Field(None, min_length=1)
    type: Optional[CustomerType] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    address_id: Optional[int] = None
    image: Optional[str] = None
    attachments: Optional[List[str]] = None
    notes: Optional[str] = None
    notification_days: Optional[int] = Field(None, ge=0)
    notification_type: Optional[str] = None


class AddressCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class AddressUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
