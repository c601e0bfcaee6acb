from pydantic import BaseModel, Field
from typing import Optional

from arbati.models.motorcycle import MotorcycleStatus


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    name_ar: Optional[str] = None
    name_ku: Optional[str] = None
    sku: str = Field(..., min_length=1)
    barcode: Optional[str] = None
    description: Optional[str] = None
    purchase_price: float = Field(0, ge=0)
    mufrad_price: float = Field(0, ge=0)
    jumla_price: float = Field(0, ge=0)
    rmb_price: Optional[float] = Field(None, ge=0)
    default_tax_rate: float = Field(0, ge=0, le=100)
    stock_quantity: int = Field(0, ge=0)
    low_stock_threshold: int = Field(10, ge=0)
    image: Optional[str] = None
    is_active: bool = True
    category_id: Optional[int] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    name_ar: Optional[str] = None
    name_ku: Optional[str] = None
    sku: Optional[str] = Field(None, min_length=1)
    barcode: Optional[str] = None
    description: Optional[str] = None
    purchase_price: Optional[float] = Field(None, ge=0)
    mufrad_price: Optional[float] = Field(None, ge=0)
    jumla_price: Optional[float] = Field(None, ge=0)
    rmb_price: Optional[float] = Field(None, ge=0)
    default_tax_rate: Optional[float] = Field(None, ge=0, le=100)
    stock_quantity: Optional[int] = Field(None, ge=0)
    low_stock_threshold: Optional[int] = Field(None, ge=0)
    image: Optional[str] = None
    is_active: Optional[bool] = None
    category_id: Optional[int] = None


class MotorcycleCreate(BaseModel):
    name: str = Field(..., min_length=1)
    sku: str = Field(..., min_length=1)
    usd_retail_price: float = Field(0, ge=0)
    usd_wholesale_price: float = Field(0, ge=0)
    rmb_price: Optional[float] = Field(None, ge=0)
    stock_quantity: int = Field(0, ge=0)
    low_stock_threshold: int = Field(10, ge=0)
    status: Optional[MotorcycleStatus] = None
    image: Optional[str] = None
    notes: Optional[str] = None


class MotorcycleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    sku: Optional[str] = Field(None, min_length=1)
    usd_retail_price: Optional[float] = Field(None, ge=0)
    usd_wholesale_price: Optional[float] = Field(None, ge=0)
    rmb_price: Optional[float] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    low_stock_threshold: Optional[int] = Field(None, ge=0)
    status: Optional[MotorcycleStatus] = None
    image: Optional[str] = None
    notes: Optional[str] = None


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    name_ar: Optional[str] = None
    name_ku: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    name_ar: Optional[str] = None
    name_ku: Optional[str] = None
