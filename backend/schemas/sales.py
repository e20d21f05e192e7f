from pydantic import BaseModel, Field
from typing import Optional
from datetime import date
from decimal import Decimal
from models.sales import PaymentStatus


class SaleBase(BaseModel):
    sale_date: date
    vehicle_registration: str = Field(..., min_length=1, max_length=30)
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    product_name: str
    quantity: Decimal = Field(..., gt=0)
    price_per_unit: Decimal = Field(..., ge=0)
    broker_id: Optional[int] = None
    commission_per_unit: Decimal = Field(Decimal("0"), ge=0)
    payment_status: PaymentStatus = PaymentStatus.PAID
    payment_mode: Optional[str] = None
    payment_reference: Optional[str] = None
    payment_received_date: Optional[date] = None
    include_land_rate: bool = True
    clerk_name: Optional[str] = None


class SaleCreate(SaleBase):
    pass


class SaleUpdate(BaseModel):
    sale_date: Optional[date] = None
    vehicle_registration: Optional[str] = None
    client_name: Optional[str] = None
    product_name: Optional[str] = None
    quantity: Optional[Decimal] = Field(None, gt=0)
    price_per_unit: Optional[Decimal] = Field(None, ge=0)
    broker_id: Optional[int] = None
    commission_per_unit: Optional[Decimal] = Field(None, ge=0)
    payment_status: Optional[PaymentStatus] = None
    payment_mode: Optional[str] = None
    payment_received_date: Optional[date] = None
    include_land_rate: Optional[bool] = None


class Sale(SaleBase):
    id: int
    tenant_id: str
    gross_sale_amount: Decimal

    class Config:
        from_attributes = True
