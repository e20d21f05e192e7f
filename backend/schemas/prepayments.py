from pydantic import BaseModel, Field
from typing import Optional
from datetime import date
from decimal import Decimal


class PrepaymentCreate(BaseModel):
    prepayment_date: date
    vehicle_registration: str = Field(..., min_length=1, max_length=30)
    client_name: Optional[str] = None
    total_amount_paid: Decimal = Field(..., gt=0)
    payment_mode: Optional[str] = None
    payment_reference: Optional[str] = None
    notes: Optional[str] = None


class PrepaymentUpdate(BaseModel):
    prepayment_date: Optional[date] = None
    vehicle_registration: Optional[str] = None
    client_name: Optional[str] = None
    total_amount_paid: Optional[Decimal] = Field(None, gt=0)
    amount_used: Optional[Decimal] = Field(None, ge=0)
    payment_mode: Optional[str] = None
    payment_reference: Optional[str] = None
    notes: Optional[str] = None
