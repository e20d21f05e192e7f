from pydantic import BaseModel, Field
from typing import Optional
from datetime import date
from decimal import Decimal


class FuelUsageBase(BaseModel):
    usage_date: date
    old_stock: Decimal = Field(Decimal("0"), ge=0)
    new_stock: Decimal = Field(Decimal("0"), ge=0)
    machines_loaded: Decimal = Field(Decimal("0"), ge=0)
    wheel_loaders_loaded: Decimal = Field(Decimal("0"), ge=0)
    cost_per_litre: Optional[Decimal] = Field(None, ge=0)


class FuelUsageCreate(FuelUsageBase):
    pass


class FuelUsageUpdate(BaseModel):
    usage_date: Optional[date] = None
    old_stock: Optional[Decimal] = Field(None, ge=0)
    new_stock: Optional[Decimal] = Field(None, ge=0)
    machines_loaded: Optional[Decimal] = Field(None, ge=0)
    wheel_loaders_loaded: Optional[Decimal] = Field(None, ge=0)
    cost_per_litre: Optional[Decimal] = Field(None, ge=0)
