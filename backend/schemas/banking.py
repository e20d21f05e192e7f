from pydantic import BaseModel, Field
from typing import Optional
from datetime import date
from decimal import Decimal


class BankingBase(BaseModel):
    banking_date: date
    item: Optional[str] = None
    amount_banked: Decimal = Field(..., gt=0)
    txn_reference: Optional[str] = None
    ref_code: Optional[str] = None
    notes: Optional[str] = None


class BankingCreate(BankingBase):
    pass


class BankingUpdate(BaseModel):
    banking_date: Optional[date] = None
    item: Optional[str] = None
    amount_banked: Optional[Decimal] = Field(None, gt=0)
    txn_reference: Optional[str] = None
    notes: Optional[str] = None
