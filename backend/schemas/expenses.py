from pydantic import BaseModel, Field
from typing import Optional
from datetime import date
from decimal import Decimal


class ExpenseBase(BaseModel):
    expense_date: date
    item: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0)
    category: Optional[str] = None
    txn_reference: Optional[str] = None
    notes: Optional[str] = None


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(BaseModel):
    expense_date: Optional[date] = None
    item: Optional[str] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    category: Optional[str] = None
    txn_reference: Optional[str] = None
    notes: Optional[str] = None


class Expense(ExpenseBase):
    id: int
    tenant_id: str

    class Config:
        from_attributes = True
