from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import date, datetime
from models.accounting_period import PeriodType


class AccountingPeriodCreate(BaseModel):
    period_name: str = Field(..., min_length=1, max_length=50)
    start_date: date
    end_date: date
    fiscal_year: int
    period_number: int = Field(..., ge=1)
    period_type: PeriodType = PeriodType.MONTHLY

    @model_validator(mode='after')
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError('end_date must not be before start_date')
        return self


class ClosePeriodRequest(BaseModel):
    closing_notes: Optional[str] = None


class AccountingPeriod(AccountingPeriodCreate):
    id: int
    tenant_id: str
    is_closed: bool
    closed_by: Optional[str] = None
    closed_at: Optional[datetime] = None
    closing_notes: Optional[str] = None

    class Config:
        from_attributes = True


class ClosePeriodResult(BaseModel):
    period: AccountingPeriod
    # Populated only under the "flag" close policy
    unposted_references: List[str] = []
