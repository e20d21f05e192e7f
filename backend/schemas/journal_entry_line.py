from pydantic import BaseModel, Field, model_validator
from decimal import Decimal
from typing import Optional


class JournalEntryLineBase(BaseModel):
    ledger_account_id: int
    debit_amount: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    credit_amount: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    memo: Optional[str] = None


class JournalEntryLineCreate(JournalEntryLineBase):

    @model_validator(mode='after')
    def check_single_side(self):
        if (self.debit_amount > 0) == (self.credit_amount > 0):
            raise ValueError('Each line must carry either a debit or a credit amount, not both or neither.')
        return self


class JournalEntryLine(JournalEntryLineBase):
    id: int
    journal_entry_id: int
    line_number: int

    class Config:
        from_attributes = True
