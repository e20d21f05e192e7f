from pydantic import BaseModel, Field, field_validator
from typing import Optional
from models.ledger_accounts import AccountCategory, AccountType


class LedgerAccountBase(BaseModel):
    account_code: str = Field(..., min_length=1, max_length=20)
    account_name: str = Field(..., min_length=1, max_length=150)
    category: AccountCategory
    account_type: AccountType = AccountType.OTHER
    parent_account_id: Optional[int] = None
    # None means "derive from category"
    is_debit_normal: Optional[bool] = None
    display_order: int = 0
    description: Optional[str] = None

    @field_validator('account_code')
    def validate_account_code(cls, v):
        v = v.strip()
        if not v.isdigit():
            raise ValueError('account_code must contain digits only')
        return v


class LedgerAccountCreate(LedgerAccountBase):
    pass


class LedgerAccountUpdate(BaseModel):
    account_name: Optional[str] = Field(None, min_length=1, max_length=150)
    category: Optional[AccountCategory] = None
    account_type: Optional[AccountType] = None
    parent_account_id: Optional[int] = None
    is_debit_normal: Optional[bool] = None
    display_order: Optional[int] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class LedgerAccount(LedgerAccountBase):
    id: int
    tenant_id: str
    is_debit_normal: bool
    is_system_account: bool
    is_active: bool

    class Config:
        from_attributes = True
