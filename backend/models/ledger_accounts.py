from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import AuditMixin


class AccountCategory(enum.Enum):
    ASSETS = "Assets"
    LIABILITIES = "Liabilities"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    COST_OF_SALES = "CostOfSales"
    EXPENSES = "Expenses"


class AccountType(enum.Enum):
    CASH = "Cash"
    BANK = "Bank"
    ACCOUNTS_RECEIVABLE = "AccountsReceivable"
    PREPAID = "Prepaid"
    INVENTORY = "Inventory"
    FIXED_ASSET = "FixedAsset"
    CONTRA_ASSET = "ContraAsset"
    CUSTOMER_DEPOSITS = "CustomerDeposits"
    ACCOUNTS_PAYABLE = "AccountsPayable"
    ACCRUED_LIABILITIES = "AccruedLiabilities"
    TAX_LIABILITIES = "TaxLiabilities"
    PROVISIONS = "Provisions"
    LONG_TERM_LIABILITIES = "LongTermLiabilities"
    SHARE_CAPITAL = "ShareCapital"
    RETAINED_EARNINGS = "RetainedEarnings"
    CURRENT_YEAR_EARNINGS = "CurrentYearEarnings"
    SALES_REVENUE = "SalesRevenue"
    OTHER_INCOME = "OtherIncome"
    DIRECT_COSTS = "DirectCosts"
    OPERATING_EXPENSES = "OperatingExpenses"
    OTHER = "Other"


class LedgerAccount(Base, AuditMixin):
    __tablename__ = "ledger_accounts"
    __table_args__ = (UniqueConstraint('tenant_id', 'account_code', name='_tenant_ledger_account_code_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    account_code = Column(String(20), nullable=False, index=True)
    account_name = Column(String(150), nullable=False)
    category = Column(Enum(AccountCategory), nullable=False)
    account_type = Column(Enum(AccountType), nullable=False, default=AccountType.OTHER)
    parent_account_id = Column(Integer, ForeignKey("ledger_accounts.id"), nullable=True)
    is_system_account = Column(Boolean, nullable=False, default=False)
    is_debit_normal = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)
    description = Column(String(255), nullable=True)
    tenant_id = Column(String, index=True, nullable=False)

    parent = relationship("LedgerAccount", remote_side=[id], back_populates="children")
    children = relationship("LedgerAccount", back_populates="parent")
    lines = relationship("JournalEntryLine", back_populates="ledger_account")

    @property
    def full_name(self):
        return f"{self.account_code} - {self.account_name}"
