from datetime import date
from decimal import Decimal
from typing import Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from exceptions import (
    AccountHierarchyError,
    AccountInUseError,
    DuplicateAccountCodeError,
    NotFoundError,
)
from models.journal_entry import JournalEntry
from models.journal_entry_line import JournalEntryLine
from models.ledger_accounts import AccountCategory, AccountType, LedgerAccount
from schemas.ledger_accounts import LedgerAccountCreate, LedgerAccountUpdate
from utils import to_decimal

logger = logging.getLogger(__name__)

# Well-known account codes used by journal generation and reports
CASH = "1000"
BANK = "1010"
TRADE_RECEIVABLES = "1100"
INVENTORIES = "1300"
PROPERTY_PLANT_EQUIPMENT = "1500"
CUSTOMER_DEPOSITS = "2000"
TRADE_PAYABLES = "2100"
PROVISIONS = "2300"
SHARE_CAPITAL = "3000"
RETAINED_EARNINGS = "3100"
CURRENT_YEAR_EARNINGS = "3200"
GENERAL_REVENUE = "4000"
COMMISSION = "5000"
LOADERS_FEES = "5100"
LAND_RATE_FEES = "5200"
FUEL = "6000"
OTHER_EXPENSES = "6900"

CASH_ACCOUNT_CODES = (CASH, BANK)

# Bound on ancestor walks; deeper trees are rejected rather than walked forever
MAX_HIERARCHY_DEPTH = 32

EXPENSE_CATEGORY_ACCOUNTS = {
    "fuel": "6000",
    "transportation hire": "6100",
    "maintenance and repairs": "6200",
    "consumables and utilities": "6300",
    "administrative": "6400",
    "marketing": "6500",
    "wages": "6600",
    "bank charges": "6700",
    "cess and road fees": "6800",
    "commission": COMMISSION,
    "loaders fees": LOADERS_FEES,
}

PRODUCT_REVENUE_ACCOUNTS = {
    "size 6": "4010",
    "size 9": "4020",
    "size 4": "4030",
    "reject": "4040",
    "hardcore": "4050",
    "beam": "4060",
}

C, T = AccountCategory, AccountType
DEFAULT_ACCOUNTS = [
    # code, name, category, type, debit normal, parent code
    ("1000", "Cash and Cash Equivalents", C.ASSETS, T.CASH, True, None),
    ("1010", "Bank Account", C.ASSETS, T.BANK, True, None),
    ("1100", "Trade and Other Receivables", C.ASSETS, T.ACCOUNTS_RECEIVABLE, True, None),
    ("1200", "Prepayments", C.ASSETS, T.PREPAID, True, None),
    ("1300", "Inventories", C.ASSETS, T.INVENTORY, True, None),
    ("1500", "Property, Plant and Equipment", C.ASSETS, T.FIXED_ASSET, True, None),
    ("1510", "Accumulated Depreciation", C.ASSETS, T.CONTRA_ASSET, False, "1500"),
    ("2000", "Contract Liabilities", C.LIABILITIES, T.CUSTOMER_DEPOSITS, False, None),
    ("2100", "Trade and Other Payables", C.LIABILITIES, T.ACCOUNTS_PAYABLE, False, None),
    ("2110", "Accrued Expenses", C.LIABILITIES, T.ACCRUED_LIABILITIES, False, None),
    ("2200", "Current Tax Liabilities", C.LIABILITIES, T.TAX_LIABILITIES, False, None),
    ("2300", "Provisions", C.LIABILITIES, T.PROVISIONS, False, None),
    ("2500", "Borrowings", C.LIABILITIES, T.LONG_TERM_LIABILITIES, False, None),
    ("3000", "Share Capital", C.EQUITY, T.SHARE_CAPITAL, False, None),
    ("3100", "Retained Earnings", C.EQUITY, T.RETAINED_EARNINGS, False, None),
    ("3200", "Current Year Earnings", C.EQUITY, T.CURRENT_YEAR_EARNINGS, False, None),
    ("4000", "Revenue", C.REVENUE, T.SALES_REVENUE, False, None),
    ("4010", "Revenue - Size 6", C.REVENUE, T.SALES_REVENUE, False, "4000"),
    ("4020", "Revenue - Size 9", C.REVENUE, T.SALES_REVENUE, False, "4000"),
    ("4030", "Revenue - Size 4", C.REVENUE, T.SALES_REVENUE, False, "4000"),
    ("4040", "Revenue - Reject", C.REVENUE, T.SALES_REVENUE, False, "4000"),
    ("4050", "Revenue - Hardcore", C.REVENUE, T.SALES_REVENUE, False, "4000"),
    ("4060", "Revenue - Beam", C.REVENUE, T.SALES_REVENUE, False, "4000"),
    ("4500", "Other Income", C.REVENUE, T.OTHER_INCOME, False, None),
    ("5000", "Commission", C.COST_OF_SALES, T.DIRECT_COSTS, True, None),
    ("5100", "Loaders Fees", C.COST_OF_SALES, T.DIRECT_COSTS, True, None),
    ("5200", "Land Rate Fees", C.COST_OF_SALES, T.DIRECT_COSTS, True, None),
    ("6000", "Fuel", C.EXPENSES, T.OPERATING_EXPENSES, True, None),
    ("6100", "Transportation Hire", C.EXPENSES, T.OPERATING_EXPENSES, True, None),
    ("6200", "Maintenance", C.EXPENSES, T.OPERATING_EXPENSES, True, None),
    ("6300", "Consumables and Utilities", C.EXPENSES, T.OPERATING_EXPENSES, True, None),
    ("6400", "Administrative", C.EXPENSES, T.OPERATING_EXPENSES, True, None),
    ("6500", "Marketing", C.EXPENSES, T.OPERATING_EXPENSES, True, None),
    ("6600", "Wages", C.EXPENSES, T.OPERATING_EXPENSES, True, None),
    ("6700", "Bank Charges and Finance Costs", C.EXPENSES, T.OPERATING_EXPENSES, True, None),
    ("6800", "Taxes and Levies (Cess)", C.EXPENSES, T.OPERATING_EXPENSES, True, None),
    ("6900", "Other Expenses", C.EXPENSES, T.OPERATING_EXPENSES, True, None),
    ("6950", "Depreciation", C.EXPENSES, T.OPERATING_EXPENSES, True, None),
]
del C, T


def default_debit_normal(category: AccountCategory) -> bool:
    return category in (AccountCategory.ASSETS, AccountCategory.COST_OF_SALES, AccountCategory.EXPENSES)


def get_expense_account_code(category: Optional[str]) -> str:
    """Map an expense category label to its ledger code; unknown labels go to Other Expenses."""
    if not category:
        return OTHER_EXPENSES
    return EXPENSE_CATEGORY_ACCOUNTS.get(category.strip().lower(), OTHER_EXPENSES)


def get_revenue_account_code(product_name: Optional[str]) -> str:
    if not product_name:
        return GENERAL_REVENUE
    return PRODUCT_REVENUE_ACCOUNTS.get(product_name.strip().lower(), GENERAL_REVENUE)


def get_account(db: Session, account_id: int, tenant_id: str):
    return db.query(LedgerAccount).filter(
        LedgerAccount.id == account_id,
        LedgerAccount.tenant_id == tenant_id
    ).first()


def get_account_by_code(db: Session, account_code: str, tenant_id: str):
    return db.query(LedgerAccount).filter(
        LedgerAccount.account_code == account_code,
        LedgerAccount.tenant_id == tenant_id
    ).first()


def require_account(db: Session, account_id: int, tenant_id: str) -> LedgerAccount:
    account = get_account(db, account_id, tenant_id)
    if account is None:
        raise NotFoundError(f"Ledger account {account_id} not found")
    return account


def get_accounts(
    db: Session,
    tenant_id: str,
    category: Optional[AccountCategory] = None,
    include_inactive: bool = False,
    skip: int = 0,
    limit: int = 500
):
    query = db.query(LedgerAccount).filter(LedgerAccount.tenant_id == tenant_id)
    if not include_inactive:
        query = query.filter(LedgerAccount.is_active == True)
    if category:
        query = query.filter(LedgerAccount.category == category)
    return query.order_by(LedgerAccount.display_order, LedgerAccount.account_code).offset(skip).limit(limit).all()


def _validate_parent(db: Session, account_id: Optional[int], parent_id: int, tenant_id: str):
    """Walk up from the proposed parent; reaching `account_id` means a cycle."""
    parent = get_account(db, parent_id, tenant_id)
    if parent is None:
        raise AccountHierarchyError(f"Parent account {parent_id} does not exist for this tenant")

    node, depth = parent, 0
    while node is not None:
        if account_id is not None and node.id == account_id:
            raise AccountHierarchyError("Parent reference would create a cycle in the chart of accounts")
        depth += 1
        if depth > MAX_HIERARCHY_DEPTH:
            raise AccountHierarchyError("Account hierarchy is too deep")
        node = get_account(db, node.parent_account_id, tenant_id) if node.parent_account_id else None


def has_journal_lines(db: Session, account_id: int) -> bool:
    return db.query(JournalEntryLine.id).filter(JournalEntryLine.ledger_account_id == account_id).first() is not None


def has_children(db: Session, account_id: int, tenant_id: str) -> bool:
    return db.query(LedgerAccount.id).filter(
        LedgerAccount.parent_account_id == account_id,
        LedgerAccount.tenant_id == tenant_id
    ).first() is not None


def create_account(db: Session, account: LedgerAccountCreate, tenant_id: str, user_id: str = None, is_system: bool = False):
    if get_account_by_code(db, account.account_code, tenant_id):
        raise DuplicateAccountCodeError(f"Account code {account.account_code} already exists")
    if account.parent_account_id is not None:
        _validate_parent(db, None, account.parent_account_id, tenant_id)

    data = account.model_dump()
    if data["is_debit_normal"] is None:
        data["is_debit_normal"] = default_debit_normal(account.category)

    db_account = LedgerAccount(**data, is_system_account=is_system, tenant_id=tenant_id, created_by=user_id)
    db.add(db_account)
    db.commit()
    db.refresh(db_account)
    logger.info(f"Ledger account {db_account.account_code} created for tenant {tenant_id}")
    return db_account


def update_account(db: Session, account_id: int, account_update: LedgerAccountUpdate, tenant_id: str, user_id: str = None):
    db_account = get_account(db, account_id, tenant_id)
    if not db_account:
        return None

    update_data = account_update.model_dump(exclude_unset=True)

    if db_account.is_system_account:
        if "category" in update_data and update_data["category"] != db_account.category:
            raise AccountInUseError("System accounts cannot be re-categorized")
        if "is_debit_normal" in update_data and update_data["is_debit_normal"] != db_account.is_debit_normal:
            raise AccountInUseError("System accounts cannot change their normal balance")
        if update_data.get("is_active") is False:
            raise AccountInUseError("System accounts cannot be deactivated")

    if update_data.get("parent_account_id") is not None:
        _validate_parent(db, db_account.id, update_data["parent_account_id"], tenant_id)

    for key, value in update_data.items():
        setattr(db_account, key, value)
    db_account.updated_by = user_id

    db.commit()
    db.refresh(db_account)
    return db_account


def delete_account(db: Session, account_id: int, tenant_id: str):
    db_account = get_account(db, account_id, tenant_id)
    if not db_account:
        return False

    if db_account.is_system_account:
        raise AccountInUseError(f"Account {db_account.account_code} is a system account and cannot be deleted")
    if has_children(db, db_account.id, tenant_id):
        raise AccountInUseError(f"Account {db_account.account_code} has child accounts")
    if has_journal_lines(db, db_account.id):
        raise AccountInUseError(f"Account {db_account.account_code} is referenced by journal entries")

    db.delete(db_account)
    db.commit()
    logger.info(f"Ledger account {db_account.account_code} deleted for tenant {tenant_id}")
    return True


def initialize_default_accounts(db: Session, tenant_id: str, user_id: str = "system"):
    """Seed the standard quarry chart of accounts.

    Does nothing when the tenant already has any account, so repeated calls never
    duplicate codes. Returns the accounts created (empty on a no-op).
    """
    if db.query(LedgerAccount.id).filter(LedgerAccount.tenant_id == tenant_id).first():
        logger.info(f"Chart of accounts already initialized for tenant {tenant_id}")
        return []

    by_code = {}
    for order, (code, name, category, account_type, debit_normal, parent_code) in enumerate(DEFAULT_ACCOUNTS, start=1):
        account = LedgerAccount(
            account_code=code,
            account_name=name,
            category=category,
            account_type=account_type,
            is_debit_normal=debit_normal,
            is_system_account=True,
            display_order=order,
            parent=by_code.get(parent_code),
            tenant_id=tenant_id,
            created_by=user_id,
        )
        db.add(account)
        by_code[code] = account

    db.commit()
    logger.info(f"Initialized {len(by_code)} default ledger accounts for tenant {tenant_id}")
    return list(by_code.values())


def get_account_balance(db: Session, account: LedgerAccount, as_of: date) -> Decimal:
    """Posted balance up to and including `as_of`, signed by the account's normal side."""
    debits, credits = db.query(
        func.coalesce(func.sum(JournalEntryLine.debit_amount), 0),
        func.coalesce(func.sum(JournalEntryLine.credit_amount), 0),
    ).join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id).filter(
        JournalEntryLine.ledger_account_id == account.id,
        JournalEntry.tenant_id == account.tenant_id,
        JournalEntry.is_posted == True,
        JournalEntry.is_active == True,
        JournalEntry.entry_date <= as_of,
    ).one()
    debits, credits = to_decimal(debits), to_decimal(credits)
    return debits - credits if account.is_debit_normal else credits - debits
