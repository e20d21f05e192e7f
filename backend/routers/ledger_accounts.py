from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from decimal import Decimal
import logging

from database import get_db
from schemas.ledger_accounts import LedgerAccount, LedgerAccountCreate, LedgerAccountUpdate
from crud import ledger_accounts as crud_ledger_accounts
from models.ledger_accounts import AccountCategory
from utils.auth_utils import ACCOUNTING_WRITERS, get_current_user, get_user_identifier, require_group
from utils.dates import local_today
from utils.tenancy import get_tenant_id

router = APIRouter(
    prefix="/ledger-accounts",
    tags=["Ledger Accounts"],
)
logger = logging.getLogger(__name__)


@router.post("/initialize-defaults", response_model=List[LedgerAccount], status_code=status.HTTP_201_CREATED)
def initialize_default_accounts(
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    """
    Seeds the standard quarry chart of accounts. Returns an empty list when the
    tenant already has accounts.
    """
    return crud_ledger_accounts.initialize_default_accounts(db, tenant_id, user_id=get_user_identifier(user))


@router.post("/", response_model=LedgerAccount, status_code=status.HTTP_201_CREATED)
def create_ledger_account(
    account: LedgerAccountCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(ACCOUNTING_WRITERS))
):
    return crud_ledger_accounts.create_account(db, account, tenant_id, user_id=get_user_identifier(user))


@router.get("/", response_model=List[LedgerAccount])
def get_ledger_accounts(
    category: Optional[AccountCategory] = None,
    include_inactive: bool = False,
    skip: int = 0,
    limit: int = 500,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    return crud_ledger_accounts.get_accounts(
        db, tenant_id, category=category, include_inactive=include_inactive, skip=skip, limit=limit
    )


@router.get("/{account_id}", response_model=LedgerAccount)
def get_ledger_account(
    account_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    db_account = crud_ledger_accounts.get_account(db, account_id, tenant_id)
    if db_account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ledger account not found")
    return db_account


@router.get("/{account_id}/balance")
def get_ledger_account_balance(
    account_id: int,
    as_of_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    db_account = crud_ledger_accounts.require_account(db, account_id, tenant_id)
    as_of_date = as_of_date or local_today()
    balance: Decimal = crud_ledger_accounts.get_account_balance(db, db_account, as_of_date)
    return {
        "account_id": db_account.id,
        "account_code": db_account.account_code,
        "as_of_date": as_of_date,
        "balance": balance,
    }


@router.patch("/{account_id}", response_model=LedgerAccount)
def update_ledger_account(
    account_id: int,
    account: LedgerAccountUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(ACCOUNTING_WRITERS))
):
    db_account = crud_ledger_accounts.update_account(db, account_id, account, tenant_id, user_id=get_user_identifier(user))
    if db_account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ledger account not found")
    return db_account


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ledger_account(
    account_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(ACCOUNTING_WRITERS))
):
    if not crud_ledger_accounts.delete_account(db, account_id, tenant_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ledger account not found")
    logger.info(f"Ledger account {account_id} deleted by {get_user_identifier(user)}")
