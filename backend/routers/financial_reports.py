from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from database import get_db
from schemas.financial_reports import (
    APSummaryReport,
    ARAgingReport,
    BalanceSheetReport,
    CashFlowReport,
    GeneralLedgerReport,
    ProfitLossReport,
    TrialBalanceReport,
)
from crud import financial_reports as crud_financial_reports
from utils.auth_utils import get_current_user
from utils.tenancy import get_tenant_id

router = APIRouter(
    prefix="/financial-reports",
    tags=["Financial Reports"],
)


@router.get("/trial-balance", response_model=TrialBalanceReport)
def get_trial_balance(
    as_of_date: date,
    comparative_as_of_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    return crud_financial_reports.get_trial_balance(
        db=db, as_of_date=as_of_date, tenant_id=tenant_id, comparative_as_of_date=comparative_as_of_date
    )


@router.get("/profit-and-loss", response_model=ProfitLossReport)
def get_profit_and_loss(
    start_date: date,
    end_date: date,
    comparative: bool = False,
    comparative_start_date: Optional[date] = None,
    comparative_end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    return crud_financial_reports.get_profit_and_loss(
        db=db,
        start_date=start_date,
        end_date=end_date,
        tenant_id=tenant_id,
        comparative=comparative,
        comparative_start_date=comparative_start_date,
        comparative_end_date=comparative_end_date,
    )


@router.get("/balance-sheet", response_model=BalanceSheetReport)
def get_balance_sheet(
    as_of_date: date,
    comparative: bool = False,
    comparative_as_of_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    return crud_financial_reports.get_balance_sheet(
        db=db,
        as_of_date=as_of_date,
        tenant_id=tenant_id,
        comparative_as_of_date=comparative_as_of_date,
        comparative=comparative,
    )


@router.get("/cash-flow", response_model=CashFlowReport)
def get_cash_flow(
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    return crud_financial_reports.get_cash_flow(db=db, start_date=start_date, end_date=end_date, tenant_id=tenant_id)


@router.get("/ar-aging", response_model=ARAgingReport)
def get_ar_aging(
    as_of_date: date,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    return crud_financial_reports.get_ar_aging(db=db, as_of_date=as_of_date, tenant_id=tenant_id)


@router.get("/ap-summary", response_model=APSummaryReport)
def get_ap_summary(
    as_of_date: date,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    return crud_financial_reports.get_ap_summary(db=db, as_of_date=as_of_date, tenant_id=tenant_id)


@router.get("/general-ledger", response_model=GeneralLedgerReport)
def get_general_ledger(
    start_date: date,
    end_date: date,
    account_id: Optional[int] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    return crud_financial_reports.get_general_ledger(
        db=db, start_date=start_date, end_date=end_date, tenant_id=tenant_id, account_id=account_id
    )
