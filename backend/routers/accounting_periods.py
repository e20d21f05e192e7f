from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from schemas.accounting_period import (
    AccountingPeriod,
    AccountingPeriodCreate,
    ClosePeriodRequest,
    ClosePeriodResult,
)
from crud import accounting_periods as crud_periods
from utils.auth_utils import ACCOUNTING_WRITERS, get_current_user, get_user_identifier, require_group
from utils.tenancy import get_tenant_id

router = APIRouter(
    prefix="/accounting-periods",
    tags=["Accounting Periods"],
)


@router.get("/", response_model=List[AccountingPeriod])
def get_accounting_periods(
    fiscal_year: Optional[int] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    return crud_periods.get_periods(db, tenant_id, fiscal_year=fiscal_year)


@router.post("/", response_model=AccountingPeriod, status_code=status.HTTP_201_CREATED)
def create_accounting_period(
    period: AccountingPeriodCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(ACCOUNTING_WRITERS))
):
    return crud_periods.create_period(db, period, tenant_id, user_id=get_user_identifier(user))


@router.post("/generate/{fiscal_year}", response_model=List[AccountingPeriod], status_code=status.HTTP_201_CREATED)
def generate_fiscal_year_periods(
    fiscal_year: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(ACCOUNTING_WRITERS))
):
    """
    Creates the twelve monthly periods of a fiscal year. Existing periods are kept.
    """
    return crud_periods.generate_fiscal_year_periods(db, fiscal_year, tenant_id, user_id=get_user_identifier(user))


@router.post("/{period_id}/close", response_model=ClosePeriodResult)
def close_accounting_period(
    period_id: int,
    request: ClosePeriodRequest,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(ACCOUNTING_WRITERS))
):
    period, unposted = crud_periods.close_period(
        db, period_id, tenant_id, user_id=get_user_identifier(user), closing_notes=request.closing_notes
    )
    return ClosePeriodResult(period=AccountingPeriod.model_validate(period), unposted_references=unposted)


@router.post("/{period_id}/reopen", response_model=AccountingPeriod)
def reopen_accounting_period(
    period_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    return crud_periods.reopen_period(db, period_id, tenant_id, user_id=get_user_identifier(user))
