from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import date

from database import get_db
from schemas.daily_reports import DailyReport, RecalculateRequest, RecalculateResult
from crud import daily_reports as crud_daily_reports
from utils.auth_utils import ACCOUNTING_WRITERS, get_current_user, get_user_identifier, require_group
from utils.tenancy import get_tenant_id

router = APIRouter(
    prefix="/daily-reports",
    tags=["Daily Reports"],
)


@router.post("/recalculate", response_model=RecalculateResult)
def recalculate_closing_balances(
    request: RecalculateRequest,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(ACCOUNTING_WRITERS))
):
    """
    Recomputes every closing balance from start_date through today.
    """
    return crud_daily_reports.recalculate_closing_balances_from(
        db, request.start_date, tenant_id, user_id=get_user_identifier(user)
    )


@router.get("/{report_date}", response_model=DailyReport)
def get_daily_report(
    report_date: date,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    """
    Computes the day's report and stores its closing balance for the next day's opening.
    """
    return crud_daily_reports.generate_daily_report(db, report_date, tenant_id, user_id=get_user_identifier(user))
