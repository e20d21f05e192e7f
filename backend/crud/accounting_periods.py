from calendar import month_name
from datetime import date
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from crud import app_config as crud_app_config
from exceptions import NotFoundError, PeriodClosedError, StateConflictError, ValidationError
from models.accounting_period import AccountingPeriod, PeriodType
from models.journal_entry import JournalEntry
from schemas.accounting_period import AccountingPeriodCreate
from utils.dates import local_now, month_bounds

logger = logging.getLogger(__name__)


def get_period(db: Session, period_id: int, tenant_id: str):
    return db.query(AccountingPeriod).filter(
        AccountingPeriod.id == period_id,
        AccountingPeriod.tenant_id == tenant_id
    ).first()


def require_period(db: Session, period_id: int, tenant_id: str) -> AccountingPeriod:
    period = get_period(db, period_id, tenant_id)
    if period is None:
        raise NotFoundError(f"Accounting period {period_id} not found")
    return period


def get_periods(db: Session, tenant_id: str, fiscal_year: Optional[int] = None) -> List[AccountingPeriod]:
    query = db.query(AccountingPeriod).filter(AccountingPeriod.tenant_id == tenant_id)
    if fiscal_year is not None:
        query = query.filter(AccountingPeriod.fiscal_year == fiscal_year)
    return query.order_by(AccountingPeriod.start_date, AccountingPeriod.period_number).all()


def get_periods_for_date(db: Session, day: date, tenant_id: str) -> List[AccountingPeriod]:
    return db.query(AccountingPeriod).filter(
        AccountingPeriod.tenant_id == tenant_id,
        AccountingPeriod.start_date <= day,
        AccountingPeriod.end_date >= day,
    ).all()


def get_closed_period_for_date(db: Session, day: date, tenant_id: str) -> Optional[AccountingPeriod]:
    """Return a closed period containing `day`, if any. Dates outside every period are open."""
    return db.query(AccountingPeriod).filter(
        AccountingPeriod.tenant_id == tenant_id,
        AccountingPeriod.start_date <= day,
        AccountingPeriod.end_date >= day,
        AccountingPeriod.is_closed == True,
    ).first()


def is_date_open(db: Session, day: date, tenant_id: str) -> bool:
    return get_closed_period_for_date(db, day, tenant_id) is None


def assert_date_open(db: Session, day: date, tenant_id: str):
    """Raise PeriodClosedError if journal mutation on `day` is locked."""
    closed = get_closed_period_for_date(db, day, tenant_id)
    if closed is not None:
        logger.warning(f"Rejected journal mutation dated {day} for tenant {tenant_id}: period {closed.period_name} is closed")
        raise PeriodClosedError(day, closed.period_name)


def create_period(db: Session, period: AccountingPeriodCreate, tenant_id: str, user_id: str = None):
    existing = db.query(AccountingPeriod).filter(
        AccountingPeriod.tenant_id == tenant_id,
        AccountingPeriod.fiscal_year == period.fiscal_year,
        AccountingPeriod.period_number == period.period_number,
    ).first()
    if existing:
        raise ValidationError(f"Period {period.period_number} of fiscal year {period.fiscal_year} already exists")

    db_period = AccountingPeriod(**period.model_dump(), tenant_id=tenant_id, created_by=user_id)
    db.add(db_period)
    db.commit()
    db.refresh(db_period)
    logger.info(f"Accounting period '{db_period.period_name}' created for tenant {tenant_id}")
    return db_period


def generate_fiscal_year_periods(db: Session, fiscal_year: int, tenant_id: str, user_id: str = None):
    """Create the twelve monthly periods of a calendar fiscal year; existing ones are kept."""
    existing_numbers = {
        number for (number,) in db.query(AccountingPeriod.period_number).filter(
            AccountingPeriod.tenant_id == tenant_id,
            AccountingPeriod.fiscal_year == fiscal_year,
        )
    }
    for month in range(1, 13):
        if month in existing_numbers:
            continue
        start, end = month_bounds(date(fiscal_year, month, 1))
        db.add(AccountingPeriod(
            period_name=f"{month_name[month]} {fiscal_year}",
            start_date=start,
            end_date=end,
            fiscal_year=fiscal_year,
            period_number=month,
            period_type=PeriodType.MONTHLY,
            tenant_id=tenant_id,
            created_by=user_id,
        ))
    db.commit()
    return get_periods(db, tenant_id, fiscal_year=fiscal_year)


def get_unposted_entries_in_period(db: Session, period: AccountingPeriod):
    return db.query(JournalEntry).filter(
        JournalEntry.tenant_id == period.tenant_id,
        JournalEntry.is_active == True,
        JournalEntry.is_posted == False,
        JournalEntry.entry_date >= period.start_date,
        JournalEntry.entry_date <= period.end_date,
    ).order_by(JournalEntry.entry_date, JournalEntry.id).all()


def close_period(db: Session, period_id: int, tenant_id: str, user_id: str, closing_notes: Optional[str] = None):
    """Close a period.

    Under the "strict" policy any unposted entry dated inside the period blocks the
    close. Under "flag" the close goes ahead and the unposted references are returned
    so the caller can resolve them after reopening.

    Returns (period, unposted_references).
    """
    period = require_period(db, period_id, tenant_id)
    if period.is_closed:
        raise StateConflictError(f"Period '{period.period_name}' is already closed")

    policy = crud_app_config.get_accounting_config(db, tenant_id)["period_close_policy"]
    unposted = get_unposted_entries_in_period(db, period)
    references = [entry.reference for entry in unposted]
    if unposted and policy == "strict":
        raise ValidationError(
            f"Period '{period.period_name}' has {len(unposted)} unposted entries: {', '.join(references[:10])}"
        )

    period.is_closed = True
    period.closed_by = user_id
    period.closed_at = local_now()
    period.closing_notes = closing_notes
    period.updated_by = user_id
    db.commit()
    db.refresh(period)

    if unposted:
        logger.warning(f"Period '{period.period_name}' closed for tenant {tenant_id} with unposted entries {references}")
    logger.info(f"Period '{period.period_name}' closed for tenant {tenant_id} by {user_id}")
    return period, (references if policy == "flag" else [])


def reopen_period(db: Session, period_id: int, tenant_id: str, user_id: str):
    period = require_period(db, period_id, tenant_id)
    if not period.is_closed:
        raise StateConflictError(f"Period '{period.period_name}' is not closed")

    reopen_note = f"Reopened by {user_id} at {local_now().isoformat()}"
    period.closing_notes = f"{period.closing_notes}\n{reopen_note}" if period.closing_notes else reopen_note
    period.is_closed = False
    period.closed_by = None
    period.closed_at = None
    period.updated_by = user_id
    db.commit()
    db.refresh(period)
    logger.info(f"Period '{period.period_name}' reopened for tenant {tenant_id} by {user_id}")
    return period
