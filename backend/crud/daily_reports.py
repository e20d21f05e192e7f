from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from crud import app_config as crud_app_config
from crud import journal_generation
from exceptions import ValidationError
from models.banking import Banking
from models.daily_notes import DailyNote
from models.expenses import Expense
from models.fuel_usage import FuelUsage
from models.prepayments import Prepayment
from models.sales import PaymentStatus, Sale
from schemas.daily_reports import DailyReport, RecalculateResult
from utils import money, to_decimal
from utils.dates import daterange, local_today

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def get_daily_note(db: Session, day: date, tenant_id: str):
    return db.query(DailyNote).filter(
        DailyNote.tenant_id == tenant_id,
        DailyNote.note_date == day,
        DailyNote.is_active == True
    ).first()


def get_previous_closing_balance(db: Session, day: date, tenant_id: str) -> Decimal:
    note = get_daily_note(db, day - timedelta(days=1), tenant_id)
    return to_decimal(note.closing_balance) if note else ZERO


def _sum(db: Session, column, *criteria) -> Decimal:
    return to_decimal(db.query(func.coalesce(func.sum(column), 0)).filter(*criteria).scalar())


def compute_daily_report(db: Session, day: date, tenant_id: str, opening_balance: Optional[Decimal] = None) -> DailyReport:
    """Compute one day's cash position. Nothing is persisted.

    `opening_balance` defaults to the stored closing balance of the previous day;
    the cascade passes the value it has just recomputed instead.
    """
    if opening_balance is None:
        opening_balance = get_previous_closing_balance(db, day, tenant_id)

    fees = crud_app_config.get_fee_config(db, tenant_id)
    sales = db.query(Sale).filter(
        Sale.tenant_id == tenant_id,
        Sale.is_active == True,
        Sale.sale_date == day
    ).all()

    report = DailyReport(report_date=day, opening_balance=money(opening_balance))
    for sale in sales:
        gross = money(sale.gross_sale_amount)
        report.total_quantity += to_decimal(sale.quantity)
        report.total_sales += gross
        if not sale.is_paid or sale.collected_later:
            report.unpaid += gross
        commission, loaders, land_rate = journal_generation.sale_fee_amounts(sale, fees)
        report.commission += commission
        report.loaders_fee += loaders
        report.land_rate_fee += land_rate

    report.user_expenses = _sum(
        db, Expense.amount,
        Expense.tenant_id == tenant_id, Expense.is_active == True, Expense.expense_date == day,
    )
    report.total_collections = _sum(
        db, Sale.quantity * Sale.price_per_unit,
        Sale.tenant_id == tenant_id, Sale.is_active == True,
        Sale.payment_status == PaymentStatus.PAID,
        Sale.payment_received_date == day, Sale.sale_date < day,
    )
    report.total_prepayments = _sum(
        db, Prepayment.total_amount_paid,
        Prepayment.tenant_id == tenant_id, Prepayment.is_active == True, Prepayment.prepayment_date == day,
    )
    report.banked = _sum(
        db, Banking.amount_banked,
        Banking.tenant_id == tenant_id, Banking.is_active == True, Banking.banking_date == day,
    )

    fuel = db.query(FuelUsage).filter(
        FuelUsage.tenant_id == tenant_id,
        FuelUsage.is_active == True,
        FuelUsage.usage_date == day
    ).order_by(FuelUsage.id.desc()).first()
    if fuel is not None:
        report.fuel_balance = fuel.balance
    return report


def save_closing_balance(db: Session, day: date, closing_balance: Decimal, tenant_id: str, user_id: str = None) -> DailyNote:
    """Store the day's closing balance, creating its DailyNote if needed. Flushes, does not commit."""
    note = get_daily_note(db, day, tenant_id)
    if note is None:
        note = DailyNote(note_date=day, closing_balance=money(closing_balance), tenant_id=tenant_id, created_by=user_id)
        db.add(note)
    else:
        note.closing_balance = money(closing_balance)
        note.updated_by = user_id
    db.flush()
    return note


def generate_daily_report(db: Session, day: date, tenant_id: str, user_id: str = "system") -> DailyReport:
    """Compute one day's report and store its closing balance so the next day opens with it.

    Future days are computed but not stored.
    """
    report = compute_daily_report(db, day, tenant_id)
    if day <= local_today():
        save_closing_balance(db, day, report.cash_in_hand, tenant_id, user_id=user_id)
        db.commit()
    return report


def recalculate_closing_balances_from(
    db: Session,
    start_date: date,
    tenant_id: str,
    user_id: str = "system",
    today: Optional[date] = None,
    commit: bool = True,
) -> RecalculateResult:
    """Recompute every closing balance from `start_date` through today.

    A strict left-to-right fold: each day opens with the closing balance computed
    for the day before it in this same run. The tenant's lock row is taken before
    the first read and held for the whole run, so concurrent cascades for one
    tenant queue up behind each other. If any day fails, the whole chain is rolled back.
    """
    today = today or local_today()
    days = 0
    current_day = start_date
    try:
        crud_app_config.lock_tenant_row(db, tenant_id)
        max_days = crud_app_config.get_accounting_config(db, tenant_id)["cascade_max_days"]
        if max_days and (today - start_date).days > max_days:
            raise ValidationError(
                f"Cannot recalculate closing balances from {start_date}: more than {max_days} days before {today}"
            )

        closing = get_previous_closing_balance(db, start_date, tenant_id)
        for current_day in daterange(start_date, today):
            report = compute_daily_report(db, current_day, tenant_id, opening_balance=closing)
            closing = report.cash_in_hand
            save_closing_balance(db, current_day, closing, tenant_id, user_id=user_id)
            days += 1
        if commit:
            db.commit()
    except ValidationError:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception(f"Closing balance cascade failed for tenant {tenant_id} at {current_day}; chain from {start_date} rolled back")
        raise

    logger.info(f"Recalculated {days} closing balances for tenant {tenant_id} from {start_date} to {today}; final {closing}")
    return RecalculateResult(start_date=start_date, end_date=today, days_recalculated=days, final_closing_balance=closing)


def record_changed(db: Session, record, affected_dates: Iterable[date], tenant_id: str, user_id: str):
    """Bring the ledger and the closing-balance chain in line after an operational record changed.

    The journal resync and the cascade share one transaction. Any change dated
    today or earlier refolds the chain through today, so today's note always
    exists for tomorrow to open with.
    """
    try:
        journal_generation.sync_record_entries(db, record, tenant_id, user_id=user_id)
    except Exception:
        db.rollback()
        raise

    earliest = min(d for d in affected_dates if d is not None)
    if earliest <= local_today():
        recalculate_closing_balances_from(db, earliest, tenant_id, user_id=user_id)
    else:
        db.commit()
    db.refresh(record)
    return record
