from datetime import date
from typing import List
import logging

from sqlalchemy.orm import Session

from crud import daily_reports as crud_daily_reports
from models.expenses import Expense
from schemas.expenses import ExpenseCreate, ExpenseUpdate

logger = logging.getLogger(__name__)


def get_expense(db: Session, expense_id: int, tenant_id: str):
    return db.query(Expense).filter(
        Expense.id == expense_id,
        Expense.tenant_id == tenant_id,
        Expense.is_active == True
    ).first()


def get_expenses_by_date_range(db: Session, start_date: date, end_date: date, tenant_id: str) -> List[Expense]:
    return db.query(Expense).filter(
        Expense.tenant_id == tenant_id,
        Expense.is_active == True,
        Expense.expense_date >= start_date,
        Expense.expense_date <= end_date
    ).order_by(Expense.expense_date, Expense.id).all()


def create_expense(db: Session, expense: ExpenseCreate, tenant_id: str, user_id: str):
    db_expense = Expense(**expense.model_dump(), tenant_id=tenant_id, created_by=user_id)
    db.add(db_expense)
    db.flush()
    logger.info(f"Expense {db_expense.id} recorded on {db_expense.expense_date} (tenant {tenant_id})")
    return crud_daily_reports.record_changed(db, db_expense, [db_expense.expense_date], tenant_id, user_id)


def update_expense(db: Session, expense_id: int, expense: ExpenseUpdate, tenant_id: str, user_id: str):
    db_expense = get_expense(db, expense_id, tenant_id)
    if not db_expense:
        return None

    previous_date = db_expense.expense_date
    for key, value in expense.model_dump(exclude_unset=True).items():
        setattr(db_expense, key, value)
    db_expense.updated_by = user_id
    db.flush()
    return crud_daily_reports.record_changed(db, db_expense, [previous_date, db_expense.expense_date], tenant_id, user_id)


def delete_expense(db: Session, expense_id: int, tenant_id: str, user_id: str):
    db_expense = get_expense(db, expense_id, tenant_id)
    if not db_expense:
        return None

    db_expense.is_active = False
    db_expense.updated_by = user_id
    db.flush()
    logger.info(f"Expense {expense_id} deleted for tenant {tenant_id} by {user_id}")
    return crud_daily_reports.record_changed(db, db_expense, [db_expense.expense_date], tenant_id, user_id)
