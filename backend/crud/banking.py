from datetime import date
from typing import List
import logging

from sqlalchemy.orm import Session

from crud import daily_reports as crud_daily_reports
from models.banking import Banking
from schemas.banking import BankingCreate, BankingUpdate

logger = logging.getLogger(__name__)


def get_banking(db: Session, banking_id: int, tenant_id: str):
    return db.query(Banking).filter(
        Banking.id == banking_id,
        Banking.tenant_id == tenant_id,
        Banking.is_active == True
    ).first()


def get_banking_by_date_range(db: Session, start_date: date, end_date: date, tenant_id: str) -> List[Banking]:
    return db.query(Banking).filter(
        Banking.tenant_id == tenant_id,
        Banking.is_active == True,
        Banking.banking_date >= start_date,
        Banking.banking_date <= end_date
    ).order_by(Banking.banking_date, Banking.id).all()


def create_banking(db: Session, banking: BankingCreate, tenant_id: str, user_id: str):
    db_banking = Banking(**banking.model_dump(), tenant_id=tenant_id, created_by=user_id)
    db.add(db_banking)
    db.flush()
    logger.info(f"Banking deposit {db_banking.id} recorded on {db_banking.banking_date} (tenant {tenant_id})")
    return crud_daily_reports.record_changed(db, db_banking, [db_banking.banking_date], tenant_id, user_id)


def update_banking(db: Session, banking_id: int, banking: BankingUpdate, tenant_id: str, user_id: str):
    db_banking = get_banking(db, banking_id, tenant_id)
    if not db_banking:
        return None

    previous_date = db_banking.banking_date
    for key, value in banking.model_dump(exclude_unset=True).items():
        setattr(db_banking, key, value)
    db_banking.updated_by = user_id
    db.flush()
    return crud_daily_reports.record_changed(db, db_banking, [previous_date, db_banking.banking_date], tenant_id, user_id)


def delete_banking(db: Session, banking_id: int, tenant_id: str, user_id: str):
    db_banking = get_banking(db, banking_id, tenant_id)
    if not db_banking:
        return None

    db_banking.is_active = False
    db_banking.updated_by = user_id
    db.flush()
    logger.info(f"Banking deposit {banking_id} deleted for tenant {tenant_id} by {user_id}")
    return crud_daily_reports.record_changed(db, db_banking, [db_banking.banking_date], tenant_id, user_id)
