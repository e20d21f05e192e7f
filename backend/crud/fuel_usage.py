from datetime import date
from typing import List
import logging

from sqlalchemy.orm import Session

from crud import daily_reports as crud_daily_reports
from models.fuel_usage import FuelUsage
from schemas.fuel_usage import FuelUsageCreate, FuelUsageUpdate

logger = logging.getLogger(__name__)


def get_fuel_usage(db: Session, fuel_usage_id: int, tenant_id: str):
    return db.query(FuelUsage).filter(
        FuelUsage.id == fuel_usage_id,
        FuelUsage.tenant_id == tenant_id,
        FuelUsage.is_active == True
    ).first()


def get_fuel_usage_by_date_range(db: Session, start_date: date, end_date: date, tenant_id: str) -> List[FuelUsage]:
    return db.query(FuelUsage).filter(
        FuelUsage.tenant_id == tenant_id,
        FuelUsage.is_active == True,
        FuelUsage.usage_date >= start_date,
        FuelUsage.usage_date <= end_date
    ).order_by(FuelUsage.usage_date, FuelUsage.id).all()


def create_fuel_usage(db: Session, fuel_usage: FuelUsageCreate, tenant_id: str, user_id: str):
    db_fuel_usage = FuelUsage(**fuel_usage.model_dump(), tenant_id=tenant_id, created_by=user_id)
    db.add(db_fuel_usage)
    db.flush()
    logger.info(f"Fuel usage {db_fuel_usage.id} recorded on {db_fuel_usage.usage_date} (tenant {tenant_id})")
    return crud_daily_reports.record_changed(db, db_fuel_usage, [db_fuel_usage.usage_date], tenant_id, user_id)


def update_fuel_usage(db: Session, fuel_usage_id: int, fuel_usage: FuelUsageUpdate, tenant_id: str, user_id: str):
    db_fuel_usage = get_fuel_usage(db, fuel_usage_id, tenant_id)
    if not db_fuel_usage:
        return None

    previous_date = db_fuel_usage.usage_date
    for key, value in fuel_usage.model_dump(exclude_unset=True).items():
        setattr(db_fuel_usage, key, value)
    db_fuel_usage.updated_by = user_id
    db.flush()
    return crud_daily_reports.record_changed(db, db_fuel_usage, [previous_date, db_fuel_usage.usage_date], tenant_id, user_id)


def delete_fuel_usage(db: Session, fuel_usage_id: int, tenant_id: str, user_id: str):
    db_fuel_usage = get_fuel_usage(db, fuel_usage_id, tenant_id)
    if not db_fuel_usage:
        return None

    db_fuel_usage.is_active = False
    db_fuel_usage.updated_by = user_id
    db.flush()
    logger.info(f"Fuel usage {fuel_usage_id} deleted for tenant {tenant_id} by {user_id}")
    return crud_daily_reports.record_changed(db, db_fuel_usage, [db_fuel_usage.usage_date], tenant_id, user_id)
