from datetime import date
from typing import List
import logging

from sqlalchemy.orm import Session

from crud import daily_reports as crud_daily_reports
from models.sales import Sale
from schemas.sales import SaleCreate, SaleUpdate

logger = logging.getLogger(__name__)


def _affected_dates(sale: Sale):
    return [sale.sale_date, sale.payment_received_date]


def get_sale(db: Session, sale_id: int, tenant_id: str):
    return db.query(Sale).filter(
        Sale.id == sale_id,
        Sale.tenant_id == tenant_id,
        Sale.is_active == True
    ).first()


def get_sales_by_date_range(db: Session, start_date: date, end_date: date, tenant_id: str) -> List[Sale]:
    return db.query(Sale).filter(
        Sale.tenant_id == tenant_id,
        Sale.is_active == True,
        Sale.sale_date >= start_date,
        Sale.sale_date <= end_date
    ).order_by(Sale.sale_date, Sale.id).all()


def create_sale(db: Session, sale: SaleCreate, tenant_id: str, user_id: str):
    data = sale.model_dump()
    data["vehicle_registration"] = data["vehicle_registration"].strip().upper()
    db_sale = Sale(**data, tenant_id=tenant_id, created_by=user_id)
    db.add(db_sale)
    db.flush()
    logger.info(f"Sale {db_sale.id} recorded for {db_sale.vehicle_registration} on {db_sale.sale_date} (tenant {tenant_id})")
    return crud_daily_reports.record_changed(db, db_sale, _affected_dates(db_sale), tenant_id, user_id)


def update_sale(db: Session, sale_id: int, sale: SaleUpdate, tenant_id: str, user_id: str):
    db_sale = get_sale(db, sale_id, tenant_id)
    if not db_sale:
        return None

    before = _affected_dates(db_sale)
    for key, value in sale.model_dump(exclude_unset=True).items():
        setattr(db_sale, key, value)
    if db_sale.vehicle_registration:
        db_sale.vehicle_registration = db_sale.vehicle_registration.strip().upper()
    db_sale.updated_by = user_id
    db.flush()
    return crud_daily_reports.record_changed(db, db_sale, before + _affected_dates(db_sale), tenant_id, user_id)


def delete_sale(db: Session, sale_id: int, tenant_id: str, user_id: str):
    db_sale = get_sale(db, sale_id, tenant_id)
    if not db_sale:
        return None

    db_sale.is_active = False
    db_sale.updated_by = user_id
    db.flush()
    logger.info(f"Sale {sale_id} deleted for tenant {tenant_id} by {user_id}")
    return crud_daily_reports.record_changed(db, db_sale, _affected_dates(db_sale), tenant_id, user_id)
