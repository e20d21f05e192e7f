from typing import List
import logging

from sqlalchemy.orm import Session

from crud import daily_reports as crud_daily_reports
from models.prepayments import Prepayment
from schemas.prepayments import PrepaymentCreate, PrepaymentUpdate

logger = logging.getLogger(__name__)


def get_prepayment(db: Session, prepayment_id: int, tenant_id: str):
    return db.query(Prepayment).filter(
        Prepayment.id == prepayment_id,
        Prepayment.tenant_id == tenant_id,
        Prepayment.is_active == True
    ).first()


def get_prepayments_for_vehicle(db: Session, vehicle_registration: str, tenant_id: str) -> List[Prepayment]:
    return db.query(Prepayment).filter(
        Prepayment.tenant_id == tenant_id,
        Prepayment.is_active == True,
        Prepayment.vehicle_registration == vehicle_registration.strip().upper()
    ).order_by(Prepayment.prepayment_date, Prepayment.id).all()


def create_prepayment(db: Session, prepayment: PrepaymentCreate, tenant_id: str, user_id: str):
    data = prepayment.model_dump()
    data["vehicle_registration"] = data["vehicle_registration"].strip().upper()
    db_prepayment = Prepayment(**data, tenant_id=tenant_id, created_by=user_id)
    db.add(db_prepayment)
    db.flush()
    logger.info(f"Prepayment {db_prepayment.id} of {db_prepayment.total_amount_paid} from {db_prepayment.vehicle_registration} (tenant {tenant_id})")
    return crud_daily_reports.record_changed(db, db_prepayment, [db_prepayment.prepayment_date], tenant_id, user_id)


def update_prepayment(db: Session, prepayment_id: int, prepayment: PrepaymentUpdate, tenant_id: str, user_id: str):
    db_prepayment = get_prepayment(db, prepayment_id, tenant_id)
    if not db_prepayment:
        return None

    previous_date = db_prepayment.prepayment_date
    for key, value in prepayment.model_dump(exclude_unset=True).items():
        setattr(db_prepayment, key, value)
    db_prepayment.updated_by = user_id
    db.flush()
    return crud_daily_reports.record_changed(
        db, db_prepayment, [previous_date, db_prepayment.prepayment_date], tenant_id, user_id
    )


def delete_prepayment(db: Session, prepayment_id: int, tenant_id: str, user_id: str):
    db_prepayment = get_prepayment(db, prepayment_id, tenant_id)
    if not db_prepayment:
        return None

    db_prepayment.is_active = False
    db_prepayment.updated_by = user_id
    db.flush()
    logger.info(f"Prepayment {prepayment_id} deleted for tenant {tenant_id} by {user_id}")
    return crud_daily_reports.record_changed(db, db_prepayment, [db_prepayment.prepayment_date], tenant_id, user_id)
