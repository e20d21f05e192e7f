from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, Date, Text
from database import Base
from models.audit_mixin import AuditMixin


class Prepayment(Base, AuditMixin):
    """Customer deposit received ahead of collecting product."""
    __tablename__ = "prepayments"

    id = Column(Integer, primary_key=True, index=True)
    prepayment_date = Column(Date, nullable=False, index=True)
    vehicle_registration = Column(String(30), nullable=False)
    client_name = Column(String(150), nullable=True)
    total_amount_paid = Column(Numeric(14, 2), nullable=False)
    amount_used = Column(Numeric(14, 2), nullable=False, default=0)
    payment_mode = Column(String(30), nullable=True)
    payment_reference = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    tenant_id = Column(String, index=True, nullable=False)

    @property
    def remaining_balance(self) -> Decimal:
        return Decimal(self.total_amount_paid or 0) - Decimal(self.amount_used or 0)
