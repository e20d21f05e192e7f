from sqlalchemy import Column, Integer, String, Numeric, Date, Text
from database import Base
from models.audit_mixin import AuditMixin


class Banking(Base, AuditMixin):
    """Cash deposited from the quarry till into the bank."""
    __tablename__ = "banking"

    id = Column(Integer, primary_key=True, index=True)
    banking_date = Column(Date, nullable=False, index=True)
    item = Column(String(255), nullable=True)
    amount_banked = Column(Numeric(14, 2), nullable=False)
    txn_reference = Column(String(100), nullable=True)
    ref_code = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    tenant_id = Column(String, index=True, nullable=False)
