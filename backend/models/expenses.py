from sqlalchemy import Column, Integer, String, Numeric, Date, Text
from database import Base
from models.audit_mixin import AuditMixin


class Expense(Base, AuditMixin):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    expense_date = Column(Date, nullable=False, index=True)
    item = Column(String(255), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    category = Column(String(100), nullable=True)
    txn_reference = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    tenant_id = Column(String, index=True, nullable=False)
