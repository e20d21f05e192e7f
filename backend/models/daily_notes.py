from sqlalchemy import Column, Integer, String, Numeric, Date, Text, UniqueConstraint
from database import Base
from models.audit_mixin import AuditMixin


class DailyNote(Base, AuditMixin):
    """One row per tenant per day; closing_balance of day N opens day N+1."""
    __tablename__ = "daily_notes"
    __table_args__ = (UniqueConstraint('tenant_id', 'note_date', name='_tenant_note_date_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    note_date = Column(Date, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    closing_balance = Column(Numeric(14, 2), nullable=False, default=0)
    tenant_id = Column(String, index=True, nullable=False)
