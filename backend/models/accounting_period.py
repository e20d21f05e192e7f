from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Text, Enum, UniqueConstraint
from database import Base
import enum
from models.audit_mixin import TimestampMixin


class PeriodType(enum.Enum):
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    ANNUAL = "Annual"


class AccountingPeriod(Base, TimestampMixin):
    __tablename__ = "accounting_periods"
    __table_args__ = (
        UniqueConstraint('tenant_id', 'fiscal_year', 'period_number', name='_tenant_fiscal_period_uc'),
    )

    id = Column(Integer, primary_key=True, index=True)
    period_name = Column(String(50), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    fiscal_year = Column(Integer, nullable=False)
    period_number = Column(Integer, nullable=False)
    period_type = Column(Enum(PeriodType), nullable=False, default=PeriodType.MONTHLY)
    is_closed = Column(Boolean, nullable=False, default=False)
    closed_by = Column(String, nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    closing_notes = Column(Text, nullable=True)
    tenant_id = Column(String, index=True, nullable=False)

    def contains(self, day) -> bool:
        return self.start_date <= day <= self.end_date
