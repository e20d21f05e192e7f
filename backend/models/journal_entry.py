from decimal import Decimal
from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Enum, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import AuditMixin

BALANCE_TOLERANCE = Decimal("0.01")


class EntryType(enum.Enum):
    AUTO = "Auto"
    MANUAL = "Manual"


class SourceType(enum.Enum):
    """Operational record kinds an auto entry can be traced back to."""
    SALE = "Sale"
    COLLECTION = "Collection"
    EXPENSE = "Expense"
    BANKING = "Banking"
    FUEL_USAGE = "FuelUsage"
    PREPAYMENT = "Prepayment"


class JournalEntry(Base, AuditMixin):
    __tablename__ = "journal_entries"
    __table_args__ = (
        UniqueConstraint('tenant_id', 'reference', name='_tenant_journal_reference_uc'),
        Index('ix_journal_entries_source', 'tenant_id', 'source_entity_type', 'source_entity_id'),
    )

    id = Column(Integer, primary_key=True, index=True)
    entry_date = Column(Date, nullable=False, index=True)
    reference = Column(String(50), nullable=False)
    description = Column(String(500), nullable=False)
    entry_type = Column(Enum(EntryType), nullable=False, default=EntryType.MANUAL)
    source_entity_type = Column(Enum(SourceType), nullable=True)
    source_entity_id = Column(Integer, nullable=True)
    is_posted = Column(Boolean, nullable=False, default=False)
    posted_by = Column(String, nullable=True)
    posted_at = Column(DateTime(timezone=True), nullable=True)
    fiscal_year = Column(Integer, nullable=False)
    fiscal_period = Column(Integer, nullable=False)
    tenant_id = Column(String, index=True, nullable=False)

    lines = relationship(
        "JournalEntryLine",
        back_populates="journal_entry",
        cascade="all, delete-orphan",
        order_by="JournalEntryLine.line_number",
    )

    @property
    def total_debit(self) -> Decimal:
        return sum((Decimal(line.debit_amount or 0) for line in self.lines), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((Decimal(line.credit_amount or 0) for line in self.lines), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return abs(self.total_debit - self.total_credit) < BALANCE_TOLERANCE
