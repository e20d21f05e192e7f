from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base


class JournalEntryLine(Base):
    __tablename__ = "journal_entry_lines"
    __table_args__ = (
        CheckConstraint('debit_amount >= 0', name='check_line_debit_non_negative'),
        CheckConstraint('credit_amount >= 0', name='check_line_credit_non_negative'),
        CheckConstraint(
            '(debit_amount > 0 AND credit_amount = 0) OR (debit_amount = 0 AND credit_amount > 0)',
            name='check_line_single_side'
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id", ondelete="CASCADE"), nullable=False, index=True)
    ledger_account_id = Column(Integer, ForeignKey("ledger_accounts.id"), nullable=False, index=True)
    debit_amount = Column(Numeric(14, 2), nullable=False, default=0)
    credit_amount = Column(Numeric(14, 2), nullable=False, default=0)
    line_number = Column(Integer, nullable=False)
    memo = Column(String(255), nullable=True)
    tenant_id = Column(String, index=True, nullable=False)

    journal_entry = relationship("JournalEntry", back_populates="lines")
    ledger_account = relationship("LedgerAccount", back_populates="lines")
