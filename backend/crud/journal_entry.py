from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from crud import accounting_periods as crud_periods
from exceptions import (
    NotFoundError,
    StateConflictError,
    UnbalancedEntryError,
    ValidationError,
)
from models.journal_entry import EntryType, JournalEntry, SourceType
from models.journal_entry_line import JournalEntryLine
from models.ledger_accounts import LedgerAccount
from schemas.journal_entry import JournalEntryCreate, JournalEntryUpdate
from utils import money
from utils.dates import local_now

logger = logging.getLogger(__name__)

MANUAL_PREFIX = "JV"

# (account, debit, credit, memo)
LineSpec = Tuple[LedgerAccount, Decimal, Decimal, Optional[str]]


def next_reference(db: Session, tenant_id: str, prefix: str, year: int) -> str:
    """Next free `{prefix}-{year}-{seq:05d}` for the tenant.

    Uses the highest existing sequence rather than a count, so deleting an entry
    from the middle of a sequence never makes the next reference collide.
    """
    pattern = f"{prefix}-{year}-"
    references = db.query(JournalEntry.reference).filter(
        JournalEntry.tenant_id == tenant_id,
        JournalEntry.reference.like(f"{pattern}%"),
    ).all()
    highest = 0
    for (reference,) in references:
        suffix = reference[len(pattern):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{pattern}{highest + 1:05d}"


def get_journal_entry(db: Session, entry_id: int, tenant_id: str):
    return db.query(JournalEntry).filter(
        JournalEntry.id == entry_id,
        JournalEntry.tenant_id == tenant_id,
        JournalEntry.is_active == True
    ).first()


def require_journal_entry(db: Session, entry_id: int, tenant_id: str, for_update: bool = False) -> JournalEntry:
    query = db.query(JournalEntry).filter(
        JournalEntry.id == entry_id,
        JournalEntry.tenant_id == tenant_id,
        JournalEntry.is_active == True
    )
    if for_update:
        query = query.with_for_update()
    entry = query.first()
    if entry is None:
        raise NotFoundError(f"Journal entry {entry_id} not found")
    return entry


def get_journal_entries(
    db: Session,
    tenant_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    is_posted: Optional[bool] = None,
    entry_type: Optional[EntryType] = None,
    source_type: Optional[SourceType] = None,
    skip: int = 0,
    limit: int = 100
):
    """
    Retrieves a list of journal entries with optional filtering, newest first.
    """
    query = db.query(JournalEntry).filter(
        JournalEntry.tenant_id == tenant_id,
        JournalEntry.is_active == True
    )

    if start_date:
        query = query.filter(JournalEntry.entry_date >= start_date)
    if end_date:
        query = query.filter(JournalEntry.entry_date <= end_date)
    if is_posted is not None:
        query = query.filter(JournalEntry.is_posted == is_posted)
    if entry_type is not None:
        query = query.filter(JournalEntry.entry_type == entry_type)
    if source_type is not None:
        query = query.filter(JournalEntry.source_entity_type == source_type)

    return query.order_by(JournalEntry.entry_date.desc(), JournalEntry.id.desc()).offset(skip).limit(limit).all()


def _resolve_lines(db: Session, lines, tenant_id: str) -> List[LineSpec]:
    """Turn request lines into (account, debit, credit, memo), checking accounts belong to the tenant."""
    resolved = []
    for line in lines:
        account = db.query(LedgerAccount).filter(
            LedgerAccount.id == line.ledger_account_id,
            LedgerAccount.tenant_id == tenant_id
        ).first()
        if account is None:
            raise NotFoundError(f"Ledger account {line.ledger_account_id} not found")
        if not account.is_active:
            raise ValidationError(f"Ledger account {account.account_code} is inactive")
        resolved.append((account, money(line.debit_amount), money(line.credit_amount), line.memo))
    return resolved


def _build_lines(entry: JournalEntry, lines: Iterable[LineSpec], tenant_id: str):
    for number, (account, debit, credit, memo) in enumerate(lines, start=1):
        entry.lines.append(JournalEntryLine(
            ledger_account_id=account.id,
            debit_amount=debit,
            credit_amount=credit,
            line_number=number,
            memo=memo,
            tenant_id=tenant_id,
        ))


def add_entry(
    db: Session,
    tenant_id: str,
    entry_date: date,
    description: str,
    lines: Iterable[LineSpec],
    prefix: str,
    entry_type: EntryType = EntryType.MANUAL,
    source_type: Optional[SourceType] = None,
    source_id: Optional[int] = None,
    reference: Optional[str] = None,
    user_id: Optional[str] = None,
) -> JournalEntry:
    """Stage a new unposted entry and flush it. The caller commits."""
    crud_periods.assert_date_open(db, entry_date, tenant_id)

    entry = JournalEntry(
        entry_date=entry_date,
        reference=reference or next_reference(db, tenant_id, prefix, entry_date.year),
        description=description,
        entry_type=entry_type,
        source_entity_type=source_type,
        source_entity_id=source_id,
        is_posted=False,
        fiscal_year=entry_date.year,
        fiscal_period=entry_date.month,
        tenant_id=tenant_id,
        created_by=user_id,
    )
    _build_lines(entry, lines, tenant_id)
    db.add(entry)
    db.flush()
    return entry


def create_manual_entry(db: Session, entry: JournalEntryCreate, tenant_id: str, user_id: str):
    """
    Creates an unposted manual journal entry. Balance is enforced at posting time.
    """
    if entry.reference:
        clash = db.query(JournalEntry.id).filter(
            JournalEntry.tenant_id == tenant_id,
            JournalEntry.reference == entry.reference
        ).first()
        if clash:
            raise ValidationError(f"Journal reference {entry.reference} already exists")

    lines = _resolve_lines(db, entry.lines, tenant_id)
    db_entry = add_entry(
        db,
        tenant_id=tenant_id,
        entry_date=entry.entry_date,
        description=entry.description,
        lines=lines,
        prefix=MANUAL_PREFIX,
        reference=entry.reference,
        user_id=user_id,
    )
    db.commit()
    db.refresh(db_entry)
    logger.info(f"Manual journal entry {db_entry.reference} created for tenant {tenant_id} by {user_id}")
    return db_entry


def update_manual_entry(db: Session, entry_id: int, update: JournalEntryUpdate, tenant_id: str, user_id: str):
    db_entry = require_journal_entry(db, entry_id, tenant_id, for_update=True)
    if db_entry.is_posted:
        raise StateConflictError(f"Journal entry {db_entry.reference} is posted; unpost it before editing")
    if db_entry.entry_type != EntryType.MANUAL:
        raise StateConflictError(f"Journal entry {db_entry.reference} is generated from source data and cannot be edited")

    crud_periods.assert_date_open(db, db_entry.entry_date, tenant_id)
    if update.entry_date is not None and update.entry_date != db_entry.entry_date:
        crud_periods.assert_date_open(db, update.entry_date, tenant_id)
        db_entry.entry_date = update.entry_date
        db_entry.fiscal_year = update.entry_date.year
        db_entry.fiscal_period = update.entry_date.month
    if update.description is not None:
        db_entry.description = update.description
    if update.lines is not None:
        lines = _resolve_lines(db, update.lines, tenant_id)
        db_entry.lines.clear()
        db.flush()
        _build_lines(db_entry, lines, tenant_id)

    db_entry.updated_by = user_id
    db.commit()
    db.refresh(db_entry)
    return db_entry


def post_entry(db: Session, entry_id: int, tenant_id: str, user_id: str, commit: bool = True):
    """Validate and post an entry inside one transaction.

    The entry row is locked for the read-check-write so two concurrent posts of the
    same entry cannot both succeed.
    """
    db_entry = require_journal_entry(db, entry_id, tenant_id, for_update=True)
    if db_entry.is_posted:
        raise StateConflictError(f"Journal entry {db_entry.reference} is already posted")

    crud_periods.assert_date_open(db, db_entry.entry_date, tenant_id)

    if not db_entry.lines or db_entry.total_debit == 0:
        raise ValidationError(f"Journal entry {db_entry.reference} has no amounts to post")
    if not db_entry.is_balanced:
        logger.warning(
            f"Rejected posting of unbalanced entry {db_entry.reference}: "
            f"debits {db_entry.total_debit} credits {db_entry.total_credit}"
        )
        raise UnbalancedEntryError(db_entry.total_debit, db_entry.total_credit)

    db_entry.is_posted = True
    db_entry.posted_by = user_id
    db_entry.posted_at = local_now()
    if commit:
        db.commit()
        db.refresh(db_entry)
    else:
        db.flush()
    logger.info(f"Journal entry {db_entry.reference} posted for tenant {tenant_id} by {user_id}")
    return db_entry


def unpost_entry(db: Session, entry_id: int, tenant_id: str, user_id: str, commit: bool = True):
    db_entry = require_journal_entry(db, entry_id, tenant_id, for_update=True)
    if not db_entry.is_posted:
        raise StateConflictError(f"Journal entry {db_entry.reference} is not posted")

    closed = crud_periods.get_closed_period_for_date(db, db_entry.entry_date, tenant_id)
    if closed is not None:
        raise StateConflictError(
            f"Journal entry {db_entry.reference} lies in closed period '{closed.period_name}' and cannot be unposted"
        )

    db_entry.is_posted = False
    db_entry.posted_by = None
    db_entry.posted_at = None
    db_entry.updated_by = user_id
    if commit:
        db.commit()
        db.refresh(db_entry)
    else:
        db.flush()
    logger.info(f"Journal entry {db_entry.reference} unposted for tenant {tenant_id} by {user_id}")
    return db_entry


def delete_entry(db: Session, entry_id: int, tenant_id: str, commit: bool = True):
    db_entry = require_journal_entry(db, entry_id, tenant_id, for_update=True)
    if db_entry.is_posted:
        raise StateConflictError(f"Journal entry {db_entry.reference} is posted; unpost it before deleting")
    crud_periods.assert_date_open(db, db_entry.entry_date, tenant_id)

    reference = db_entry.reference
    db.delete(db_entry)
    if commit:
        db.commit()
    else:
        db.flush()
    logger.info(f"Journal entry {reference} deleted for tenant {tenant_id}")
    return True
