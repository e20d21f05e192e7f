"""Derive balanced journal entries from operational records.

Every source kind has a builder returning zero or more drafts; a draft is turned
into an unposted Auto entry by `crud.journal_entry.add_entry` and then posted
when the tenant's AUTO_POST_GENERATED setting is on. Builders only emit lines in
debit/credit pairs of equal amounts, so generated entries balance by construction.
"""
from collections import namedtuple
from datetime import date
from decimal import Decimal
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from crud import accounting_periods as crud_periods
from crud import app_config as crud_app_config
from crud import journal_entry as crud_journal
from crud import ledger_accounts as coa
from exceptions import NotFoundError, StateConflictError, UnmappedSourceError, ValidationError
from models.banking import Banking
from models.expenses import Expense
from models.fuel_usage import FuelUsage
from models.journal_entry import EntryType, JournalEntry, SourceType
from models.ledger_accounts import LedgerAccount
from models.prepayments import Prepayment
from models.sales import Sale
from schemas.app_config import FeeConfig
from utils import money

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"

# lines: list of (account_code, debit, credit, memo)
Draft = namedtuple("Draft", ["source_type", "source_id", "entry_date", "description", "prefix", "lines"])

REFERENCE_PREFIXES = {
    SourceType.SALE: "SL",
    SourceType.COLLECTION: "CL",
    SourceType.EXPENSE: "EX",
    SourceType.BANKING: "BK",
    SourceType.FUEL_USAGE: "FU",
    SourceType.PREPAYMENT: "PP",
}

SOURCE_MODELS = {
    SourceType.SALE: Sale,
    SourceType.COLLECTION: Sale,
    SourceType.EXPENSE: Expense,
    SourceType.BANKING: Banking,
    SourceType.FUEL_USAGE: FuelUsage,
    SourceType.PREPAYMENT: Prepayment,
}

# Products that are loaded without the loaders crew
NO_LOADERS_FEE_PRODUCTS = ("beam", "hardcore")


def _pair(debit_code: str, credit_code: str, amount: Decimal, debit_memo: str, credit_memo: str):
    return [(debit_code, amount, Decimal("0"), debit_memo), (credit_code, Decimal("0"), amount, credit_memo)]


def is_reject_product(product_name: Optional[str]) -> bool:
    return bool(product_name) and "reject" in product_name.lower()


def loaders_fee_applies(product_name: Optional[str]) -> bool:
    name = (product_name or "").lower()
    return not any(p in name for p in NO_LOADERS_FEE_PRODUCTS)


def sale_fee_amounts(sale: Sale, fees: FeeConfig):
    """Commission, loaders fee and land-rate fee accrued by one sale."""
    quantity = Decimal(sale.quantity)
    commission = money(quantity * Decimal(sale.commission_per_unit or 0))
    loaders = money(quantity * fees.loaders_fee) if loaders_fee_applies(sale.product_name) else Decimal("0")
    land_rate = Decimal("0")
    if sale.include_land_rate:
        rate = fees.rejects_fee if is_reject_product(sale.product_name) else fees.land_rate_fee
        land_rate = money(quantity * rate)
    return commission, loaders, land_rate


def _sale_drafts(sale: Sale, fees: FeeConfig) -> List[Draft]:
    gross = money(sale.gross_sale_amount)
    if gross <= 0:
        return []

    cash_on_sale_day = sale.is_paid and not sale.collected_later
    debit_code = coa.CASH if cash_on_sale_day else coa.TRADE_RECEIVABLES
    revenue_code = coa.get_revenue_account_code(sale.product_name)

    lines = _pair(
        debit_code, revenue_code, gross,
        f"{'Cash' if cash_on_sale_day else 'A/R'} from sale {sale.vehicle_registration}",
        f"Revenue from {sale.product_name}",
    )
    commission, loaders, land_rate = sale_fee_amounts(sale, fees)
    if commission > 0:
        lines += _pair(coa.COMMISSION, coa.TRADE_PAYABLES, commission, "Commission expense", "Commission payable")
    if loaders > 0:
        lines += _pair(coa.LOADERS_FEES, coa.TRADE_PAYABLES, loaders, "Loaders fee expense", "Loaders fee payable")
    if land_rate > 0:
        lines += _pair(coa.LAND_RATE_FEES, coa.TRADE_PAYABLES, land_rate, "Land rate fee expense", "Land rate fee payable")

    description = f"Sale - {sale.vehicle_registration} - {sale.product_name} x {Decimal(sale.quantity):,.0f}"
    return [Draft(SourceType.SALE, sale.id, sale.sale_date, description, REFERENCE_PREFIXES[SourceType.SALE], lines)]


def _collection_drafts(sale: Sale, fees: FeeConfig) -> List[Draft]:
    if not sale.collected_later:
        return []
    gross = money(sale.gross_sale_amount)
    if gross <= 0:
        return []
    lines = _pair(coa.CASH, coa.TRADE_RECEIVABLES, gross, f"Collection from {sale.vehicle_registration}", "Reduce A/R")
    return [Draft(
        SourceType.COLLECTION, sale.id, sale.payment_received_date,
        f"Collection - {sale.vehicle_registration}", REFERENCE_PREFIXES[SourceType.COLLECTION], lines,
    )]


def _expense_drafts(expense: Expense, fees: FeeConfig) -> List[Draft]:
    amount = money(expense.amount)
    if amount <= 0:
        return []
    code = coa.get_expense_account_code(expense.category)
    lines = _pair(code, coa.CASH, amount, expense.item, f"Paid: {expense.item}")
    return [Draft(
        SourceType.EXPENSE, expense.id, expense.expense_date,
        f"Expense - {expense.category or 'Other'} - {expense.item}", REFERENCE_PREFIXES[SourceType.EXPENSE], lines,
    )]


def _banking_drafts(banking: Banking, fees: FeeConfig) -> List[Draft]:
    amount = money(banking.amount_banked)
    if amount <= 0:
        return []
    lines = _pair(coa.BANK, coa.CASH, amount, "Deposit to bank", "Cash banked")
    return [Draft(
        SourceType.BANKING, banking.id, banking.banking_date,
        f"Banking - {banking.item or banking.txn_reference or 'Deposit'}", REFERENCE_PREFIXES[SourceType.BANKING], lines,
    )]


def _fuel_usage_drafts(fuel: FuelUsage, fees: FeeConfig) -> List[Draft]:
    cost = money(fuel.cost)
    if cost <= 0:
        return []
    lines = _pair(coa.FUEL, coa.INVENTORIES, cost, f"Fuel used {fuel.used} L", "Fuel stock consumed")
    return [Draft(
        SourceType.FUEL_USAGE, fuel.id, fuel.usage_date,
        f"Fuel usage - {fuel.used} L", REFERENCE_PREFIXES[SourceType.FUEL_USAGE], lines,
    )]


def _prepayment_drafts(prepayment: Prepayment, fees: FeeConfig) -> List[Draft]:
    amount = money(prepayment.total_amount_paid)
    if amount <= 0:
        return []
    lines = _pair(
        coa.CASH, coa.CUSTOMER_DEPOSITS, amount,
        f"Deposit from {prepayment.vehicle_registration}", "Customer deposit held",
    )
    return [Draft(
        SourceType.PREPAYMENT, prepayment.id, prepayment.prepayment_date,
        f"Prepayment - {prepayment.vehicle_registration}", REFERENCE_PREFIXES[SourceType.PREPAYMENT], lines,
    )]


DRAFT_BUILDERS = {
    SourceType.SALE: _sale_drafts,
    SourceType.COLLECTION: _collection_drafts,
    SourceType.EXPENSE: _expense_drafts,
    SourceType.BANKING: _banking_drafts,
    SourceType.FUEL_USAGE: _fuel_usage_drafts,
    SourceType.PREPAYMENT: _prepayment_drafts,
}

# Sources derived from each operational table
SOURCE_TYPES_FOR_MODEL = {
    Sale: (SourceType.SALE, SourceType.COLLECTION),
    Expense: (SourceType.EXPENSE,),
    Banking: (SourceType.BANKING,),
    FuelUsage: (SourceType.FUEL_USAGE,),
    Prepayment: (SourceType.PREPAYMENT,),
}


def load_source(db: Session, source_type: SourceType, source_id: int, tenant_id: str):
    model = SOURCE_MODELS[source_type]
    return db.query(model).filter(
        model.id == source_id,
        model.tenant_id == tenant_id,
        model.is_active == True
    ).first()


def build_drafts(db: Session, source_type: SourceType, record, tenant_id: str) -> List[Draft]:
    fees = crud_app_config.get_fee_config(db, tenant_id)
    return DRAFT_BUILDERS[source_type](record, fees)


def _resolve_accounts(db: Session, draft: Draft, tenant_id: str):
    resolved, cache = [], {}
    for code, debit, credit, memo in draft.lines:
        if code not in cache:
            account = db.query(LedgerAccount).filter(
                LedgerAccount.account_code == code,
                LedgerAccount.tenant_id == tenant_id,
                LedgerAccount.is_active == True
            ).first()
            if account is None:
                raise UnmappedSourceError(
                    f"{draft.source_type.value} {draft.source_id} needs ledger account {code}, "
                    f"which is missing or inactive for this tenant"
                )
            cache[code] = account
        resolved.append((cache[code], debit, credit, memo))
    return resolved


def _stage_draft(db: Session, draft: Draft, tenant_id: str, auto_post: bool, user_id: str) -> JournalEntry:
    entry = crud_journal.add_entry(
        db,
        tenant_id=tenant_id,
        entry_date=draft.entry_date,
        description=draft.description,
        lines=_resolve_accounts(db, draft, tenant_id),
        prefix=draft.prefix,
        entry_type=EntryType.AUTO,
        source_type=draft.source_type,
        source_id=draft.source_id,
        user_id=user_id,
    )
    if auto_post:
        crud_journal.post_entry(db, entry.id, tenant_id, SYSTEM_ACTOR, commit=False)
    return entry


def get_source_entries(db: Session, source_type: SourceType, source_id: int, tenant_id: str) -> List[JournalEntry]:
    return db.query(JournalEntry).filter(
        JournalEntry.tenant_id == tenant_id,
        JournalEntry.is_active == True,
        JournalEntry.entry_type == EntryType.AUTO,
        JournalEntry.source_entity_type == source_type,
        JournalEntry.source_entity_id == source_id,
    ).order_by(JournalEntry.id).all()


def _clear_source_entries(db: Session, source_type: SourceType, source_id: int, tenant_id: str, replace_posted: bool, user_id: str):
    existing = get_source_entries(db, source_type, source_id, tenant_id)
    posted = [e for e in existing if e.is_posted]
    if posted and not replace_posted:
        raise StateConflictError(
            f"{source_type.value} {source_id} already has posted entries "
            f"({', '.join(e.reference for e in posted)}); unpost them first"
        )
    for entry in existing:
        if entry.is_posted:
            crud_periods.assert_date_open(db, entry.entry_date, tenant_id)
            logger.info(f"Unposting {entry.reference} to resynchronise {source_type.value} {source_id}")
            crud_journal.unpost_entry(db, entry.id, tenant_id, user_id, commit=False)
        crud_journal.delete_entry(db, entry.id, tenant_id, commit=False)
    return len(existing)


def generate_from_source(
    db: Session,
    source_type: SourceType,
    source_id: int,
    tenant_id: str,
    user_id: str = SYSTEM_ACTOR,
    replace_posted: bool = False,
    commit: bool = True,
) -> List[JournalEntry]:
    """(Re)build the auto entries of one operational record.

    Existing unposted auto entries for the source are replaced. Posted ones make
    this fail with StateConflictError unless `replace_posted` is set, which is how
    operational record edits keep the ledger in step with their source.
    """
    record = load_source(db, source_type, source_id, tenant_id)
    if record is None and not replace_posted:
        raise NotFoundError(f"{source_type.value} {source_id} not found")

    _clear_source_entries(db, source_type, source_id, tenant_id, replace_posted, user_id)

    entries = []
    if record is not None:
        auto_post = crud_app_config.get_accounting_config(db, tenant_id)["auto_post_generated"]
        for draft in build_drafts(db, source_type, record, tenant_id):
            entries.append(_stage_draft(db, draft, tenant_id, auto_post, user_id))

    if commit:
        db.commit()
        for entry in entries:
            db.refresh(entry)
    logger.info(f"Generated {len(entries)} journal entries for {source_type.value} {source_id} (tenant {tenant_id})")
    return entries


def sync_record_entries(db: Session, record, tenant_id: str, user_id: str = SYSTEM_ACTOR):
    """Bring the ledger in line with a created, edited or deleted operational record.

    Does not commit; the caller owns the transaction.
    """
    entries = []
    for source_type in SOURCE_TYPES_FOR_MODEL[type(record)]:
        entries += generate_from_source(
            db, source_type, record.id, tenant_id, user_id=user_id, replace_posted=True, commit=False
        )
    return entries


def _sources_in_range(db: Session, tenant_id: str, start_date: date, end_date: date):
    """Every (date, source_type, id) whose auto entry would be dated inside the range."""
    sources = []

    def active(model, date_column):
        return db.query(model).filter(
            model.tenant_id == tenant_id,
            model.is_active == True,
            date_column >= start_date,
            date_column <= end_date,
        ).all()

    for sale in active(Sale, Sale.sale_date):
        sources.append((sale.sale_date, SourceType.SALE, sale.id, sale))
    for sale in active(Sale, Sale.payment_received_date):
        if sale.collected_later:
            sources.append((sale.payment_received_date, SourceType.COLLECTION, sale.id, sale))
    for expense in active(Expense, Expense.expense_date):
        sources.append((expense.expense_date, SourceType.EXPENSE, expense.id, expense))
    for banking in active(Banking, Banking.banking_date):
        sources.append((banking.banking_date, SourceType.BANKING, banking.id, banking))
    for fuel in active(FuelUsage, FuelUsage.usage_date):
        sources.append((fuel.usage_date, SourceType.FUEL_USAGE, fuel.id, fuel))
    for prepayment in active(Prepayment, Prepayment.prepayment_date):
        sources.append((prepayment.prepayment_date, SourceType.PREPAYMENT, prepayment.id, prepayment))

    type_order = list(DRAFT_BUILDERS)
    sources.sort(key=lambda s: (s[0], type_order.index(s[1]), s[2]))
    return sources


def regenerate_auto_entries(db: Session, tenant_id: str, start_date: date, end_date: date, user_id: str = SYSTEM_ACTOR):
    """Rebuild unposted auto entries for a date range from current source data.

    Posted entries are never touched, and sources that already have a posted entry
    are skipped. Dates inside closed periods are left alone. Sources are processed
    in a fixed order so two runs over unchanged data produce the same entries,
    references included.
    """
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")

    stale = db.query(JournalEntry).filter(
        JournalEntry.tenant_id == tenant_id,
        JournalEntry.is_active == True,
        JournalEntry.entry_type == EntryType.AUTO,
        JournalEntry.is_posted == False,
        JournalEntry.entry_date >= start_date,
        JournalEntry.entry_date <= end_date,
    ).all()

    deleted = skipped_closed = 0
    for entry in stale:
        if not crud_periods.is_date_open(db, entry.entry_date, tenant_id):
            skipped_closed += 1
            continue
        db.delete(entry)
        deleted += 1
    db.flush()

    posted_sources = {
        (source_type, source_id)
        for source_type, source_id in db.query(JournalEntry.source_entity_type, JournalEntry.source_entity_id).filter(
            JournalEntry.tenant_id == tenant_id,
            JournalEntry.is_active == True,
            JournalEntry.entry_type == EntryType.AUTO,
            JournalEntry.is_posted == True,
        )
    }
    unposted_sources = {
        (source_type, source_id)
        for source_type, source_id in db.query(JournalEntry.source_entity_type, JournalEntry.source_entity_id).filter(
            JournalEntry.tenant_id == tenant_id,
            JournalEntry.is_active == True,
            JournalEntry.entry_type == EntryType.AUTO,
            JournalEntry.is_posted == False,
        )
    }

    auto_post = crud_app_config.get_accounting_config(db, tenant_id)["auto_post_generated"]
    fees = crud_app_config.get_fee_config(db, tenant_id)
    created = skipped_posted = 0
    try:
        for entry_date, source_type, source_id, record in _sources_in_range(db, tenant_id, start_date, end_date):
            if (source_type, source_id) in posted_sources:
                skipped_posted += 1
                continue
            if (source_type, source_id) in unposted_sources or not crud_periods.is_date_open(db, entry_date, tenant_id):
                skipped_closed += 1
                continue
            for draft in DRAFT_BUILDERS[source_type](record, fees):
                _stage_draft(db, draft, tenant_id, auto_post, user_id)
                created += 1
        db.commit()
    except Exception:
        db.rollback()
        logger.exception(f"Journal regeneration failed for tenant {tenant_id} ({start_date} to {end_date})")
        raise

    logger.info(
        f"Regenerated journal entries for tenant {tenant_id} from {start_date} to {end_date}: "
        f"deleted {deleted}, created {created}, skipped posted {skipped_posted}, skipped closed {skipped_closed}"
    )
    return {"deleted": deleted, "created": created, "skipped_posted": skipped_posted, "skipped_closed": skipped_closed}
