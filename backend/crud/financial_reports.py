from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Optional, Tuple
import logging

from sqlalchemy import func, or_, and_
from sqlalchemy.orm import Session, joinedload

from crud import app_config as crud_app_config
from crud import ledger_accounts as coa
from crud.journal_generation import is_reject_product, loaders_fee_applies, sale_fee_amounts
from exceptions import ReportIntegrityError, ValidationError
from models.brokers import Broker
from models.journal_entry import JournalEntry, SourceType
from models.journal_entry_line import JournalEntryLine
from models.ledger_accounts import AccountCategory, LedgerAccount
from models.sales import PaymentStatus, Sale
from schemas.financial_reports import (
    APAccruedFee,
    APBrokerPayable,
    APSummaryReport,
    ARAgingCustomer,
    ARAgingInvoice,
    ARAgingReport,
    BalanceSheetLineItem,
    BalanceSheetReport,
    CashFlowLineItem,
    CashFlowReport,
    GeneralLedgerAccount,
    GeneralLedgerLine,
    GeneralLedgerReport,
    ProfitLossLineItem,
    ProfitLossReport,
    TrialBalanceLine,
    TrialBalanceReport,
    TOLERANCE,
)
from utils import money, to_decimal
from utils.dates import month_bounds, one_year_earlier, previous_range

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Account code boundaries between current and non-current items
NON_CURRENT_ASSET_FROM = 1500
NON_CURRENT_LIABILITY_FROM = 2300


def _code_number(account: LedgerAccount) -> int:
    return int(account.account_code) if account.account_code.isdigit() else 0


def _check_range(start_date: date, end_date: date):
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")


def _account_totals(
    db: Session,
    tenant_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Dict[int, Tuple[Decimal, Decimal]]:
    """Sum posted debit and credit amounts per account over an optional date window."""
    query = db.query(
        JournalEntryLine.ledger_account_id,
        func.coalesce(func.sum(JournalEntryLine.debit_amount), 0),
        func.coalesce(func.sum(JournalEntryLine.credit_amount), 0),
    ).join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id).filter(
        JournalEntry.tenant_id == tenant_id,
        JournalEntry.is_posted == True,
        JournalEntry.is_active == True,
    )
    if start_date is not None:
        query = query.filter(JournalEntry.entry_date >= start_date)
    if end_date is not None:
        query = query.filter(JournalEntry.entry_date <= end_date)

    rows = query.group_by(JournalEntryLine.ledger_account_id).all()
    return {account_id: (to_decimal(debits), to_decimal(credits)) for account_id, debits, credits in rows}


def _normal_balance(account: LedgerAccount, totals) -> Decimal:
    debits, credits = totals.get(account.id, (ZERO, ZERO))
    return debits - credits if account.is_debit_normal else credits - debits


def _all_accounts(db: Session, tenant_id: str):
    # Inactive accounts still carry history, so they are included in every report
    return db.query(LedgerAccount).filter(LedgerAccount.tenant_id == tenant_id).order_by(LedgerAccount.account_code).all()


def _integrity_fault(report: str, message: str, expected: Decimal, actual: Decimal, tenant_id: str):
    logger.error(f"{report} integrity fault for tenant {tenant_id}: {message} (expected {expected}, actual {actual})")
    raise ReportIntegrityError(report, message, expected=expected, actual=actual)


# ---------------------------------------------------------------------------
# Trial balance
# ---------------------------------------------------------------------------

def _trial_balance_columns(account: LedgerAccount, balance: Decimal):
    """Place a signed normal-side balance into exactly one of the debit/credit columns."""
    if account.is_debit_normal:
        return (balance, ZERO) if balance >= 0 else (ZERO, -balance)
    return (ZERO, balance) if balance >= 0 else (-balance, ZERO)


def get_trial_balance(
    db: Session,
    as_of_date: date,
    tenant_id: str,
    comparative_as_of_date: Optional[date] = None,
) -> TrialBalanceReport:
    totals = _account_totals(db, tenant_id, end_date=as_of_date)
    prior_totals = (
        _account_totals(db, tenant_id, end_date=comparative_as_of_date)
        if comparative_as_of_date else None
    )

    lines = []
    for account in _all_accounts(db, tenant_id):
        balance = _normal_balance(account, totals)
        prior_balance = _normal_balance(account, prior_totals) if prior_totals is not None else None
        if abs(balance) < TOLERANCE and (prior_balance is None or abs(prior_balance) < TOLERANCE):
            continue

        debit, credit = _trial_balance_columns(account, balance)
        line = TrialBalanceLine(
            account_id=account.id,
            account_code=account.account_code,
            account_name=account.account_name,
            category=account.category.value,
            debit_balance=debit,
            credit_balance=credit,
        )
        if prior_balance is not None:
            line.prior_debit_balance, line.prior_credit_balance = _trial_balance_columns(account, prior_balance)
        lines.append(line)

    report = TrialBalanceReport(
        as_of_date=as_of_date,
        comparative_as_of_date=comparative_as_of_date,
        lines=lines,
    )
    if not report.is_balanced:
        _integrity_fault(
            "trial_balance", "Total debits do not equal total credits",
            report.total_debits, report.total_credits, tenant_id,
        )
    return report


# ---------------------------------------------------------------------------
# Profit & loss
# ---------------------------------------------------------------------------

def _pl_amount(account: LedgerAccount, totals) -> Decimal:
    debits, credits = totals.get(account.id, (ZERO, ZERO))
    if account.category == AccountCategory.REVENUE:
        return credits - debits
    return debits - credits


def _profit_for_range(db: Session, tenant_id: str, start_date: Optional[date], end_date: date) -> Decimal:
    totals = _account_totals(db, tenant_id, start_date=start_date, end_date=end_date)
    profit = ZERO
    for account in _all_accounts(db, tenant_id):
        if account.category == AccountCategory.REVENUE:
            profit += _pl_amount(account, totals)
        elif account.category in (AccountCategory.COST_OF_SALES, AccountCategory.EXPENSES):
            profit -= _pl_amount(account, totals)
    return profit


def get_profit_and_loss(
    db: Session,
    start_date: date,
    end_date: date,
    tenant_id: str,
    comparative: bool = False,
    comparative_start_date: Optional[date] = None,
    comparative_end_date: Optional[date] = None,
) -> ProfitLossReport:
    _check_range(start_date, end_date)
    if comparative and (comparative_start_date is None or comparative_end_date is None):
        comparative_start_date, comparative_end_date = previous_range(start_date, end_date)
    comparative = comparative or comparative_start_date is not None

    totals = _account_totals(db, tenant_id, start_date=start_date, end_date=end_date)
    prior_totals = None
    if comparative:
        _check_range(comparative_start_date, comparative_end_date)
        prior_totals = _account_totals(db, tenant_id, start_date=comparative_start_date, end_date=comparative_end_date)

    sections = {
        AccountCategory.REVENUE: [],
        AccountCategory.COST_OF_SALES: [],
        AccountCategory.EXPENSES: [],
    }
    for account in _all_accounts(db, tenant_id):
        if account.category not in sections:
            continue
        amount = _pl_amount(account, totals)
        prior_amount = _pl_amount(account, prior_totals) if prior_totals is not None else None
        if amount == 0 and not prior_amount:
            continue
        sections[account.category].append(ProfitLossLineItem(
            account_code=account.account_code,
            account_name=account.account_name,
            amount=amount,
            prior_amount=prior_amount,
        ))

    total_revenue = sum((item.amount for item in sections[AccountCategory.REVENUE]), ZERO)
    for items in sections.values():
        for item in items:
            item.percentage_of_revenue = (
                (item.amount / total_revenue * 100).quantize(TOLERANCE) if total_revenue != 0 else ZERO
            )

    return ProfitLossReport(
        from_date=start_date,
        to_date=end_date,
        comparative_from_date=comparative_start_date if comparative else None,
        comparative_to_date=comparative_end_date if comparative else None,
        revenue_items=sections[AccountCategory.REVENUE],
        cost_of_sales_items=sections[AccountCategory.COST_OF_SALES],
        operating_expense_items=sections[AccountCategory.EXPENSES],
    )


# ---------------------------------------------------------------------------
# Balance sheet
# ---------------------------------------------------------------------------

def _balance_sheet_snapshot(db: Session, tenant_id: str, as_of_date: date):
    """Return ({code: (section, account, amount)}, current-year profit) as of a date.

    Asset amounts are debit-minus-credit so contra assets reduce the total;
    liability and equity amounts are credit-minus-debit. Profit of earlier years
    that was never closed into equity is added to Retained Earnings.
    """
    totals = _account_totals(db, tenant_id, end_date=as_of_date)
    year_start = date(as_of_date.year, 1, 1)
    current_profit = _profit_for_range(db, tenant_id, year_start, as_of_date)
    earlier_profit = _profit_for_range(db, tenant_id, None, year_start - timedelta(days=1))

    snapshot = OrderedDict()
    for account in _all_accounts(db, tenant_id):
        debits, credits = totals.get(account.id, (ZERO, ZERO))
        if account.category == AccountCategory.ASSETS:
            section = "non_current_assets" if _code_number(account) >= NON_CURRENT_ASSET_FROM else "current_assets"
            amount = debits - credits
        elif account.category == AccountCategory.LIABILITIES:
            section = (
                "non_current_liabilities" if _code_number(account) >= NON_CURRENT_LIABILITY_FROM
                else "current_liabilities"
            )
            amount = credits - debits
        elif account.category == AccountCategory.EQUITY:
            section = "equity_items"
            amount = credits - debits
        else:
            continue
        if account.account_code == coa.RETAINED_EARNINGS:
            amount += earlier_profit
            earlier_profit = ZERO
        snapshot[account.account_code] = (section, account.account_name, amount)

    if earlier_profit != 0:
        snapshot[coa.RETAINED_EARNINGS] = ("equity_items", "Retained Earnings", earlier_profit)
    return snapshot, current_profit


def get_balance_sheet(
    db: Session,
    as_of_date: date,
    tenant_id: str,
    comparative_as_of_date: Optional[date] = None,
    comparative: bool = False,
) -> BalanceSheetReport:
    if comparative and comparative_as_of_date is None:
        comparative_as_of_date = one_year_earlier(as_of_date)

    snapshot, current_profit = _balance_sheet_snapshot(db, tenant_id, as_of_date)
    prior_snapshot, prior_profit = ({}, None)
    if comparative_as_of_date is not None:
        prior_snapshot, prior_profit = _balance_sheet_snapshot(db, tenant_id, comparative_as_of_date)

    sections = {
        "current_assets": [],
        "non_current_assets": [],
        "current_liabilities": [],
        "non_current_liabilities": [],
        "equity_items": [],
    }
    for code in sorted(set(snapshot) | set(prior_snapshot)):
        section, name, amount = snapshot.get(code) or (prior_snapshot[code][0], prior_snapshot[code][1], ZERO)
        prior_amount = prior_snapshot[code][2] if code in prior_snapshot else (ZERO if comparative_as_of_date else None)
        if abs(amount) < TOLERANCE and (prior_amount is None or abs(prior_amount) < TOLERANCE):
            continue
        sections[section].append(BalanceSheetLineItem(
            account_code=code,
            account_name=name,
            amount=amount,
            prior_amount=prior_amount,
        ))

    report = BalanceSheetReport(
        as_of_date=as_of_date,
        comparative_as_of_date=comparative_as_of_date,
        current_period_profit=current_profit,
        prior_current_period_profit=prior_profit,
        **sections,
    )
    if not report.is_balanced:
        _integrity_fault(
            "balance_sheet", "Total assets do not equal total liabilities plus equity",
            report.total_assets, report.total_liabilities_and_equity, tenant_id,
        )
    return report


# ---------------------------------------------------------------------------
# Cash flow
# ---------------------------------------------------------------------------

OPERATING_INFLOW_LABELS = {
    SourceType.SALE: "Cash sales",
    SourceType.COLLECTION: "Collections from customers",
    SourceType.PREPAYMENT: "Customer prepayments",
}


def _cash_accounts(db: Session, tenant_id: str):
    return db.query(LedgerAccount).filter(
        LedgerAccount.tenant_id == tenant_id,
        LedgerAccount.account_code.in_(coa.CASH_ACCOUNT_CODES),
    ).all()


def _cash_balance(db: Session, tenant_id: str, cash_accounts, as_of_date: date) -> Decimal:
    totals = _account_totals(db, tenant_id, end_date=as_of_date)
    return sum((_normal_balance(account, totals) for account in cash_accounts), ZERO)


def _add(bucket: dict, key, amount: Decimal, category: Optional[str] = None):
    current = bucket.get(key, (ZERO, category))
    bucket[key] = (current[0] + amount, category)


def _flow_section(counterparts) -> str:
    """Classify a non-source cash movement by the accounts on the other side."""
    for account in counterparts:
        if account.category == AccountCategory.ASSETS and _code_number(account) >= NON_CURRENT_ASSET_FROM:
            return "investing"
    for account in counterparts:
        if account.category == AccountCategory.EQUITY:
            return "financing"
        if account.category == AccountCategory.LIABILITIES and _code_number(account) >= NON_CURRENT_LIABILITY_FROM:
            return "financing"
    return "operating"


def get_cash_flow(db: Session, start_date: date, end_date: date, tenant_id: str) -> CashFlowReport:
    """Direct-method cash flow over Cash (1000) and Bank (1010).

    Movements between the two are transfers inside cash equivalents; they are
    reported as `cash_banked` and do not change the net.
    """
    _check_range(start_date, end_date)
    cash_accounts = _cash_accounts(db, tenant_id)
    cash_ids = {account.id for account in cash_accounts}
    cash_code = {account.id: account.account_code for account in cash_accounts}

    opening = _cash_balance(db, tenant_id, cash_accounts, start_date - timedelta(days=1))

    entries = db.query(JournalEntry).options(
        joinedload(JournalEntry.lines).joinedload(JournalEntryLine.ledger_account)
    ).filter(
        JournalEntry.tenant_id == tenant_id,
        JournalEntry.is_posted == True,
        JournalEntry.is_active == True,
        JournalEntry.entry_date >= start_date,
        JournalEntry.entry_date <= end_date,
    ).order_by(JournalEntry.entry_date, JournalEntry.id).all()

    inflows, outflows, investing, financing = OrderedDict(), OrderedDict(), OrderedDict(), OrderedDict()
    cash_banked = ZERO
    for entry in entries:
        cash_lines = [line for line in entry.lines if line.ledger_account_id in cash_ids]
        if not cash_lines:
            continue
        delta = sum((to_decimal(l.debit_amount) - to_decimal(l.credit_amount) for l in cash_lines), ZERO)
        if entry.source_entity_type == SourceType.BANKING:
            cash_banked += sum(
                (to_decimal(l.credit_amount) for l in cash_lines if cash_code[l.ledger_account_id] == coa.CASH), ZERO
            )
        if delta == 0:
            continue

        counterparts = [line.ledger_account for line in entry.lines if line.ledger_account_id not in cash_ids]
        if entry.source_entity_type in OPERATING_INFLOW_LABELS and delta > 0:
            _add(inflows, OPERATING_INFLOW_LABELS[entry.source_entity_type], delta)
            continue
        if entry.source_entity_type == SourceType.EXPENSE:
            category = counterparts[0].account_name if counterparts else "Other Expenses"
            _add(outflows, f"Expenses - {category}", -delta, category)
            continue

        section = _flow_section(counterparts)
        label = counterparts[0].account_name if counterparts else entry.description
        if section == "investing":
            _add(investing, label, delta)
        elif section == "financing":
            _add(financing, label, delta)
        elif delta > 0:
            _add(inflows, f"Other receipts - {label}", delta)
        else:
            _add(outflows, f"Other payments - {label}", -delta, label)

    def items(bucket):
        return [CashFlowLineItem(description=key, amount=value, category=category) for key, (value, category) in bucket.items()]

    report = CashFlowReport(
        from_date=start_date,
        to_date=end_date,
        opening_cash=opening,
        operating_inflows=items(inflows),
        operating_outflows=items(outflows),
        investing_items=items(investing),
        financing_items=items(financing),
        cash_banked=cash_banked,
        ledger_closing_cash=_cash_balance(db, tenant_id, cash_accounts, end_date),
    )
    if not report.is_reconciled:
        _integrity_fault(
            "cash_flow", "Opening cash plus net change does not match the ledger cash balance",
            report.ledger_closing_cash, report.closing_cash, tenant_id,
        )
    return report


# ---------------------------------------------------------------------------
# Receivables aging
# ---------------------------------------------------------------------------

def aging_bucket(days_outstanding: int) -> str:
    if days_outstanding <= 0:
        return "Current"
    if days_outstanding <= 30:
        return "1-30 Days"
    if days_outstanding <= 60:
        return "31-60 Days"
    if days_outstanding <= 90:
        return "61-90 Days"
    return "90+ Days"


def get_ar_aging(db: Session, as_of_date: date, tenant_id: str) -> ARAgingReport:
    """Sales still unpaid on `as_of_date`, including ones paid only after it."""
    sales = db.query(Sale).filter(
        Sale.tenant_id == tenant_id,
        Sale.is_active == True,
        Sale.sale_date <= as_of_date,
        or_(
            Sale.payment_status == PaymentStatus.NOT_PAID,
            and_(Sale.payment_status == PaymentStatus.PAID, Sale.payment_received_date > as_of_date),
        ),
    ).order_by(Sale.sale_date, Sale.id).all()

    customers = OrderedDict()
    for sale in sales:
        key = sale.vehicle_registration.strip().upper()
        customer = customers.get(key)
        if customer is None:
            customer = customers[key] = ARAgingCustomer(vehicle_registration=key, client_name=sale.client_name)
        elif not customer.client_name and sale.client_name:
            customer.client_name = sale.client_name

        days = (as_of_date - sale.sale_date).days
        customer.invoices.append(ARAgingInvoice(
            sale_id=sale.id,
            sale_date=sale.sale_date,
            product_name=sale.product_name,
            quantity=to_decimal(sale.quantity),
            amount=money(sale.gross_sale_amount),
            days_outstanding=days,
            aging_bucket=aging_bucket(days),
        ))

    report = ARAgingReport(
        as_of_date=as_of_date,
        customers=sorted(customers.values(), key=lambda c: c.total_outstanding, reverse=True),
    )
    if abs(report.bucket_sum - report.grand_total) >= TOLERANCE:
        _integrity_fault(
            "ar_aging", "Aging bucket totals do not sum to total outstanding",
            report.grand_total, report.bucket_sum, tenant_id,
        )
    return report


# ---------------------------------------------------------------------------
# Payables summary
# ---------------------------------------------------------------------------

def get_ap_summary(db: Session, as_of_date: date, tenant_id: str) -> APSummaryReport:
    """Commissions and operating fees accrued in the month containing `as_of_date`."""
    period_start, period_end = month_bounds(as_of_date)
    fees = crud_app_config.get_fee_config(db, tenant_id)

    sales = db.query(Sale).filter(
        Sale.tenant_id == tenant_id,
        Sale.is_active == True,
        Sale.sale_date >= period_start,
        Sale.sale_date <= period_end,
    ).order_by(Sale.sale_date, Sale.id).all()

    brokers = {
        broker.id: broker.broker_name
        for broker in db.query(Broker).filter(Broker.tenant_id == tenant_id).all()
    }

    payables = OrderedDict()
    loaders_qty = land_qty = reject_qty = ZERO
    loaders_amount = land_amount = reject_amount = ZERO
    for sale in sales:
        quantity = to_decimal(sale.quantity)
        commission, loaders, land_rate = sale_fee_amounts(sale, fees)
        if sale.broker_id and commission > 0:
            payable = payables.get(sale.broker_id)
            if payable is None:
                payable = payables[sale.broker_id] = APBrokerPayable(
                    broker_id=sale.broker_id,
                    broker_name=brokers.get(sale.broker_id, f"Broker {sale.broker_id}"),
                )
            payable.sale_count += 1
            payable.total_quantity += quantity
            payable.amount_due += commission
        if loaders_fee_applies(sale.product_name):
            loaders_qty += quantity
            loaders_amount += loaders
        if sale.include_land_rate:
            if is_reject_product(sale.product_name):
                reject_qty += quantity
                reject_amount += land_rate
            else:
                land_qty += quantity
                land_amount += land_rate

    accrued_fees = []
    for fee_type, rate, quantity, amount in (
        ("Loaders Fees", fees.loaders_fee, loaders_qty, loaders_amount),
        ("Land Rate Fees", fees.land_rate_fee, land_qty, land_amount),
        ("Land Rate Fees (Rejects)", fees.rejects_fee, reject_qty, reject_amount),
    ):
        if quantity > 0 and amount > 0:
            accrued_fees.append(APAccruedFee(fee_type=fee_type, rate=rate, quantity=quantity, amount=amount))

    return APSummaryReport(
        as_of_date=as_of_date,
        period_start=period_start,
        period_end=period_end,
        broker_payables=sorted(payables.values(), key=lambda p: p.amount_due, reverse=True),
        accrued_fees=accrued_fees,
    )


# ---------------------------------------------------------------------------
# General ledger
# ---------------------------------------------------------------------------

def get_general_ledger(
    db: Session,
    start_date: date,
    end_date: date,
    tenant_id: str,
    account_id: Optional[int] = None,
) -> GeneralLedgerReport:
    _check_range(start_date, end_date)
    accounts = _all_accounts(db, tenant_id)
    if account_id is not None:
        accounts = [account for account in accounts if account.id == account_id]

    opening_totals = _account_totals(db, tenant_id, end_date=start_date - timedelta(days=1))
    rows = db.query(JournalEntryLine, JournalEntry).join(
        JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id
    ).filter(
        JournalEntry.tenant_id == tenant_id,
        JournalEntry.is_posted == True,
        JournalEntry.is_active == True,
        JournalEntry.entry_date >= start_date,
        JournalEntry.entry_date <= end_date,
    ).order_by(JournalEntry.entry_date, JournalEntry.id, JournalEntryLine.line_number).all()

    lines_by_account = {}
    for line, entry in rows:
        lines_by_account.setdefault(line.ledger_account_id, []).append((line, entry))

    ledger_accounts = []
    for account in accounts:
        opening = _normal_balance(account, opening_totals)
        postings = lines_by_account.get(account.id, [])
        if not postings and opening == 0 and account_id is None:
            continue

        balance = opening
        ledger_lines = []
        for line, entry in postings:
            debit, credit = to_decimal(line.debit_amount), to_decimal(line.credit_amount)
            balance += (debit - credit) if account.is_debit_normal else (credit - debit)
            ledger_lines.append(GeneralLedgerLine(
                entry_date=entry.entry_date,
                reference=entry.reference,
                description=entry.description,
                memo=line.memo,
                debit=debit,
                credit=credit,
                running_balance=balance,
            ))
        ledger_accounts.append(GeneralLedgerAccount(
            account_id=account.id,
            account_code=account.account_code,
            account_name=account.account_name,
            opening_balance=opening,
            lines=ledger_lines,
        ))

    return GeneralLedgerReport(from_date=start_date, to_date=end_date, accounts=ledger_accounts)
