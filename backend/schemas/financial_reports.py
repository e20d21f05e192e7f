from pydantic import BaseModel, computed_field
from typing import List, Optional
from datetime import date
from decimal import Decimal

ZERO = Decimal("0")
TOLERANCE = Decimal("0.01")


def _total(items, attr="amount") -> Decimal:
    return sum((getattr(item, attr) or ZERO for item in items), ZERO)


def _optional_total(items, attr="prior_amount") -> Optional[Decimal]:
    values = [getattr(item, attr) for item in items]
    if all(v is None for v in values):
        return None
    return sum((v or ZERO for v in values), ZERO)


def _margin(amount: Decimal, revenue: Decimal) -> Decimal:
    if revenue == 0:
        return ZERO
    return (amount / revenue * 100).quantize(TOLERANCE)


# ---------------------------------------------------------------------------
# Trial balance
# ---------------------------------------------------------------------------

class TrialBalanceLine(BaseModel):
    account_id: int
    account_code: str
    account_name: str
    category: str
    debit_balance: Decimal = ZERO
    credit_balance: Decimal = ZERO
    prior_debit_balance: Optional[Decimal] = None
    prior_credit_balance: Optional[Decimal] = None


class TrialBalanceReport(BaseModel):
    as_of_date: date
    comparative_as_of_date: Optional[date] = None
    lines: List[TrialBalanceLine] = []

    @computed_field
    @property
    def total_debits(self) -> Decimal:
        return _total(self.lines, "debit_balance")

    @computed_field
    @property
    def total_credits(self) -> Decimal:
        return _total(self.lines, "credit_balance")

    @computed_field
    @property
    def difference(self) -> Decimal:
        return self.total_debits - self.total_credits

    @computed_field
    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) < TOLERANCE


# ---------------------------------------------------------------------------
# Profit & loss
# ---------------------------------------------------------------------------

class ProfitLossLineItem(BaseModel):
    account_code: str
    account_name: str
    amount: Decimal = ZERO
    prior_amount: Optional[Decimal] = None
    percentage_of_revenue: Decimal = ZERO


class ProfitLossReport(BaseModel):
    from_date: date
    to_date: date
    comparative_from_date: Optional[date] = None
    comparative_to_date: Optional[date] = None
    revenue_items: List[ProfitLossLineItem] = []
    cost_of_sales_items: List[ProfitLossLineItem] = []
    operating_expense_items: List[ProfitLossLineItem] = []

    @computed_field
    @property
    def total_revenue(self) -> Decimal:
        return _total(self.revenue_items)

    @computed_field
    @property
    def total_cost_of_sales(self) -> Decimal:
        return _total(self.cost_of_sales_items)

    @computed_field
    @property
    def gross_profit(self) -> Decimal:
        return self.total_revenue - self.total_cost_of_sales

    @computed_field
    @property
    def gross_margin(self) -> Decimal:
        return _margin(self.gross_profit, self.total_revenue)

    @computed_field
    @property
    def total_operating_expenses(self) -> Decimal:
        return _total(self.operating_expense_items)

    @computed_field
    @property
    def operating_profit(self) -> Decimal:
        return self.gross_profit - self.total_operating_expenses

    @computed_field
    @property
    def operating_margin(self) -> Decimal:
        return _margin(self.operating_profit, self.total_revenue)

    @computed_field
    @property
    def net_profit(self) -> Decimal:
        # No finance/tax lines below operating profit
        return self.operating_profit

    @computed_field
    @property
    def net_margin(self) -> Decimal:
        return _margin(self.net_profit, self.total_revenue)

    @computed_field
    @property
    def prior_total_revenue(self) -> Optional[Decimal]:
        return _optional_total(self.revenue_items)

    @computed_field
    @property
    def prior_net_profit(self) -> Optional[Decimal]:
        if self.comparative_from_date is None:
            return None
        revenue = _optional_total(self.revenue_items) or ZERO
        cost = _optional_total(self.cost_of_sales_items) or ZERO
        expenses = _optional_total(self.operating_expense_items) or ZERO
        return revenue - cost - expenses


# ---------------------------------------------------------------------------
# Balance sheet
# ---------------------------------------------------------------------------

class BalanceSheetLineItem(BaseModel):
    account_code: str
    account_name: str
    amount: Decimal = ZERO
    prior_amount: Optional[Decimal] = None


class BalanceSheetReport(BaseModel):
    as_of_date: date
    comparative_as_of_date: Optional[date] = None
    current_assets: List[BalanceSheetLineItem] = []
    non_current_assets: List[BalanceSheetLineItem] = []
    current_liabilities: List[BalanceSheetLineItem] = []
    non_current_liabilities: List[BalanceSheetLineItem] = []
    equity_items: List[BalanceSheetLineItem] = []
    current_period_profit: Decimal = ZERO
    prior_current_period_profit: Optional[Decimal] = None

    @computed_field
    @property
    def total_current_assets(self) -> Decimal:
        return _total(self.current_assets)

    @computed_field
    @property
    def total_non_current_assets(self) -> Decimal:
        return _total(self.non_current_assets)

    @computed_field
    @property
    def total_assets(self) -> Decimal:
        return self.total_current_assets + self.total_non_current_assets

    @computed_field
    @property
    def total_current_liabilities(self) -> Decimal:
        return _total(self.current_liabilities)

    @computed_field
    @property
    def total_non_current_liabilities(self) -> Decimal:
        return _total(self.non_current_liabilities)

    @computed_field
    @property
    def total_liabilities(self) -> Decimal:
        return self.total_current_liabilities + self.total_non_current_liabilities

    @computed_field
    @property
    def total_equity(self) -> Decimal:
        return _total(self.equity_items) + self.current_period_profit

    @computed_field
    @property
    def total_liabilities_and_equity(self) -> Decimal:
        return self.total_liabilities + self.total_equity

    @computed_field
    @property
    def is_balanced(self) -> bool:
        return abs(self.total_assets - self.total_liabilities_and_equity) < TOLERANCE


# ---------------------------------------------------------------------------
# Cash flow
# ---------------------------------------------------------------------------

class CashFlowLineItem(BaseModel):
    description: str
    amount: Decimal = ZERO
    category: Optional[str] = None


class CashFlowReport(BaseModel):
    from_date: date
    to_date: date
    opening_cash: Decimal = ZERO
    operating_inflows: List[CashFlowLineItem] = []
    operating_outflows: List[CashFlowLineItem] = []
    investing_items: List[CashFlowLineItem] = []
    financing_items: List[CashFlowLineItem] = []
    cash_banked: Decimal = ZERO
    ledger_closing_cash: Decimal = ZERO

    @computed_field
    @property
    def total_operating_inflows(self) -> Decimal:
        return _total(self.operating_inflows)

    @computed_field
    @property
    def total_operating_outflows(self) -> Decimal:
        return _total(self.operating_outflows)

    @computed_field
    @property
    def net_operating_cash(self) -> Decimal:
        return self.total_operating_inflows - self.total_operating_outflows

    @computed_field
    @property
    def net_investing_cash(self) -> Decimal:
        return _total(self.investing_items)

    @computed_field
    @property
    def net_financing_cash(self) -> Decimal:
        return _total(self.financing_items)

    @computed_field
    @property
    def net_change(self) -> Decimal:
        return self.net_operating_cash + self.net_investing_cash + self.net_financing_cash

    @computed_field
    @property
    def closing_cash(self) -> Decimal:
        return self.opening_cash + self.net_change

    @computed_field
    @property
    def is_reconciled(self) -> bool:
        return abs(self.closing_cash - self.ledger_closing_cash) < TOLERANCE


# ---------------------------------------------------------------------------
# Receivables aging
# ---------------------------------------------------------------------------

AGING_BUCKETS = ["Current", "1-30 Days", "31-60 Days", "61-90 Days", "90+ Days"]


class ARAgingInvoice(BaseModel):
    sale_id: int
    sale_date: date
    product_name: str
    quantity: Decimal
    amount: Decimal
    days_outstanding: int
    aging_bucket: str


class ARAgingCustomer(BaseModel):
    vehicle_registration: str
    client_name: Optional[str] = None
    invoices: List[ARAgingInvoice] = []

    def _bucket_total(self, bucket: str) -> Decimal:
        return _total([i for i in self.invoices if i.aging_bucket == bucket])

    @computed_field
    @property
    def current(self) -> Decimal:
        return self._bucket_total("Current")

    @computed_field
    @property
    def days_1_to_30(self) -> Decimal:
        return self._bucket_total("1-30 Days")

    @computed_field
    @property
    def days_31_to_60(self) -> Decimal:
        return self._bucket_total("31-60 Days")

    @computed_field
    @property
    def days_61_to_90(self) -> Decimal:
        return self._bucket_total("61-90 Days")

    @computed_field
    @property
    def over_90(self) -> Decimal:
        return self._bucket_total("90+ Days")

    @computed_field
    @property
    def total_outstanding(self) -> Decimal:
        return _total(self.invoices)

    @computed_field
    @property
    def oldest_days_outstanding(self) -> int:
        return max((i.days_outstanding for i in self.invoices), default=0)


class ARAgingReport(BaseModel):
    as_of_date: date
    customers: List[ARAgingCustomer] = []

    @computed_field
    @property
    def total_current(self) -> Decimal:
        return _total(self.customers, "current")

    @computed_field
    @property
    def total_1_to_30(self) -> Decimal:
        return _total(self.customers, "days_1_to_30")

    @computed_field
    @property
    def total_31_to_60(self) -> Decimal:
        return _total(self.customers, "days_31_to_60")

    @computed_field
    @property
    def total_61_to_90(self) -> Decimal:
        return _total(self.customers, "days_61_to_90")

    @computed_field
    @property
    def total_over_90(self) -> Decimal:
        return _total(self.customers, "over_90")

    @computed_field
    @property
    def grand_total(self) -> Decimal:
        return _total(self.customers, "total_outstanding")

    @computed_field
    @property
    def bucket_sum(self) -> Decimal:
        return (
            self.total_current + self.total_1_to_30 + self.total_31_to_60
            + self.total_61_to_90 + self.total_over_90
        )


# ---------------------------------------------------------------------------
# Payables summary
# ---------------------------------------------------------------------------

class APBrokerPayable(BaseModel):
    broker_id: int
    broker_name: str
    sale_count: int = 0
    total_quantity: Decimal = ZERO
    amount_due: Decimal = ZERO


class APAccruedFee(BaseModel):
    fee_type: str
    rate: Decimal = ZERO
    quantity: Decimal = ZERO
    amount: Decimal = ZERO


class APSummaryReport(BaseModel):
    as_of_date: date
    period_start: date
    period_end: date
    broker_payables: List[APBrokerPayable] = []
    accrued_fees: List[APAccruedFee] = []

    @computed_field
    @property
    def total_commissions(self) -> Decimal:
        return _total(self.broker_payables, "amount_due")

    @computed_field
    @property
    def total_fees(self) -> Decimal:
        return _total(self.accrued_fees)

    @computed_field
    @property
    def total_payable(self) -> Decimal:
        return self.total_commissions + self.total_fees


# ---------------------------------------------------------------------------
# General ledger
# ---------------------------------------------------------------------------

class GeneralLedgerLine(BaseModel):
    entry_date: date
    reference: str
    description: str
    memo: Optional[str] = None
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    running_balance: Decimal = ZERO


class GeneralLedgerAccount(BaseModel):
    account_id: int
    account_code: str
    account_name: str
    opening_balance: Decimal = ZERO
    lines: List[GeneralLedgerLine] = []

    @computed_field
    @property
    def total_debits(self) -> Decimal:
        return _total(self.lines, "debit")

    @computed_field
    @property
    def total_credits(self) -> Decimal:
        return _total(self.lines, "credit")

    @computed_field
    @property
    def closing_balance(self) -> Decimal:
        if not self.lines:
            return self.opening_balance
        return self.lines[-1].running_balance


class GeneralLedgerReport(BaseModel):
    from_date: date
    to_date: date
    accounts: List[GeneralLedgerAccount] = []
