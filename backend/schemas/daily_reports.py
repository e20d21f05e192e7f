from pydantic import BaseModel, computed_field
from typing import Optional
from datetime import date
from decimal import Decimal

ZERO = Decimal("0")


class DailyReport(BaseModel):
    """Cash position for one tenant-day. Closing (cash in hand) opens the next day."""
    report_date: date
    opening_balance: Decimal = ZERO
    total_quantity: Decimal = ZERO
    total_sales: Decimal = ZERO
    unpaid: Decimal = ZERO
    user_expenses: Decimal = ZERO
    commission: Decimal = ZERO
    loaders_fee: Decimal = ZERO
    land_rate_fee: Decimal = ZERO
    total_collections: Decimal = ZERO
    total_prepayments: Decimal = ZERO
    banked: Decimal = ZERO
    fuel_balance: Optional[Decimal] = None

    @computed_field
    @property
    def total_expenses(self) -> Decimal:
        return self.user_expenses + self.commission + self.loaders_fee + self.land_rate_fee

    @computed_field
    @property
    def earnings(self) -> Decimal:
        return self.total_sales - self.total_expenses

    @computed_field
    @property
    def net_earnings(self) -> Decimal:
        return (
            self.earnings + self.opening_balance + self.total_collections + self.total_prepayments
        ) - self.unpaid

    @computed_field
    @property
    def cash_in_hand(self) -> Decimal:
        return self.net_earnings - self.banked


class RecalculateRequest(BaseModel):
    start_date: date


class RecalculateResult(BaseModel):
    start_date: date
    end_date: date
    days_recalculated: int
    final_closing_balance: Decimal
