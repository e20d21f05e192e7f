# tests/test_daily_reports.py
"""
Tests for the daily cash report and the closing-balance cascade.
"""
import pytest
from datetime import date, timedelta
from decimal import Decimal

from crud import app_config as crud_app_config
from crud import daily_reports as crud_daily_reports
from crud import expenses as crud_expenses
from crud import sales as crud_sales
from exceptions import ValidationError
from models.daily_notes import DailyNote
from models.sales import PaymentStatus
from schemas.app_config import AppConfigUpdate
from schemas.expenses import ExpenseCreate
from schemas.sales import SaleCreate
from utils.dates import local_today

JAN_1, JAN_2, JAN_3 = date(2026, 1, 1), date(2026, 1, 2), date(2026, 1, 3)


def _closings(db, tenant_id, *days):
    return [crud_daily_reports.get_daily_note(db, day, tenant_id).closing_balance for day in days]


@pytest.fixture
def three_days_of_sales(make_sale):
    """Beam sales carry no fees, so each day's cash equals its sales: 1000, 200, 300."""
    make_sale(sale_date=JAN_1, product_name="Beam", quantity=Decimal("10"))
    make_sale(sale_date=JAN_2, product_name="Beam", quantity=Decimal("2"))
    make_sale(sale_date=JAN_3, product_name="Beam", quantity=Decimal("3"))


# =============================================================================
# Daily Report
# =============================================================================

class TestComputeDailyReport:

    def test_fees_reduce_earnings(self, db, tenant_id, make_sale, make_expense, make_banking):
        make_sale(commission_per_unit=Decimal("5"), include_land_rate=True)
        make_expense()
        make_banking()

        report = crud_daily_reports.compute_daily_report(db, date(2026, 1, 5), tenant_id)

        assert report.total_sales == Decimal("1000")
        assert report.total_quantity == Decimal("10")
        assert (report.commission, report.loaders_fee, report.land_rate_fee) == (
            Decimal("50"), Decimal("500"), Decimal("100")
        )
        assert report.total_expenses == Decimal("850")
        assert report.earnings == Decimal("150")
        assert report.cash_in_hand == Decimal("-150")

    def test_unpaid_then_collected(self, db, tenant_id, make_sale):
        make_sale(sale_date=JAN_1, product_name="Beam", payment_received_date=JAN_2)

        first = crud_daily_reports.compute_daily_report(db, JAN_1, tenant_id, opening_balance=Decimal("0"))
        second = crud_daily_reports.compute_daily_report(db, JAN_2, tenant_id, opening_balance=first.cash_in_hand)

        assert first.unpaid == Decimal("1000")
        assert first.cash_in_hand == Decimal("0")
        assert second.total_collections == Decimal("1000")
        assert second.cash_in_hand == Decimal("1000")

    def test_not_paid_sale_stays_out_of_cash(self, db, tenant_id, make_sale):
        make_sale(product_name="Beam", payment_status=PaymentStatus.NOT_PAID)

        report = crud_daily_reports.compute_daily_report(db, date(2026, 1, 5), tenant_id)

        assert report.unpaid == report.total_sales == Decimal("1000")
        assert report.net_earnings == Decimal("0")

    def test_prepayments_and_fuel_balance(self, db, tenant_id, make_prepayment, make_fuel_usage):
        make_prepayment()
        make_fuel_usage()

        report = crud_daily_reports.compute_daily_report(db, date(2026, 1, 5), tenant_id)

        assert report.total_prepayments == Decimal("500")
        assert report.cash_in_hand == Decimal("500")
        assert report.fuel_balance == Decimal("450")

    def test_opening_from_previous_note(self, db, tenant_id):
        crud_daily_reports.save_closing_balance(db, date(2026, 1, 4), Decimal("730"), tenant_id, user_id="tester")
        db.commit()

        report = crud_daily_reports.compute_daily_report(db, date(2026, 1, 5), tenant_id)

        assert report.opening_balance == Decimal("730")
        assert report.cash_in_hand == Decimal("730")


# =============================================================================
# Closing Balance Cascade
# =============================================================================

class TestRecalculateClosingBalances:

    def test_chain_from_first_day(self, db, tenant_id, three_days_of_sales):
        result = crud_daily_reports.recalculate_closing_balances_from(db, JAN_1, tenant_id, today=JAN_3)

        assert result.days_recalculated == 3
        assert result.final_closing_balance == Decimal("1500")
        assert _closings(db, tenant_id, JAN_1, JAN_2, JAN_3) == [Decimal("1000"), Decimal("1200"), Decimal("1500")]

    def test_backdated_expense_propagates(self, db, tenant_id, three_days_of_sales, make_expense):
        crud_daily_reports.recalculate_closing_balances_from(db, JAN_1, tenant_id, today=JAN_3)
        make_expense(expense_date=JAN_1, amount=Decimal("100"))

        crud_daily_reports.recalculate_closing_balances_from(db, JAN_1, tenant_id, today=JAN_3)

        assert _closings(db, tenant_id, JAN_1, JAN_2, JAN_3) == [Decimal("900"), Decimal("1100"), Decimal("1400")]

    def test_idle_days_carry_balance(self, db, tenant_id, make_sale):
        make_sale(sale_date=JAN_1, product_name="Beam")

        crud_daily_reports.recalculate_closing_balances_from(db, JAN_1, tenant_id, today=JAN_3)

        assert _closings(db, tenant_id, JAN_1, JAN_2, JAN_3) == [Decimal("1000")] * 3

    def test_starts_from_stored_previous_closing(self, db, tenant_id, three_days_of_sales):
        crud_daily_reports.save_closing_balance(db, JAN_1, Decimal("50"), tenant_id)
        db.commit()

        result = crud_daily_reports.recalculate_closing_balances_from(db, JAN_2, tenant_id, today=JAN_3)

        assert result.days_recalculated == 2
        assert result.final_closing_balance == Decimal("550")
        assert _closings(db, tenant_id, JAN_1) == [Decimal("50")]

    def test_lock_taken_before_starting_balance_is_read(self, db, tenant_id, three_days_of_sales, monkeypatch):
        calls = []
        lock = crud_app_config.lock_tenant_row
        previous = crud_daily_reports.get_previous_closing_balance

        def recording_lock(db, tenant_id):
            calls.append("lock")
            return lock(db, tenant_id)

        def recording_previous(db, day, tenant_id):
            calls.append("read")
            return previous(db, day, tenant_id)

        monkeypatch.setattr(crud_app_config, "lock_tenant_row", recording_lock)
        monkeypatch.setattr(crud_daily_reports, "get_previous_closing_balance", recording_previous)

        crud_daily_reports.recalculate_closing_balances_from(db, JAN_2, tenant_id, today=JAN_3)

        assert calls == ["lock", "read"]

    def test_future_start_is_a_no_op(self, db, tenant_id):
        result = crud_daily_reports.recalculate_closing_balances_from(db, date(2026, 2, 1), tenant_id, today=JAN_3)

        assert result.days_recalculated == 0
        assert db.query(DailyNote).count() == 0

    def test_max_days_bound(self, db, tenant_id):
        crud_app_config.update_config_by_name(
            db, crud_app_config.CASCADE_MAX_DAYS, AppConfigUpdate(value="10"), tenant_id, "admin@quarry.test"
        )

        with pytest.raises(ValidationError):
            crud_daily_reports.recalculate_closing_balances_from(db, JAN_1, tenant_id, today=date(2026, 2, 1))

    def test_failure_rolls_back_whole_chain(self, db, tenant_id, three_days_of_sales, make_expense, monkeypatch):
        crud_daily_reports.recalculate_closing_balances_from(db, JAN_1, tenant_id, today=JAN_3)
        make_expense(expense_date=JAN_1, amount=Decimal("100"))

        compute = crud_daily_reports.compute_daily_report

        def failing_compute(db, day, tenant_id, opening_balance=None):
            if day == JAN_3:
                raise RuntimeError("disk full")
            return compute(db, day, tenant_id, opening_balance=opening_balance)

        monkeypatch.setattr(crud_daily_reports, "compute_daily_report", failing_compute)

        with pytest.raises(RuntimeError):
            crud_daily_reports.recalculate_closing_balances_from(db, JAN_1, tenant_id, today=JAN_3)

        assert _closings(db, tenant_id, JAN_1, JAN_2, JAN_3) == [Decimal("1000"), Decimal("1200"), Decimal("1500")]


# =============================================================================
# Operational Record Changes
# =============================================================================

class TestRecordChanged:

    def test_backdated_expense_cascades_to_today(self, db, tenant_id, make_sale):
        today = local_today()
        yesterday = today - timedelta(days=1)
        make_sale(sale_date=yesterday, product_name="Beam")
        crud_daily_reports.recalculate_closing_balances_from(db, yesterday, tenant_id)

        crud_expenses.create_expense(
            db,
            ExpenseCreate(expense_date=yesterday, item="Tyre repair", amount=Decimal("100"), category="Maintenance and Repairs"),
            tenant_id,
            "clerk@quarry.test",
        )

        assert _closings(db, tenant_id, yesterday, today) == [Decimal("900"), Decimal("900")]

    def test_same_day_record_opens_next_day(self, db, tenant_id, monkeypatch):
        monkeypatch.setattr(crud_daily_reports, "local_today", lambda: JAN_1)
        crud_sales.create_sale(
            db,
            SaleCreate(
                sale_date=JAN_1,
                vehicle_registration="KBX 123A",
                product_name="Beam",
                quantity=Decimal("10"),
                price_per_unit=Decimal("100"),
                include_land_rate=False,
            ),
            tenant_id,
            "clerk@quarry.test",
        )

        day1 = crud_daily_reports.compute_daily_report(db, JAN_1, tenant_id)
        day2 = crud_daily_reports.compute_daily_report(db, JAN_2, tenant_id)

        assert _closings(db, tenant_id, JAN_1) == [Decimal("1000")]
        assert day1.cash_in_hand == Decimal("1000")
        assert day2.opening_balance == day1.cash_in_hand

    def test_future_dated_record_does_not_cascade(self, db, tenant_id, monkeypatch):
        monkeypatch.setattr(crud_daily_reports, "local_today", lambda: JAN_1)
        crud_expenses.create_expense(
            db,
            ExpenseCreate(expense_date=JAN_3, item="Water", amount=Decimal("20")),
            tenant_id,
            "clerk@quarry.test",
        )

        assert db.query(DailyNote).count() == 0


# =============================================================================
# Single Day Report
# =============================================================================

class TestGenerateDailyReport:

    def test_stores_closing_for_next_day(self, db, tenant_id, make_sale, monkeypatch):
        monkeypatch.setattr(crud_daily_reports, "local_today", lambda: JAN_2)
        make_sale(sale_date=JAN_1, product_name="Beam")

        report = crud_daily_reports.generate_daily_report(db, JAN_1, tenant_id, user_id="clerk@quarry.test")

        assert report.cash_in_hand == Decimal("1000")
        assert _closings(db, tenant_id, JAN_1) == [Decimal("1000")]
        assert crud_daily_reports.compute_daily_report(db, JAN_2, tenant_id).opening_balance == Decimal("1000")

    def test_future_day_is_not_stored(self, db, tenant_id, make_sale, monkeypatch):
        monkeypatch.setattr(crud_daily_reports, "local_today", lambda: JAN_1)
        make_sale(sale_date=JAN_3, product_name="Beam")

        report = crud_daily_reports.generate_daily_report(db, JAN_3, tenant_id)

        assert report.cash_in_hand == Decimal("1000")
        assert crud_daily_reports.get_daily_note(db, JAN_3, tenant_id) is None
