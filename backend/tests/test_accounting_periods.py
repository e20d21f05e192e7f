# tests/test_accounting_periods.py
"""
Tests for accounting periods: the open/closed state machine, the close
policies and the lock closed periods put on journal mutation.
"""
import pytest
from datetime import date
from decimal import Decimal

from crud import accounting_periods as crud_periods
from crud import app_config as crud_app_config
from crud import journal_entry as crud_journal
from exceptions import PeriodClosedError, StateConflictError, ValidationError
from schemas.accounting_period import AccountingPeriodCreate
from schemas.app_config import AppConfigUpdate
from schemas.journal_entry import JournalEntryCreate
from schemas.journal_entry_line import JournalEntryLineCreate


@pytest.fixture
def periods(db, tenant_id):
    return {p.period_number: p for p in crud_periods.generate_fiscal_year_periods(db, 2026, tenant_id, "setup")}


@pytest.fixture
def march_entry(db, tenant_id, accounts):
    return crud_journal.create_manual_entry(
        db,
        JournalEntryCreate(
            entry_date=date(2026, 3, 15),
            description="Crusher repair",
            lines=[
                JournalEntryLineCreate(ledger_account_id=accounts["6200"].id, debit_amount=Decimal("250")),
                JournalEntryLineCreate(ledger_account_id=accounts["1000"].id, credit_amount=Decimal("250")),
            ],
        ),
        tenant_id,
        user_id="clerk@quarry.test",
    )


def _set_policy(db, tenant_id, policy):
    crud_app_config.update_config_by_name(
        db, crud_app_config.PERIOD_CLOSE_POLICY, AppConfigUpdate(value=policy), tenant_id, "admin@quarry.test"
    )


# =============================================================================
# Period Setup
# =============================================================================

class TestPeriodSetup:

    def test_generates_twelve_months(self, periods):
        assert sorted(periods) == list(range(1, 13))
        assert periods[2].start_date == date(2026, 2, 1)
        assert periods[2].end_date == date(2026, 2, 28)
        assert periods[12].period_name == "December 2026"

    def test_generation_is_idempotent(self, db, tenant_id, periods):
        again = crud_periods.generate_fiscal_year_periods(db, 2026, tenant_id)

        assert [p.id for p in again] == [periods[n].id for n in range(1, 13)]

    def test_duplicate_period_number_rejected(self, db, tenant_id, periods):
        with pytest.raises(ValidationError):
            crud_periods.create_period(
                db,
                AccountingPeriodCreate(
                    period_name="March again",
                    start_date=date(2026, 3, 1),
                    end_date=date(2026, 3, 31),
                    fiscal_year=2026,
                    period_number=3,
                ),
                tenant_id,
            )

    def test_dates_without_period_are_open(self, db, tenant_id):
        assert crud_periods.is_date_open(db, date(2030, 5, 5), tenant_id)


# =============================================================================
# Close / Reopen
# =============================================================================

class TestClosePeriod:

    def test_strict_policy_blocks_close_with_unposted_entries(self, db, tenant_id, periods, march_entry):
        with pytest.raises(ValidationError) as exc_info:
            crud_periods.close_period(db, periods[3].id, tenant_id, "admin@quarry.test")

        assert march_entry.reference in str(exc_info.value)
        assert crud_periods.get_period(db, periods[3].id, tenant_id).is_closed is False

    def test_close_records_closer(self, db, tenant_id, periods):
        period, unposted = crud_periods.close_period(
            db, periods[1].id, tenant_id, "admin@quarry.test", closing_notes="January reviewed"
        )

        assert period.is_closed
        assert period.closed_by == "admin@quarry.test"
        assert period.closed_at is not None
        assert period.closing_notes == "January reviewed"
        assert unposted == []

    def test_closing_twice_conflicts(self, db, tenant_id, periods):
        crud_periods.close_period(db, periods[1].id, tenant_id, "admin@quarry.test")

        with pytest.raises(StateConflictError):
            crud_periods.close_period(db, periods[1].id, tenant_id, "admin@quarry.test")

    def test_reopening_open_period_conflicts(self, db, tenant_id, periods):
        with pytest.raises(StateConflictError):
            crud_periods.reopen_period(db, periods[1].id, tenant_id, "admin@quarry.test")

    def test_reopen_keeps_notes_history(self, db, tenant_id, periods):
        crud_periods.close_period(db, periods[1].id, tenant_id, "admin@quarry.test", closing_notes="Closed after audit")

        period = crud_periods.reopen_period(db, periods[1].id, tenant_id, "admin@quarry.test")

        assert period.is_closed is False
        assert period.closed_by is None
        assert period.closing_notes.startswith("Closed after audit\nReopened by admin@quarry.test")


class TestClosedPeriodLock:

    def test_post_fails_while_closed_and_succeeds_after_reopen(self, db, tenant_id, periods, march_entry):
        _set_policy(db, tenant_id, "flag")
        period, unposted = crud_periods.close_period(db, periods[3].id, tenant_id, "admin@quarry.test")
        assert unposted == [march_entry.reference]

        with pytest.raises(PeriodClosedError):
            crud_journal.post_entry(db, march_entry.id, tenant_id, "manager@quarry.test")
        db.rollback()

        crud_periods.reopen_period(db, period.id, tenant_id, "admin@quarry.test")
        assert crud_journal.post_entry(db, march_entry.id, tenant_id, "manager@quarry.test").is_posted

    def test_cannot_create_entry_in_closed_period(self, db, tenant_id, accounts, periods):
        crud_periods.close_period(db, periods[4].id, tenant_id, "admin@quarry.test")

        with pytest.raises(PeriodClosedError):
            crud_journal.create_manual_entry(
                db,
                JournalEntryCreate(
                    entry_date=date(2026, 4, 2),
                    description="Late invoice",
                    lines=[
                        JournalEntryLineCreate(ledger_account_id=accounts["6400"].id, debit_amount=Decimal("10")),
                        JournalEntryLineCreate(ledger_account_id=accounts["1000"].id, credit_amount=Decimal("10")),
                    ],
                ),
                tenant_id,
                user_id="clerk@quarry.test",
            )

    def test_cannot_unpost_in_closed_period(self, db, tenant_id, periods, march_entry):
        crud_journal.post_entry(db, march_entry.id, tenant_id, "manager@quarry.test")
        crud_periods.close_period(db, periods[3].id, tenant_id, "admin@quarry.test")

        with pytest.raises(StateConflictError):
            crud_journal.unpost_entry(db, march_entry.id, tenant_id, "manager@quarry.test")

    def test_cannot_delete_unposted_entry_in_closed_period(self, db, tenant_id, periods, march_entry):
        _set_policy(db, tenant_id, "flag")
        crud_periods.close_period(db, periods[3].id, tenant_id, "admin@quarry.test")

        with pytest.raises(PeriodClosedError):
            crud_journal.delete_entry(db, march_entry.id, tenant_id)
