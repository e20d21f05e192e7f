# tests/test_journal_engine.py
"""
Tests for manual journal entries: the posting balance check, the
posted/unposted lifecycle and reference numbering.
"""
import pytest
from datetime import date
from decimal import Decimal

from crud import journal_entry as crud_journal
from exceptions import NotFoundError, StateConflictError, UnbalancedEntryError, ValidationError
from models.journal_entry import EntryType
from schemas.journal_entry import JournalEntryCreate, JournalEntryUpdate
from schemas.journal_entry_line import JournalEntryLineCreate


ENTRY_DATE = date(2026, 2, 10)


@pytest.fixture
def manual_entry(db, tenant_id, accounts):
    def factory(debit="500", credit="500", debit_code="6400", credit_code="1000", reference=None, entry_date=ENTRY_DATE):
        return crud_journal.create_manual_entry(
            db,
            JournalEntryCreate(
                entry_date=entry_date,
                description="Office supplies",
                reference=reference,
                lines=[
                    JournalEntryLineCreate(ledger_account_id=accounts[debit_code].id, debit_amount=Decimal(debit)),
                    JournalEntryLineCreate(ledger_account_id=accounts[credit_code].id, credit_amount=Decimal(credit)),
                ],
            ),
            tenant_id,
            user_id="clerk@quarry.test",
        )
    return factory


# =============================================================================
# Posting
# =============================================================================

class TestPostEntry:

    def test_balanced_entry_posts(self, db, tenant_id, manual_entry):
        entry = manual_entry("500", "500")

        posted = crud_journal.post_entry(db, entry.id, tenant_id, "manager@quarry.test")

        assert posted.is_posted
        assert posted.posted_by == "manager@quarry.test"
        assert posted.posted_at is not None
        assert posted.total_debit == Decimal("500")
        assert posted.is_balanced

    def test_unbalanced_entry_rejected(self, db, tenant_id, manual_entry):
        entry = manual_entry("500", "480")

        with pytest.raises(UnbalancedEntryError) as exc_info:
            crud_journal.post_entry(db, entry.id, tenant_id, "manager@quarry.test")

        assert exc_info.value.total_debit == Decimal("500")
        assert exc_info.value.total_credit == Decimal("480")
        db.rollback()
        assert crud_journal.get_journal_entry(db, entry.id, tenant_id).is_posted is False

    def test_unbalanced_is_a_validation_error(self):
        assert issubclass(UnbalancedEntryError, ValidationError)

    def test_posting_twice_conflicts(self, db, tenant_id, manual_entry):
        entry = manual_entry()
        crud_journal.post_entry(db, entry.id, tenant_id, "manager@quarry.test")

        with pytest.raises(StateConflictError):
            crud_journal.post_entry(db, entry.id, tenant_id, "manager@quarry.test")

    def test_unknown_entry(self, db, tenant_id):
        with pytest.raises(NotFoundError):
            crud_journal.post_entry(db, 999, tenant_id, "manager@quarry.test")

    def test_other_tenant_cannot_post(self, db, tenant_id, manual_entry):
        entry = manual_entry()

        with pytest.raises(NotFoundError):
            crud_journal.post_entry(db, entry.id, "quarry-other", "intruder")


# =============================================================================
# Lifecycle
# =============================================================================

class TestEntryLifecycle:

    def test_manual_entry_starts_unposted(self, manual_entry):
        entry = manual_entry()

        assert entry.entry_type == EntryType.MANUAL
        assert entry.is_posted is False
        assert entry.fiscal_year == 2026
        assert entry.fiscal_period == 2
        assert [line.line_number for line in entry.lines] == [1, 2]

    def test_posted_entry_cannot_be_edited(self, db, tenant_id, manual_entry):
        entry = manual_entry()
        crud_journal.post_entry(db, entry.id, tenant_id, "manager@quarry.test")

        with pytest.raises(StateConflictError):
            crud_journal.update_manual_entry(
                db, entry.id, JournalEntryUpdate(description="Changed"), tenant_id, "clerk@quarry.test"
            )

    def test_posted_entry_cannot_be_deleted(self, db, tenant_id, manual_entry):
        entry = manual_entry()
        crud_journal.post_entry(db, entry.id, tenant_id, "manager@quarry.test")

        with pytest.raises(StateConflictError):
            crud_journal.delete_entry(db, entry.id, tenant_id)

    def test_unpost_then_delete(self, db, tenant_id, manual_entry):
        entry = manual_entry()
        crud_journal.post_entry(db, entry.id, tenant_id, "manager@quarry.test")

        unposted = crud_journal.unpost_entry(db, entry.id, tenant_id, "manager@quarry.test")
        assert unposted.is_posted is False
        assert unposted.posted_by is None

        assert crud_journal.delete_entry(db, entry.id, tenant_id) is True
        assert crud_journal.get_journal_entry(db, entry.id, tenant_id) is None

    def test_unposting_unposted_entry_conflicts(self, db, tenant_id, manual_entry):
        entry = manual_entry()

        with pytest.raises(StateConflictError):
            crud_journal.unpost_entry(db, entry.id, tenant_id, "manager@quarry.test")

    def test_update_replaces_lines(self, db, tenant_id, accounts, manual_entry):
        entry = manual_entry("500", "480")

        updated = crud_journal.update_manual_entry(
            db,
            entry.id,
            JournalEntryUpdate(lines=[
                JournalEntryLineCreate(ledger_account_id=accounts["6400"].id, debit_amount=Decimal("480")),
                JournalEntryLineCreate(ledger_account_id=accounts["1000"].id, credit_amount=Decimal("480")),
            ]),
            tenant_id,
            "clerk@quarry.test",
        )

        assert updated.is_balanced
        assert updated.total_debit == Decimal("480")
        assert len(updated.lines) == 2
        assert crud_journal.post_entry(db, entry.id, tenant_id, "manager@quarry.test").is_posted


# =============================================================================
# References
# =============================================================================

class TestReferences:

    def test_sequence_per_year(self, manual_entry):
        first = manual_entry()
        second = manual_entry()
        next_year = manual_entry(entry_date=date(2027, 1, 3))

        assert first.reference == "JV-2026-00001"
        assert second.reference == "JV-2026-00002"
        assert next_year.reference == "JV-2027-00001"

    def test_deleting_an_earlier_entry_does_not_reuse_a_live_reference(self, db, tenant_id, manual_entry):
        first = manual_entry()
        manual_entry()
        manual_entry()
        crud_journal.delete_entry(db, first.id, tenant_id)

        assert manual_entry().reference == "JV-2026-00004"

    def test_explicit_reference_must_be_unique(self, manual_entry):
        manual_entry(reference="OPENING-2026")

        with pytest.raises(ValidationError):
            manual_entry(reference="OPENING-2026")


class TestLineSchema:

    def test_line_needs_exactly_one_side(self):
        with pytest.raises(ValueError):
            JournalEntryLineCreate(ledger_account_id=1, debit_amount=Decimal("10"), credit_amount=Decimal("10"))
        with pytest.raises(ValueError):
            JournalEntryLineCreate(ledger_account_id=1)

    def test_entry_needs_two_lines(self):
        with pytest.raises(ValueError):
            JournalEntryCreate(
                entry_date=ENTRY_DATE,
                description="One-legged",
                lines=[JournalEntryLineCreate(ledger_account_id=1, debit_amount=Decimal("10"))],
            )
