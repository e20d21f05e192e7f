# tests/test_ledger_accounts.py
"""
Tests for the chart of accounts: seeding, hierarchy checks and guarded deletes.
"""
import pytest
from datetime import date
from decimal import Decimal

from crud import journal_entry as crud_journal
from crud import ledger_accounts as crud_ledger_accounts
from exceptions import (
    AccountHierarchyError,
    AccountInUseError,
    DuplicateAccountCodeError,
)
from models.ledger_accounts import AccountCategory, LedgerAccount
from schemas.journal_entry import JournalEntryCreate
from schemas.journal_entry_line import JournalEntryLineCreate
from schemas.ledger_accounts import LedgerAccountCreate, LedgerAccountUpdate


def _create(db, tenant_id, code, name="Test Account", category=AccountCategory.EXPENSES, parent_id=None):
    return crud_ledger_accounts.create_account(
        db,
        LedgerAccountCreate(account_code=code, account_name=name, category=category, parent_account_id=parent_id),
        tenant_id,
        user_id="tester",
    )


# =============================================================================
# Default Chart
# =============================================================================

class TestInitializeDefaults:

    def test_seeds_standard_accounts(self, db, tenant_id, accounts):
        assert len(accounts) == len(crud_ledger_accounts.DEFAULT_ACCOUNTS)
        assert accounts["1000"].is_system_account
        assert accounts["1000"].is_debit_normal
        assert not accounts["2100"].is_debit_normal
        assert accounts["4010"].parent_account_id == accounts["4000"].id

    def test_second_call_is_a_no_op(self, db, tenant_id):
        created = crud_ledger_accounts.initialize_default_accounts(db, tenant_id)

        assert created == []
        count = db.query(LedgerAccount).filter(LedgerAccount.tenant_id == tenant_id).count()
        assert count == len(crud_ledger_accounts.DEFAULT_ACCOUNTS)

    def test_tenants_are_isolated(self, db, tenant_id):
        created = crud_ledger_accounts.initialize_default_accounts(db, "another-quarry")

        assert len(created) == len(crud_ledger_accounts.DEFAULT_ACCOUNTS)
        assert crud_ledger_accounts.get_account_by_code(db, "1000", "another-quarry").tenant_id == "another-quarry"


# =============================================================================
# Create / Update
# =============================================================================

class TestCreateAccount:

    def test_normal_balance_follows_category(self, db, tenant_id):
        revenue = _create(db, tenant_id, "4700", category=AccountCategory.REVENUE)
        expense = _create(db, tenant_id, "6970")

        assert revenue.is_debit_normal is False
        assert expense.is_debit_normal is True
        assert not revenue.is_system_account

    def test_duplicate_code_rejected(self, db, tenant_id):
        with pytest.raises(DuplicateAccountCodeError):
            _create(db, tenant_id, "1000", name="Second cash")

    def test_unknown_parent_rejected(self, db, tenant_id):
        with pytest.raises(AccountHierarchyError):
            _create(db, tenant_id, "6971", parent_id=999999)

    def test_non_numeric_code_rejected_by_schema(self):
        with pytest.raises(ValueError):
            LedgerAccountCreate(account_code="CASH", account_name="Cash", category=AccountCategory.ASSETS)


class TestUpdateAccount:

    def test_cycle_rejected(self, db, tenant_id):
        top = _create(db, tenant_id, "7000", name="Top")
        middle = _create(db, tenant_id, "7010", name="Middle", parent_id=top.id)
        leaf = _create(db, tenant_id, "7020", name="Leaf", parent_id=middle.id)

        with pytest.raises(AccountHierarchyError):
            crud_ledger_accounts.update_account(db, top.id, LedgerAccountUpdate(parent_account_id=leaf.id), tenant_id)

    def test_self_parent_rejected(self, db, tenant_id):
        account = _create(db, tenant_id, "7030")

        with pytest.raises(AccountHierarchyError):
            crud_ledger_accounts.update_account(db, account.id, LedgerAccountUpdate(parent_account_id=account.id), tenant_id)

    def test_system_account_cannot_be_recategorized(self, db, tenant_id, accounts):
        with pytest.raises(AccountInUseError):
            crud_ledger_accounts.update_account(
                db, accounts["1000"].id, LedgerAccountUpdate(category=AccountCategory.EXPENSES), tenant_id
            )

    def test_system_account_can_be_renamed(self, db, tenant_id, accounts):
        updated = crud_ledger_accounts.update_account(
            db, accounts["1000"].id, LedgerAccountUpdate(account_name="Till Cash"), tenant_id, user_id="tester"
        )

        assert updated.account_name == "Till Cash"
        assert updated.updated_by == "tester"

    def test_missing_account_returns_none(self, db, tenant_id):
        assert crud_ledger_accounts.update_account(db, 424242, LedgerAccountUpdate(account_name="x"), tenant_id) is None


# =============================================================================
# Delete
# =============================================================================

class TestDeleteAccount:

    def test_unused_account_is_deleted(self, db, tenant_id):
        account = _create(db, tenant_id, "7100")

        assert crud_ledger_accounts.delete_account(db, account.id, tenant_id) is True
        assert crud_ledger_accounts.get_account(db, account.id, tenant_id) is None

    def test_account_with_lines_is_kept(self, db, tenant_id, accounts):
        account = _create(db, tenant_id, "7110")
        crud_journal.create_manual_entry(
            db,
            JournalEntryCreate(
                entry_date=date(2026, 1, 10),
                description="Site survey",
                lines=[
                    JournalEntryLineCreate(ledger_account_id=account.id, debit_amount=Decimal("75")),
                    JournalEntryLineCreate(ledger_account_id=accounts["1000"].id, credit_amount=Decimal("75")),
                ],
            ),
            tenant_id,
            user_id="tester",
        )

        with pytest.raises(AccountInUseError):
            crud_ledger_accounts.delete_account(db, account.id, tenant_id)

    def test_account_with_children_is_kept(self, db, tenant_id):
        parent = _create(db, tenant_id, "7200")
        _create(db, tenant_id, "7210", parent_id=parent.id)

        with pytest.raises(AccountInUseError):
            crud_ledger_accounts.delete_account(db, parent.id, tenant_id)

    def test_system_account_is_kept(self, db, tenant_id, accounts):
        with pytest.raises(AccountInUseError):
            crud_ledger_accounts.delete_account(db, accounts["6900"].id, tenant_id)

    def test_missing_account_returns_false(self, db, tenant_id):
        assert crud_ledger_accounts.delete_account(db, 424242, tenant_id) is False


class TestAccountMapping:

    @pytest.mark.parametrize("category, code", [
        ("Fuel", "6000"),
        ("  wages ", "6600"),
        ("Something new", "6900"),
        (None, "6900"),
    ])
    def test_expense_category_codes(self, category, code):
        assert crud_ledger_accounts.get_expense_account_code(category) == code

    @pytest.mark.parametrize("product, code", [
        ("Size 6", "4010"),
        ("REJECT", "4040"),
        ("Ballast", "4000"),
    ])
    def test_product_revenue_codes(self, product, code):
        assert crud_ledger_accounts.get_revenue_account_code(product) == code
