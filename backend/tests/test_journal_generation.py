# tests/test_journal_generation.py
"""
Tests for auto journal generation from quarry operational records.
"""
import pytest
from datetime import date, timedelta
from decimal import Decimal

from crud import app_config as crud_app_config
from crud import journal_generation
from crud import sales as crud_sales
from exceptions import StateConflictError, UnmappedSourceError, ValidationError
from models.expenses import Expense
from models.journal_entry import SourceType
from models.sales import PaymentStatus
from schemas.app_config import AppConfigUpdate
from schemas.sales import SaleCreate, SaleUpdate
from utils.dates import local_today

OTHER_TENANT = "quarry-other"


def _entries(db, tenant_id, source_type, source_id):
    return journal_generation.get_source_entries(db, source_type, source_id, tenant_id)


def _by_code(entry):
    """Net (debit, credit) per account code for one entry."""
    totals = {}
    for line in entry.lines:
        debit, credit = totals.get(line.ledger_account.account_code, (Decimal("0"), Decimal("0")))
        totals[line.ledger_account.account_code] = (debit + line.debit_amount, credit + line.credit_amount)
    return totals


def _disable_auto_post(db, tenant_id):
    crud_app_config.update_config_by_name(
        db, crud_app_config.AUTO_POST_GENERATED, AppConfigUpdate(value="false"), tenant_id, "admin@quarry.test"
    )


# =============================================================================
# Sales
# =============================================================================

class TestSaleEntries:

    def test_cash_sale_with_all_fees(self, db, tenant_id, make_sale, broker):
        sale = make_sale(commission_per_unit=Decimal("5"), include_land_rate=True, broker_id=broker.id)

        [entry] = _entries(db, tenant_id, SourceType.SALE, sale.id)
        lines = _by_code(entry)

        assert entry.reference == "SL-2026-00001"
        assert entry.is_posted
        assert entry.posted_by == journal_generation.SYSTEM_ACTOR
        assert entry.entry_date == date(2026, 1, 5)
        assert lines["1000"] == (Decimal("1000"), Decimal("0"))
        assert lines["4010"] == (Decimal("0"), Decimal("1000"))
        assert lines["5000"] == (Decimal("50"), Decimal("0"))
        assert lines["5100"] == (Decimal("500"), Decimal("0"))
        assert lines["5200"] == (Decimal("100"), Decimal("0"))
        assert lines["2100"] == (Decimal("0"), Decimal("650"))
        assert entry.is_balanced

    def test_unpaid_sale_goes_to_receivables(self, db, tenant_id, make_sale):
        sale = make_sale(payment_status=PaymentStatus.NOT_PAID)

        [entry] = _entries(db, tenant_id, SourceType.SALE, sale.id)

        assert "1000" not in _by_code(entry)
        assert _by_code(entry)["1100"] == (Decimal("1000"), Decimal("0"))
        assert _entries(db, tenant_id, SourceType.COLLECTION, sale.id) == []

    def test_sale_collected_later_gets_collection_entry(self, db, tenant_id, make_sale):
        sale = make_sale(payment_received_date=date(2026, 1, 9))

        [sale_entry] = _entries(db, tenant_id, SourceType.SALE, sale.id)
        [collection] = _entries(db, tenant_id, SourceType.COLLECTION, sale.id)

        assert _by_code(sale_entry)["1100"] == (Decimal("1000"), Decimal("0"))
        assert collection.reference == "CL-2026-00001"
        assert collection.entry_date == date(2026, 1, 9)
        assert _by_code(collection) == {
            "1000": (Decimal("1000"), Decimal("0")),
            "1100": (Decimal("0"), Decimal("1000")),
        }

    def test_paid_on_sale_day_has_no_collection(self, db, tenant_id, make_sale):
        sale = make_sale(payment_received_date=date(2026, 1, 5))

        assert _entries(db, tenant_id, SourceType.COLLECTION, sale.id) == []
        assert "1000" in _by_code(_entries(db, tenant_id, SourceType.SALE, sale.id)[0])

    def test_beam_has_no_loaders_fee(self, db, tenant_id, make_sale):
        sale = make_sale(product_name="Beam")

        lines = _by_code(_entries(db, tenant_id, SourceType.SALE, sale.id)[0])

        assert "5100" not in lines
        assert lines["4060"] == (Decimal("0"), Decimal("1000"))

    def test_rejects_use_rejects_land_rate(self, db, tenant_id, make_sale):
        sale = make_sale(product_name="Reject", include_land_rate=True)

        lines = _by_code(_entries(db, tenant_id, SourceType.SALE, sale.id)[0])

        assert lines["5200"] == (Decimal("50"), Decimal("0"))
        assert lines["4040"] == (Decimal("0"), Decimal("1000"))

    def test_unknown_product_uses_general_revenue(self, db, tenant_id, make_sale):
        sale = make_sale(product_name="Ballast")

        assert "4000" in _by_code(_entries(db, tenant_id, SourceType.SALE, sale.id)[0])


# =============================================================================
# Other Sources
# =============================================================================

class TestOtherSourceEntries:

    def test_expense_by_category(self, db, tenant_id, make_expense):
        expense = make_expense(category="Maintenance and Repairs", amount=Decimal("320"))

        [entry] = _entries(db, tenant_id, SourceType.EXPENSE, expense.id)

        assert entry.reference.startswith("EX-2026-")
        assert _by_code(entry) == {
            "6200": (Decimal("320"), Decimal("0")),
            "1000": (Decimal("0"), Decimal("320")),
        }

    def test_unknown_expense_category_falls_back(self, db, tenant_id, make_expense):
        expense = make_expense(category="Goat roast")

        assert "6900" in _by_code(_entries(db, tenant_id, SourceType.EXPENSE, expense.id)[0])

    def test_banking_moves_cash_to_bank(self, db, tenant_id, make_banking):
        banking = make_banking()

        assert _by_code(_entries(db, tenant_id, SourceType.BANKING, banking.id)[0]) == {
            "1010": (Decimal("300"), Decimal("0")),
            "1000": (Decimal("0"), Decimal("300")),
        }

    def test_prepayment_is_a_customer_deposit(self, db, tenant_id, make_prepayment):
        prepayment = make_prepayment()

        assert _by_code(_entries(db, tenant_id, SourceType.PREPAYMENT, prepayment.id)[0]) == {
            "1000": (Decimal("500"), Decimal("0")),
            "2000": (Decimal("0"), Decimal("500")),
        }

    def test_fuel_usage_without_cost_has_no_entry(self, db, tenant_id, make_fuel_usage):
        fuel = make_fuel_usage()

        assert _entries(db, tenant_id, SourceType.FUEL_USAGE, fuel.id) == []

    def test_fuel_usage_with_cost(self, db, tenant_id, make_fuel_usage):
        fuel = make_fuel_usage(cost_per_litre=Decimal("150"))

        assert _by_code(_entries(db, tenant_id, SourceType.FUEL_USAGE, fuel.id)[0]) == {
            "6000": (Decimal("7500"), Decimal("0")),
            "1300": (Decimal("0"), Decimal("7500")),
        }


# =============================================================================
# Generation Rules
# =============================================================================

class TestGenerationRules:

    def test_missing_chart_is_unmapped(self, db):
        crud_app_config.initialize_default_configs(db, OTHER_TENANT, "setup")
        expense = Expense(expense_date=date(2026, 1, 5), item="Tea", amount=Decimal("40"), category="Administrative",
                          tenant_id=OTHER_TENANT)
        db.add(expense)
        db.commit()

        with pytest.raises(UnmappedSourceError):
            journal_generation.generate_from_source(db, SourceType.EXPENSE, expense.id, OTHER_TENANT)

    def test_posted_source_is_not_regenerated(self, db, tenant_id, make_sale):
        sale = make_sale()

        with pytest.raises(StateConflictError):
            journal_generation.generate_from_source(db, SourceType.SALE, sale.id, tenant_id)

    def test_generate_replaces_unposted_entries(self, db, tenant_id, make_expense):
        _disable_auto_post(db, tenant_id)
        expense = make_expense()

        entries = journal_generation.generate_from_source(db, SourceType.EXPENSE, expense.id, tenant_id)

        assert len(entries) == 1
        assert entries[0].is_posted is False
        assert len(_entries(db, tenant_id, SourceType.EXPENSE, expense.id)) == 1


class TestRegenerate:

    def test_regeneration_is_idempotent(self, db, tenant_id, make_sale, make_expense):
        _disable_auto_post(db, tenant_id)
        sale = make_sale(payment_received_date=date(2026, 1, 7))
        make_expense(expense_date=date(2026, 1, 6))

        first = journal_generation.regenerate_auto_entries(db, tenant_id, date(2026, 1, 1), date(2026, 1, 31))
        refs_first = [e.reference for e in _entries(db, tenant_id, SourceType.SALE, sale.id)]
        second = journal_generation.regenerate_auto_entries(db, tenant_id, date(2026, 1, 1), date(2026, 1, 31))
        refs_second = [e.reference for e in _entries(db, tenant_id, SourceType.SALE, sale.id)]

        assert first["created"] == second["created"] == 3
        assert second["deleted"] == 3
        assert refs_first == refs_second == ["SL-2026-00001"]

    def test_posted_entries_are_skipped(self, db, tenant_id, make_expense):
        expense = make_expense()
        [posted] = _entries(db, tenant_id, SourceType.EXPENSE, expense.id)

        result = journal_generation.regenerate_auto_entries(db, tenant_id, date(2026, 1, 1), date(2026, 1, 31))

        assert result["skipped_posted"] == 1
        assert result["created"] == 0
        assert [e.id for e in _entries(db, tenant_id, SourceType.EXPENSE, expense.id)] == [posted.id]

    def test_inverted_range_rejected(self, db, tenant_id):
        with pytest.raises(ValidationError):
            journal_generation.regenerate_auto_entries(db, tenant_id, date(2026, 2, 1), date(2026, 1, 1))


# =============================================================================
# Operational Edits
# =============================================================================

class TestOperationalEdits:

    def test_sale_edit_resyncs_ledger(self, db, tenant_id):
        today = local_today()
        sale = crud_sales.create_sale(
            db,
            SaleCreate(
                sale_date=today,
                vehicle_registration=" kbz 900q ",
                product_name="Size 9",
                quantity=Decimal("4"),
                price_per_unit=Decimal("250"),
                include_land_rate=False,
            ),
            tenant_id,
            "clerk@quarry.test",
        )
        assert sale.vehicle_registration == "KBZ 900Q"

        crud_sales.update_sale(db, sale.id, SaleUpdate(quantity=Decimal("6")), tenant_id, "clerk@quarry.test")

        [entry] = _entries(db, tenant_id, SourceType.SALE, sale.id)
        assert entry.is_posted
        assert _by_code(entry)["4020"] == (Decimal("0"), Decimal("1500"))

    def test_sale_delete_removes_entries(self, db, tenant_id):
        yesterday = local_today() - timedelta(days=1)
        sale = crud_sales.create_sale(
            db,
            SaleCreate(
                sale_date=yesterday,
                vehicle_registration="KCC 101A",
                product_name="Size 4",
                quantity=Decimal("2"),
                price_per_unit=Decimal("300"),
                include_land_rate=False,
            ),
            tenant_id,
            "clerk@quarry.test",
        )

        crud_sales.delete_sale(db, sale.id, tenant_id, "clerk@quarry.test")

        assert _entries(db, tenant_id, SourceType.SALE, sale.id) == []
