# tests/conftest.py
"""
Pytest fixtures for the quarry ledger tests.

Every test gets a fresh in-memory SQLite database shared through StaticPool,
so the API client and direct crud calls see the same rows.
"""
import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "quarry-ledger-test-logs"))

import pytest
from datetime import date
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
import models  # noqa: F401
from crud import app_config as crud_app_config
from crud import journal_generation
from crud import ledger_accounts as crud_ledger_accounts
from models.banking import Banking
from models.brokers import Broker
from models.expenses import Expense
from models.fuel_usage import FuelUsage
from models.prepayments import Prepayment
from models.sales import PaymentStatus, Sale
from utils.auth_utils import get_current_user


TENANT = "quarry-test"


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def tenant_id(db):
    """A tenant with default configs and the default chart of accounts."""
    crud_app_config.initialize_default_configs(db, TENANT, "setup")
    crud_ledger_accounts.initialize_default_accounts(db, TENANT)
    return TENANT


@pytest.fixture
def accounts(db, tenant_id):
    """Ledger accounts of the seeded tenant keyed by code."""
    return {a.account_code: a for a in crud_ledger_accounts.get_accounts(db, tenant_id)}


# =============================================================================
# Operational Record Factories
# =============================================================================

def _store(db, record, tenant_id):
    db.add(record)
    db.flush()
    journal_generation.sync_record_entries(db, record, tenant_id, user_id="tester")
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def make_sale(db, tenant_id):
    def factory(**overrides):
        fields = dict(
            sale_date=date(2026, 1, 5),
            vehicle_registration="KBX 123A",
            client_name="Mwangi Builders",
            product_name="Size 6",
            quantity=Decimal("10"),
            price_per_unit=Decimal("100"),
            commission_per_unit=Decimal("0"),
            payment_status=PaymentStatus.PAID,
            include_land_rate=False,
            tenant_id=tenant_id,
        )
        fields.update(overrides)
        return _store(db, Sale(**fields), tenant_id)
    return factory


@pytest.fixture
def make_expense(db, tenant_id):
    def factory(**overrides):
        fields = dict(
            expense_date=date(2026, 1, 5),
            item="Diesel top-up",
            amount=Decimal("200"),
            category="Fuel",
            tenant_id=tenant_id,
        )
        fields.update(overrides)
        return _store(db, Expense(**fields), tenant_id)
    return factory


@pytest.fixture
def make_banking(db, tenant_id):
    def factory(**overrides):
        fields = dict(banking_date=date(2026, 1, 5), item="Till deposit", amount_banked=Decimal("300"), tenant_id=tenant_id)
        fields.update(overrides)
        return _store(db, Banking(**fields), tenant_id)
    return factory


@pytest.fixture
def make_prepayment(db, tenant_id):
    def factory(**overrides):
        fields = dict(
            prepayment_date=date(2026, 1, 5),
            vehicle_registration="KCA 555Z",
            total_amount_paid=Decimal("500"),
            tenant_id=tenant_id,
        )
        fields.update(overrides)
        return _store(db, Prepayment(**fields), tenant_id)
    return factory


@pytest.fixture
def make_fuel_usage(db, tenant_id):
    def factory(**overrides):
        fields = dict(
            usage_date=date(2026, 1, 5),
            old_stock=Decimal("400"),
            new_stock=Decimal("100"),
            machines_loaded=Decimal("30"),
            wheel_loaders_loaded=Decimal("20"),
            tenant_id=tenant_id,
        )
        fields.update(overrides)
        return _store(db, FuelUsage(**fields), tenant_id)
    return factory


@pytest.fixture
def broker(db, tenant_id):
    record = Broker(broker_name="Otieno Agencies", tenant_id=tenant_id)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


# =============================================================================
# API Client
# =============================================================================

@pytest.fixture
def current_user():
    return {"email": "manager@quarry.test", "cognito:groups": ["admin", "manager"]}


@pytest.fixture
def client(db, tenant_id, current_user):
    from main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: current_user
    with TestClient(app) as test_client:
        test_client.headers.update({"X-Tenant-ID": tenant_id})
        yield test_client
    app.dependency_overrides.clear()
