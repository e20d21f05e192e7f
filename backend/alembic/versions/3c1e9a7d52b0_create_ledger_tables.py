"""create ledger, period, operational and daily note tables

Revision ID: 3c1e9a7d52b0
Revises:
Create Date: 2026-10-19 09:12:40.518233

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c1e9a7d52b0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACCOUNT_CATEGORIES = ('ASSETS', 'LIABILITIES', 'EQUITY', 'REVENUE', 'COST_OF_SALES', 'EXPENSES')
ACCOUNT_TYPES = (
    'CASH', 'BANK', 'ACCOUNTS_RECEIVABLE', 'PREPAID', 'INVENTORY', 'FIXED_ASSET', 'CONTRA_ASSET',
    'CUSTOMER_DEPOSITS', 'ACCOUNTS_PAYABLE', 'ACCRUED_LIABILITIES', 'TAX_LIABILITIES', 'PROVISIONS',
    'LONG_TERM_LIABILITIES', 'SHARE_CAPITAL', 'RETAINED_EARNINGS', 'CURRENT_YEAR_EARNINGS',
    'SALES_REVENUE', 'OTHER_INCOME', 'DIRECT_COSTS', 'OPERATING_EXPENSES', 'OTHER',
)
ENTRY_TYPES = ('AUTO', 'MANUAL')
SOURCE_TYPES = ('SALE', 'COLLECTION', 'EXPENSE', 'BANKING', 'FUEL_USAGE', 'PREPAYMENT')
PERIOD_TYPES = ('MONTHLY', 'QUARTERLY', 'ANNUAL')
PAYMENT_STATUSES = ('PAID', 'NOT_PAID')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def _audit():
    return _timestamps() + [sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true())]


def _tenant():
    return sa.Column('tenant_id', sa.String(), nullable=False)


def _index(table: str, *columns: str):
    for column in columns:
        op.create_index(op.f(f'ix_{table}_{column}'), table, [column], unique=False)


def upgrade() -> None:
    op.create_table(
        'app_config',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('value', sa.String(length=255), nullable=False),
        sa.Column('tenant_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', 'tenant_id', name='_app_config_name_tenant_uc'),
    )
    _index('app_config', 'id', 'name', 'tenant_id')

    op.create_table(
        'ledger_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_code', sa.String(length=20), nullable=False),
        sa.Column('account_name', sa.String(length=150), nullable=False),
        sa.Column('category', sa.Enum(*ACCOUNT_CATEGORIES, name='accountcategory'), nullable=False),
        sa.Column('account_type', sa.Enum(*ACCOUNT_TYPES, name='accounttype'), nullable=False),
        sa.Column('parent_account_id', sa.Integer(), nullable=True),
        sa.Column('is_system_account', sa.Boolean(), nullable=False),
        sa.Column('is_debit_normal', sa.Boolean(), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        _tenant(),
        *_audit(),
        sa.ForeignKeyConstraint(['parent_account_id'], ['ledger_accounts.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'account_code', name='_tenant_ledger_account_code_uc'),
    )
    _index('ledger_accounts', 'id', 'account_code', 'tenant_id', 'is_active')

    op.create_table(
        'journal_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('reference', sa.String(length=50), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('entry_type', sa.Enum(*ENTRY_TYPES, name='entrytype'), nullable=False),
        sa.Column('source_entity_type', sa.Enum(*SOURCE_TYPES, name='sourcetype'), nullable=True),
        sa.Column('source_entity_id', sa.Integer(), nullable=True),
        sa.Column('is_posted', sa.Boolean(), nullable=False),
        sa.Column('posted_by', sa.String(), nullable=True),
        sa.Column('posted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('fiscal_year', sa.Integer(), nullable=False),
        sa.Column('fiscal_period', sa.Integer(), nullable=False),
        _tenant(),
        *_audit(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'reference', name='_tenant_journal_reference_uc'),
    )
    _index('journal_entries', 'id', 'entry_date', 'tenant_id', 'is_active')
    op.create_index('ix_journal_entries_source', 'journal_entries', ['tenant_id', 'source_entity_type', 'source_entity_id'])

    op.create_table(
        'journal_entry_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('journal_entry_id', sa.Integer(), nullable=False),
        sa.Column('ledger_account_id', sa.Integer(), nullable=False),
        sa.Column('debit_amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('credit_amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('line_number', sa.Integer(), nullable=False),
        sa.Column('memo', sa.String(length=255), nullable=True),
        _tenant(),
        sa.CheckConstraint('debit_amount >= 0', name='check_line_debit_non_negative'),
        sa.CheckConstraint('credit_amount >= 0', name='check_line_credit_non_negative'),
        sa.CheckConstraint(
            '(debit_amount > 0 AND credit_amount = 0) OR (debit_amount = 0 AND credit_amount > 0)',
            name='check_line_single_side'
        ),
        sa.ForeignKeyConstraint(['journal_entry_id'], ['journal_entries.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['ledger_account_id'], ['ledger_accounts.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('journal_entry_lines', 'id', 'journal_entry_id', 'ledger_account_id', 'tenant_id')

    op.create_table(
        'accounting_periods',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('period_name', sa.String(length=50), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('fiscal_year', sa.Integer(), nullable=False),
        sa.Column('period_number', sa.Integer(), nullable=False),
        sa.Column('period_type', sa.Enum(*PERIOD_TYPES, name='periodtype'), nullable=False),
        sa.Column('is_closed', sa.Boolean(), nullable=False),
        sa.Column('closed_by', sa.String(), nullable=True),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('closing_notes', sa.Text(), nullable=True),
        _tenant(),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'fiscal_year', 'period_number', name='_tenant_fiscal_period_uc'),
    )
    _index('accounting_periods', 'id', 'tenant_id')

    op.create_table(
        'brokers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('broker_name', sa.String(length=150), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        _tenant(),
        *_audit(),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('brokers', 'id', 'tenant_id', 'is_active')

    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_date', sa.Date(), nullable=False),
        sa.Column('vehicle_registration', sa.String(length=30), nullable=False),
        sa.Column('client_name', sa.String(length=150), nullable=True),
        sa.Column('client_phone', sa.String(length=30), nullable=True),
        sa.Column('product_name', sa.String(length=100), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('price_per_unit', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('broker_id', sa.Integer(), nullable=True),
        sa.Column('commission_per_unit', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('payment_status', sa.Enum(*PAYMENT_STATUSES, name='paymentstatus'), nullable=False),
        sa.Column('payment_mode', sa.String(length=30), nullable=True),
        sa.Column('payment_reference', sa.String(length=100), nullable=True),
        sa.Column('payment_received_date', sa.Date(), nullable=True),
        sa.Column('include_land_rate', sa.Boolean(), nullable=False),
        sa.Column('clerk_name', sa.String(length=150), nullable=True),
        _tenant(),
        *_audit(),
        sa.ForeignKeyConstraint(['broker_id'], ['brokers.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('sales', 'id', 'sale_date', 'vehicle_registration', 'tenant_id', 'is_active')

    op.create_table(
        'expenses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('expense_date', sa.Date(), nullable=False),
        sa.Column('item', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('txn_reference', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _tenant(),
        *_audit(),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('expenses', 'id', 'expense_date', 'tenant_id', 'is_active')

    op.create_table(
        'banking',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('banking_date', sa.Date(), nullable=False),
        sa.Column('item', sa.String(length=255), nullable=True),
        sa.Column('amount_banked', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('txn_reference', sa.String(length=100), nullable=True),
        sa.Column('ref_code', sa.String(length=50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _tenant(),
        *_audit(),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('banking', 'id', 'banking_date', 'tenant_id', 'is_active')

    op.create_table(
        'fuel_usage',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('usage_date', sa.Date(), nullable=False),
        sa.Column('old_stock', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('new_stock', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('machines_loaded', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('wheel_loaders_loaded', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('cost_per_litre', sa.Numeric(precision=12, scale=2), nullable=True),
        _tenant(),
        *_audit(),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('fuel_usage', 'id', 'usage_date', 'tenant_id', 'is_active')

    op.create_table(
        'prepayments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('prepayment_date', sa.Date(), nullable=False),
        sa.Column('vehicle_registration', sa.String(length=30), nullable=False),
        sa.Column('client_name', sa.String(length=150), nullable=True),
        sa.Column('total_amount_paid', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('amount_used', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('payment_mode', sa.String(length=30), nullable=True),
        sa.Column('payment_reference', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _tenant(),
        *_audit(),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('prepayments', 'id', 'prepayment_date', 'tenant_id', 'is_active')

    op.create_table(
        'daily_notes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('note_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('closing_balance', sa.Numeric(precision=14, scale=2), nullable=False),
        _tenant(),
        *_audit(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'note_date', name='_tenant_note_date_uc'),
    )
    _index('daily_notes', 'id', 'note_date', 'tenant_id', 'is_active')


def downgrade() -> None:
    for table in (
        'daily_notes', 'prepayments', 'fuel_usage', 'banking', 'expenses', 'sales', 'brokers',
        'accounting_periods', 'journal_entry_lines', 'journal_entries', 'ledger_accounts', 'app_config',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_name in ('paymentstatus', 'periodtype', 'sourcetype', 'entrytype', 'accounttype', 'accountcategory'):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
