from models.app_config import AppConfig
from models.ledger_accounts import LedgerAccount
from models.journal_entry import JournalEntry
from models.journal_entry_line import JournalEntryLine
from models.accounting_period import AccountingPeriod
from models.brokers import Broker
from models.sales import Sale
from models.expenses import Expense
from models.banking import Banking
from models.fuel_usage import FuelUsage
from models.prepayments import Prepayment
from models.daily_notes import DailyNote

__all__ = ['AccountingPeriod', 'AppConfig', 'Banking', 'Broker', 'DailyNote', 'Expense', 'FuelUsage', 'JournalEntry', 'JournalEntryLine', 'LedgerAccount', 'Prepayment', 'Sale',]
