"""Domain errors raised by the accounting engine.

Routers never see SQLAlchemy errors for these cases; crud functions raise one
of the classes below and `main.py` maps each family to an HTTP status.
"""


class AccountingError(Exception):
    """Base class for accounting engine errors."""
    pass


class ValidationError(AccountingError, ValueError):
    """Input the caller can correct (HTTP 400)."""
    pass


class UnbalancedEntryError(ValidationError):
    """Raised when a JournalEntry fails the double-entry balance check."""

    def __init__(self, total_debit, total_credit, message=None):
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(
            message
            or f"Journal entry is not balanced: debits {total_debit} != credits {total_credit}"
        )


class DuplicateAccountCodeError(ValidationError):
    pass


class AccountHierarchyError(ValidationError):
    """Parent reference would create a cycle or points at another tenant's account."""
    pass


class AccountInUseError(ValidationError):
    """System account, account with children, or account referenced by journal lines."""
    pass


class PeriodClosedError(ValidationError):
    """Journal mutation dated inside a closed accounting period."""

    def __init__(self, entry_date, period_name=None):
        self.entry_date = entry_date
        self.period_name = period_name
        where = f" ({period_name})" if period_name else ""
        super().__init__(f"Accounting period{where} containing {entry_date} is closed")


class UnmappedSourceError(ValidationError):
    """An operational record could not be mapped to ledger accounts."""
    pass


class StateConflictError(AccountingError):
    """Operation not allowed in the record's current state (HTTP 409)."""
    pass


class NotFoundError(AccountingError, LookupError):
    """Unknown account, entry, period or source record (HTTP 404)."""
    pass


class ReportIntegrityError(AccountingError):
    """A report failed one of its balancing checks.

    Indicates bad upstream data or a logic defect; never returned as a partial report.
    """

    def __init__(self, report, message, expected=None, actual=None):
        self.report = report
        self.expected = expected
        self.actual = actual
        self.difference = (expected - actual) if expected is not None and actual is not None else None
        super().__init__(message)
