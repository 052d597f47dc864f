"""
Typed Exception Hierarchy for the Books Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Reports are only as trustworthy as the snapshot they are computed from. A
transaction line that points at an account nobody knows about, or a chart of
accounts that loops back onto itself, must stop report generation with an
error the caller can catch by type and inspect by attribute:

    try:
        service = ReportingService(accounts, transactions)
    except UnknownAccountReferenceError as e:   # Typed catch
        flag_line(e.transaction_line_id, e.account_id)
        api_response(code=e.code)                # Machine-readable

Every exception carries:
  1. A TYPED class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from BooksKernelError:

    BooksKernelError (base)
    |
    +-- IntegrityError
    |   +-- DuplicateAccountError
    |   +-- UnknownParentAccountError
    |   +-- CycleDetectedError
    |   +-- UnknownAccountReferenceError
    |   +-- CrossCompanyReferenceError
    |
    +-- AccountError
    |   +-- AccountNotFoundError
    |   +-- UnknownAccountTypeError
    |
    +-- AmountError
    |   +-- InvalidAmountError
    |
    +-- PeriodError
    |   +-- InvalidPeriodError
    |   +-- InvalidDateError
    |   +-- InvalidBucketTokenError
    |   +-- UnknownPeriodPresetError
    |
    +-- ReportError
    |   +-- ReportCancelledError
    |
    +-- SnapshotError
        +-- SnapshotFormatError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Integrity       | DUPLICATE_ACCOUNT           | Two accounts share an id
                | UNKNOWN_PARENT_ACCOUNT      | parent_id does not resolve
                | CYCLE_DETECTED              | Parent chain loops back on itself
                | UNKNOWN_ACCOUNT_REFERENCE   | Line references a missing account
                | CROSS_COMPANY_REFERENCE     | Line/account from another company
----------------|-----------------------------|-----------------------------------------
Account         | ACCOUNT_NOT_FOUND           | Lookup of an id not in the index
                | UNKNOWN_ACCOUNT_TYPE        | Type string outside the known set
----------------|-----------------------------|-----------------------------------------
Amount          | INVALID_AMOUNT              | Non-numeric, negative, NaN amount
----------------|-----------------------------|-----------------------------------------
Period          | INVALID_PERIOD              | end < start
                | INVALID_DATE                | Unparseable date value
                | INVALID_BUCKET_TOKEN        | Not YYYY-MM or YYYY-Qn
                | UNKNOWN_PERIOD_PRESET       | Preset name not recognised
----------------|-----------------------------|-----------------------------------------
Report          | REPORT_CANCELLED            | Caller cancelled mid-generation
----------------|-----------------------------|-----------------------------------------
Snapshot        | SNAPSHOT_FORMAT             | Snapshot document is malformed

===============================================================================
DESIGN NOTES
===============================================================================

1. WHY ARE INTEGRITY ERRORS FATAL?
   Silently dropping an orphaned line makes every total that would have
   included it wrong without any visible trace. Index construction refuses
   the snapshot instead.

2. WHY IS DIVISION BY ZERO NOT HERE?
   A zero percentage base is an ordinary display state ("no data"), handled
   locally by the percentage calculator with a sentinel value.

===============================================================================
"""


class BooksKernelError(Exception):
    """
    Base exception for all books kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "BOOKS_KERNEL_ERROR"


# Integrity exceptions


class IntegrityError(BooksKernelError):
    """Base exception for snapshot integrity violations."""

    code: str = "INTEGRITY_ERROR"


class DuplicateAccountError(IntegrityError):
    """Two accounts in the chart share the same id."""

    code: str = "DUPLICATE_ACCOUNT"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Duplicate account id in chart of accounts: {account_id}")


class UnknownParentAccountError(IntegrityError):
    """An account's parent_id does not resolve to an account in the chart."""

    code: str = "UNKNOWN_PARENT_ACCOUNT"

    def __init__(self, account_id: str, parent_id: str):
        self.account_id = account_id
        self.parent_id = parent_id
        super().__init__(
            f"Account {account_id} references unknown parent {parent_id}"
        )


class CycleDetectedError(IntegrityError):
    """
    Following parent links from an account returned to an account already
    on the chain.

    The chain lists the ids walked, ending with the repeated id.
    """

    code: str = "CYCLE_DETECTED"

    def __init__(self, account_id: str, chain: tuple[str, ...]):
        self.account_id = account_id
        self.chain = chain
        super().__init__(
            f"Cycle in account hierarchy at {account_id}: {' -> '.join(chain)}"
        )


class UnknownAccountReferenceError(IntegrityError):
    """A transaction line references an account that is not in the chart."""

    code: str = "UNKNOWN_ACCOUNT_REFERENCE"

    def __init__(self, transaction_line_id: str, account_id: str):
        self.transaction_line_id = transaction_line_id
        self.account_id = account_id
        super().__init__(
            f"Transaction line {transaction_line_id} references "
            f"unknown account {account_id}"
        )


class CrossCompanyReferenceError(IntegrityError):
    """An account or line belongs to a different company than the snapshot."""

    code: str = "CROSS_COMPANY_REFERENCE"

    def __init__(self, record_id: str, expected_company_id: str, actual_company_id: str | None):
        self.record_id = record_id
        self.expected_company_id = expected_company_id
        self.actual_company_id = actual_company_id
        super().__init__(
            f"Record {record_id} belongs to company {actual_company_id}, "
            f"expected {expected_company_id}"
        )


# Account-related exceptions


class AccountError(BooksKernelError):
    """Base exception for account-related errors."""

    code: str = "ACCOUNT_ERROR"


class AccountNotFoundError(AccountError):
    """Account was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class UnknownAccountTypeError(AccountError):
    """Account type string is not one of the known account types."""

    code: str = "UNKNOWN_ACCOUNT_TYPE"

    def __init__(self, account_type: str, account_id: str | None = None):
        self.account_type = account_type
        self.account_id = account_id
        where = f" on account {account_id}" if account_id else ""
        super().__init__(f"Unknown account type {account_type!r}{where}")


# Amount-related exceptions


class AmountError(BooksKernelError):
    """Base exception for amount-related errors."""

    code: str = "AMOUNT_ERROR"


class InvalidAmountError(AmountError):
    """A debit or credit value is not a finite, non-negative number."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value: object, transaction_line_id: str | None = None):
        self.field = field
        self.value = repr(value)
        self.transaction_line_id = transaction_line_id
        where = f" on line {transaction_line_id}" if transaction_line_id else ""
        super().__init__(f"Invalid {field} amount {value!r}{where}")


# Period-related exceptions


class PeriodError(BooksKernelError):
    """Base exception for period-related errors."""

    code: str = "PERIOD_ERROR"


class InvalidPeriodError(PeriodError):
    """Period end date is before its start date."""

    code: str = "INVALID_PERIOD"

    def __init__(self, start: str, end: str):
        self.start = start
        self.end = end
        super().__init__(f"Period end {end} is before start {start}")


class InvalidDateError(PeriodError):
    """A date value could not be parsed."""

    code: str = "INVALID_DATE"

    def __init__(self, value: object):
        self.value = repr(value)
        super().__init__(f"Invalid date: {value!r}")


class InvalidBucketTokenError(PeriodError):
    """Bucket token is neither YYYY-MM nor YYYY-Qn."""

    code: str = "INVALID_BUCKET_TOKEN"

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Invalid bucket token: {token!r}")


class UnknownPeriodPresetError(PeriodError):
    """Period preset name is not recognised."""

    code: str = "UNKNOWN_PERIOD_PRESET"

    def __init__(self, preset: str):
        self.preset = preset
        super().__init__(f"Unknown period preset: {preset!r}")


# Report-related exceptions


class ReportError(BooksKernelError):
    """Base exception for report generation errors."""

    code: str = "REPORT_ERROR"


class ReportCancelledError(ReportError):
    """The caller cancelled report generation before it completed."""

    code: str = "REPORT_CANCELLED"

    def __init__(self, report_type: str):
        self.report_type = report_type
        super().__init__(f"Generation of {report_type} report was cancelled")


# Snapshot-related exceptions


class SnapshotError(BooksKernelError):
    """Base exception for snapshot loading errors."""

    code: str = "SNAPSHOT_ERROR"


class SnapshotFormatError(SnapshotError):
    """Snapshot document does not have the expected shape."""

    code: str = "SNAPSHOT_FORMAT"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Malformed snapshot {source}: {reason}")
