"""
Module: books_kernel.models.transaction
Responsibility: Immutable ledger line with validated Decimal amounts.
Architecture position: Kernel > Models.  May import from exceptions only.

Invariants enforced:
    - debit and credit are finite, non-negative Decimals.
    - date is a calendar date (datetimes are truncated to their date).

Failure modes:
    - InvalidAmountError for booleans, non-numeric strings, NaN, infinities
      and negative amounts.  These are never coerced to zero, so a bad row
      cannot silently vanish from a total.
    - InvalidDateError for values that are not ISO calendar dates.
"""

from __future__ import annotations

import dataclasses
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum

from books_kernel.exceptions import InvalidAmountError, InvalidDateError

ZERO = Decimal("0")


class TransactionSource(str, Enum):
    """Provenance of a ledger line. Has no effect on any computed figure."""

    JOURNAL = "journal"
    MANUAL = "manual"

    @classmethod
    def _missing_(cls, value: object) -> TransactionSource | None:
        if isinstance(value, str) and value.lower() == "ledger":
            return cls.JOURNAL
        return None


def parse_amount(
    value: object,
    field: str = "amount",
    transaction_line_id: str | None = None,
) -> Decimal:
    """
    Convert a stored debit/credit value to a non-negative Decimal.

    None means the side is absent and reads as zero.  Floats are converted
    through ``str`` so 0.1 stays 0.1.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise InvalidAmountError(field, value, transaction_line_id)
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        text = str(value).strip()
        if text == "":
            return ZERO
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise InvalidAmountError(field, value, transaction_line_id) from None
    else:
        raise InvalidAmountError(field, value, transaction_line_id)

    if not amount.is_finite() or amount < 0:
        raise InvalidAmountError(field, value, transaction_line_id)
    return amount


def parse_date(value: object) -> date:
    """Parse a date, datetime or ISO-8601 string to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            # Timestamps from the store carry a time part; only the date counts
            return date.fromisoformat(text[:10])
        except ValueError:
            raise InvalidDateError(value) from None
    raise InvalidDateError(value)


@dataclasses.dataclass(frozen=True)
class Transaction:
    """
    One debit/credit line of the ledger.

    transaction_id groups the lines posted together; it defaults to the
    line id for single-line manual entries.
    """

    transaction_line_id: str
    date: date
    chart_account_id: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: str = ""
    transaction_id: str | None = None
    source: TransactionSource = TransactionSource.JOURNAL
    company_id: str | None = None

    def __post_init__(self) -> None:
        line_id = self.transaction_line_id
        object.__setattr__(self, "date", parse_date(self.date))
        object.__setattr__(self, "debit", parse_amount(self.debit, "debit", line_id))
        object.__setattr__(self, "credit", parse_amount(self.credit, "credit", line_id))
        if not isinstance(self.source, TransactionSource):
            object.__setattr__(self, "source", TransactionSource(self.source))
        if self.transaction_id is None:
            object.__setattr__(self, "transaction_id", line_id)
