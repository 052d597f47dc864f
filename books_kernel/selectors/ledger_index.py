"""
Module: books_kernel.selectors.ledger_index
Responsibility: Per-account, date-sorted index over the ledger snapshot that
    answers range queries with binary search and prefix sums.
Architecture position: Kernel > Selectors.  May import from models/,
    selectors/account_index.py and exceptions.  No database access.

Invariants enforced:
    - Every line's chart_account_id resolves in the AccountIndex
      (UnknownAccountReferenceError).
    - With a company_id, every line and every referenced account belongs to
      that company (CrossCompanyReferenceError).
    - Per-account lines are ordered by date, ties kept in input order.

Failure modes:
    - Integrity errors are raised by build(); offending lines are never
      dropped silently.

Performance:
    build() is O(n log n).  debit_credit_totals() is O(log n) per call, so a
    report over accounts x buckets never rescans the ledger.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from itertools import accumulate

from books_kernel.exceptions import (
    CrossCompanyReferenceError,
    UnknownAccountReferenceError,
)
from books_kernel.logging_config import get_logger
from books_kernel.models.transaction import ZERO, Transaction
from books_kernel.selectors.account_index import AccountIndex

logger = get_logger("selectors.ledger_index")


@dataclass(frozen=True)
class _AccountLedger:
    """Sorted lines of one account plus cumulative debit/credit sums."""

    lines: tuple[Transaction, ...]
    dates: tuple[date, ...]
    # prefix[i] is the sum over lines[:i]; prefix[0] == 0
    debit_prefix: tuple[Decimal, ...]
    credit_prefix: tuple[Decimal, ...]

    @classmethod
    def from_lines(cls, lines: list[Transaction]) -> _AccountLedger:
        ordered = sorted(lines, key=lambda tx: tx.date)
        return cls(
            lines=tuple(ordered),
            dates=tuple(tx.date for tx in ordered),
            debit_prefix=tuple(accumulate((tx.debit for tx in ordered), initial=ZERO)),
            credit_prefix=tuple(accumulate((tx.credit for tx in ordered), initial=ZERO)),
        )

    def span(self, start: date, end: date) -> tuple[int, int]:
        return bisect_left(self.dates, start), bisect_right(self.dates, end)


_EMPTY = _AccountLedger((), (), (ZERO,), (ZERO,))


class LedgerIndex:
    """
    Read-only ledger view indexed per account.

    Contract:
        Built via ``LedgerIndex.build(transactions, accounts)``.  Range
        bounds are inclusive on both ends and compare dates only.

    Non-goals:
        - No sign handling: totals are raw debits and credits.  The sign
          convention is applied by the aggregator.
    """

    def __init__(
        self,
        per_account: dict[str, _AccountLedger],
        line_count: int,
        first_date: date | None,
        last_date: date | None,
    ):
        self._per_account = per_account
        self._line_count = line_count
        self._first_date = first_date
        self._last_date = last_date

    @classmethod
    def build(
        cls,
        transactions: Iterable[Transaction],
        accounts: AccountIndex,
        company_id: str | None = None,
    ) -> LedgerIndex:
        """Validate every line against the chart of accounts and index it."""
        if company_id is not None:
            for account in accounts:
                if account.company_id is not None and account.company_id != company_id:
                    raise CrossCompanyReferenceError(
                        account.account_id, company_id, account.company_id
                    )

        grouped: dict[str, list[Transaction]] = {}
        count = 0
        first: date | None = None
        last: date | None = None
        for tx in transactions:
            if tx.chart_account_id not in accounts:
                raise UnknownAccountReferenceError(
                    tx.transaction_line_id, tx.chart_account_id
                )
            if (
                company_id is not None
                and tx.company_id is not None
                and tx.company_id != company_id
            ):
                raise CrossCompanyReferenceError(
                    tx.transaction_line_id, company_id, tx.company_id
                )
            grouped.setdefault(tx.chart_account_id, []).append(tx)
            count += 1
            if first is None or tx.date < first:
                first = tx.date
            if last is None or tx.date > last:
                last = tx.date

        per_account = {
            account_id: _AccountLedger.from_lines(lines)
            for account_id, lines in grouped.items()
        }
        logger.info(
            "ledger_indexed",
            extra={
                "line_count": count,
                "active_account_count": len(per_account),
                "first_date": first,
                "last_date": last,
            },
        )
        return cls(per_account, count, first, last)

    def __len__(self) -> int:
        return self._line_count

    def first_date(self) -> date | None:
        return self._first_date

    def last_date(self) -> date | None:
        return self._last_date

    def has_activity(
        self,
        account_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> bool:
        """Whether any line is posted directly to the account in [start, end].

        A None bound is open on that side.
        """
        ledger = self._per_account.get(account_id)
        if ledger is None:
            return False
        if start is None and end is None:
            return True
        lo, hi = ledger.span(start or date.min, end or date.max)
        return hi > lo

    def by_account(self, account_id: str) -> tuple[Transaction, ...]:
        """All lines posted directly to the account, date-ordered."""
        return self._per_account.get(account_id, _EMPTY).lines

    def in_range(self, account_id: str, start: date, end: date) -> tuple[Transaction, ...]:
        """Lines of the account with start <= date <= end."""
        ledger = self._per_account.get(account_id)
        if ledger is None or start > end:
            return ()
        lo, hi = ledger.span(start, end)
        return ledger.lines[lo:hi]

    def debit_credit_totals(
        self,
        account_id: str,
        start: date,
        end: date,
    ) -> tuple[Decimal, Decimal]:
        """Sum of debits and of credits posted directly in [start, end]."""
        ledger = self._per_account.get(account_id)
        if ledger is None or start > end:
            return ZERO, ZERO
        lo, hi = ledger.span(start, end)
        return (
            ledger.debit_prefix[hi] - ledger.debit_prefix[lo],
            ledger.credit_prefix[hi] - ledger.credit_prefix[lo],
        )
