"""
Module: books_kernel.selectors.snapshot_selector
Responsibility: Assemble a company's report snapshot -- accounts plus the
    merged journal and manual journal lines -- from the database.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    selectors/base.py.  Read-only.

Invariants enforced:
    - Read-only access: no add/delete/commit/flush on the caller's session.
    - Lines are fetched in pages of PAGE_SIZE rows ordered by (date, id), so
      arbitrarily large ledgers are assembled without one unbounded query.
    - Provenance is tagged (journal / manual) and has no effect on amounts.

Failure modes:
    - UnknownAccountTypeError / InvalidAmountError propagate from the domain
      constructors when a stored row is malformed.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date

from sqlalchemy import select

from books_kernel.db.models import ChartOfAccountsRow, JournalRow, ManualJournalEntryRow
from books_kernel.logging_config import get_logger
from books_kernel.models.account import Account
from books_kernel.models.transaction import Transaction, TransactionSource
from books_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.snapshot")

PAGE_SIZE = 1000

MANUAL_ENTRY_DESCRIPTION = "Manual Entry"


@dataclass(frozen=True)
class BooksSnapshot:
    """Immutable input to one report computation."""

    company_id: str | None
    accounts: tuple[Account, ...]
    transactions: tuple[Transaction, ...]


class SnapshotSelector(BaseSelector):
    """
    Reads a company's books into domain objects.

    Contract:
        ``load(company_id)`` returns every account of the company and every
        journal and manual line dated on or before ``until`` (all lines when
        ``until`` is None), date-ascending.
    """

    def __init__(self, session, page_size: int = PAGE_SIZE):
        super().__init__(session)
        self.page_size = page_size

    def accounts(self, company_id: str | None) -> tuple[Account, ...]:
        stmt = select(ChartOfAccountsRow).order_by(ChartOfAccountsRow.id)
        if company_id is not None:
            stmt = stmt.where(ChartOfAccountsRow.company_id == company_id)
        return tuple(
            Account(
                account_id=row.id,
                name=row.name,
                account_type=row.type,
                parent_id=row.parent_id,
                company_id=row.company_id,
                subtype=row.subtype,
            )
            for row in self.session.scalars(stmt)
        )

    def _paged(self, model, company_id: str | None, until: date | None) -> Iterator:
        offset = 0
        while True:
            stmt = select(model).order_by(model.date, model.id)
            if company_id is not None:
                stmt = stmt.where(model.company_id == company_id)
            if until is not None:
                stmt = stmt.where(model.date <= until)
            page = list(self.session.scalars(stmt.offset(offset).limit(self.page_size)))
            yield from page
            if len(page) < self.page_size:
                return
            offset += self.page_size

    def journal_lines(self, company_id: str | None, until: date | None = None) -> list[Transaction]:
        return [
            Transaction(
                transaction_line_id=row.id,
                date=row.date,
                chart_account_id=row.chart_account_id,
                debit=row.debit,
                credit=row.credit,
                description=row.description or "",
                transaction_id=row.transaction_id,
                source=TransactionSource.JOURNAL,
                company_id=row.company_id,
            )
            for row in self._paged(JournalRow, company_id, until)
        ]

    def manual_lines(self, company_id: str | None, until: date | None = None) -> list[Transaction]:
        return [
            Transaction(
                transaction_line_id=row.id,
                date=row.date,
                chart_account_id=row.chart_account_id,
                debit=row.debit,
                credit=row.credit,
                description=row.description or row.je_name or MANUAL_ENTRY_DESCRIPTION,
                transaction_id=row.reference_number or row.id,
                source=TransactionSource.MANUAL,
                company_id=row.company_id,
            )
            for row in self._paged(ManualJournalEntryRow, company_id, until)
        ]

    def load(self, company_id: str | None, until: date | None = None) -> BooksSnapshot:
        """Accounts plus journal and manual lines, merged date-ascending."""
        accounts = self.accounts(company_id)
        journal = self.journal_lines(company_id, until)
        manual = self.manual_lines(company_id, until)
        # Stable sort keeps journal lines ahead of manual lines on equal dates
        merged = sorted(journal + manual, key=lambda tx: tx.date)
        logger.info(
            "snapshot_loaded",
            extra={
                "company_id": company_id,
                "account_count": len(accounts),
                "journal_line_count": len(journal),
                "manual_line_count": len(manual),
            },
        )
        return BooksSnapshot(company_id, accounts, tuple(merged))
